"""Alert decoder.

An alert has three parts (condition, event and method), each with a text
and a list of named data items. The method item ``notice_attach_format``
holds a report format identity and becomes a ``reportformat_{n}`` token;
the optional filter becomes a ``filter_{n}`` token.
"""

import xml.etree.ElementTree as ET
from typing import Any

from ompsnap.decoders.base import DecodedEntity, Decoder, ExportContext, Section
from ompsnap.models.entity import EntityKind
from ompsnap.protocol.document import CreationDocument, DocumentBuilder
from ompsnap.protocol.tags import TagEvent

# Method data item holding a report format identity
ATTACH_FORMAT = "notice_attach_format"

_PARTS: dict[Section, str] = {
    Section.CONDITION: "condition",
    Section.EVENT: "event",
    Section.METHOD: "method",
}


class AlertDecoder(Decoder):
    """Decoder for ``<get_alerts/>`` listings."""

    kind = EntityKind.ALERT
    entity_tag = "alert"
    request = "<get_alerts/>"
    sections = {
        "condition": Section.CONDITION,
        "event": Section.EVENT,
        "method": Section.METHOD,
        "filter": Section.FILTER,
        "tasks": Section.TASKS,
    }
    global_fields = ("name", "comment")

    def start(self) -> dict[str, Any]:
        fields = super().start()
        for part in _PARTS.values():
            fields[part] = ""
            fields[f"{part}_data"] = []
        fields["filter"] = ""
        fields["pending"] = None
        return fields

    def enter(self, section: Section, event: TagEvent, fields: dict[str, Any]) -> None:
        if section is Section.FILTER:
            fields["filter"] = event.attributes.get("id", "")
        elif section in _PARTS:
            fields[_PARTS[section]] = event.content

    def field(self, section: Section, event: TagEvent, fields: dict[str, Any]) -> None:
        if section not in _PARTS:
            super().field(section, event, fields)
            return

        # Data items read <data>VALUE<name>NAME</name></data>, with the value
        # after </name> in newer managers.
        pending: list[str] | None = fields["pending"]
        if event.name == "data":
            fields["pending"] = [event.content, ""]
        elif pending is None:
            return
        elif event.name == "name":
            pending[1] = event.content
        elif event.name == "/name" and not pending[0]:
            pending[0] = event.content
        elif event.name == "/data":
            value, name = pending
            if name:
                fields[f"{_PARTS[section]}_data"].append((name, value))
            fields["pending"] = None

    def build(self, entity: DecodedEntity, context: ExportContext) -> CreationDocument:
        fields = entity.fields
        owner = f"Alert '{entity.name}'"

        builder = DocumentBuilder("create_alert")
        builder.text("name", fields["name"])
        builder.text("comment", fields["comment"])
        self._part(builder, "condition", fields, context, owner)
        self._part(builder, "event", fields, context, owner)
        builder.reference(
            "filter", context.reference(EntityKind.FILTER, fields["filter"], owner)
        )
        self._part(builder, "method", fields, context, owner)
        return builder.build()

    def _part(
        self,
        builder: DocumentBuilder,
        part: str,
        fields: dict[str, Any],
        context: ExportContext,
        owner: str,
    ) -> ET.Element:
        element = builder.text(part, fields[part])
        for name, value in fields[f"{part}_data"]:
            if part == "method" and name == ATTACH_FORMAT and value:
                target = context.reference(EntityKind.REPORT_FORMAT, value, owner)
                value = builder.token(target) if target is not None else value
            data = builder.text("data", value, element)
            builder.text("name", name, data)
        return element
