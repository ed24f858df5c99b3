"""Task decoder."""

from typing import Any

from ompsnap.decoders.base import DecodedEntity, Decoder, ExportContext, Section
from ompsnap.models.entity import EntityKind
from ompsnap.protocol.document import CreationDocument, DocumentBuilder
from ompsnap.protocol.tags import TagEvent

# Preference rewritten on export: a value of 0 is stored as 5
AUTO_DELETE_PREFERENCE = "auto_delete_data"

# Section -> (field, referenced kind); None for identities passed through
_REFERENCES: dict[Section, tuple[str, EntityKind | None]] = {
    Section.CONFIG: ("config", EntityKind.SCAN_CONFIG),
    Section.TARGET: ("target", EntityKind.TARGET),
    Section.SLAVE: ("slave", EntityKind.SLAVE),
    Section.SCHEDULE: ("schedule", EntityKind.SCHEDULE),
    Section.SCANNER: ("scanner", None),
}


def preference_value(name: str, value: str) -> str:
    """Return the value a task preference is exported with."""
    if name == AUTO_DELETE_PREFERENCE and value == "0":
        return "5"
    return value


class TaskDecoder(Decoder):
    """Decoder for ``<get_tasks/>`` listings.

    Reports attached to a task are ignored; only its configuration is
    exported.
    """

    kind = EntityKind.TASK
    entity_tag = "task"
    request = "<get_tasks/>"
    sections = {
        "config": Section.CONFIG,
        "target": Section.TARGET,
        "slave": Section.SLAVE,
        "schedule": Section.SCHEDULE,
        "scanner": Section.SCANNER,
        "alert": Section.ALERT,
        "preference": Section.PREFERENCE,
        "current_report": Section.CURRENT_REPORT,
        "first_report": Section.FIRST_REPORT,
        "last_report": Section.LAST_REPORT,
        "second_last_report": Section.SECOND_LAST_REPORT,
    }
    global_fields = ("name", "comment", "alterable")

    def start(self) -> dict[str, Any]:
        fields = super().start()
        for key, _ in _REFERENCES.values():
            fields[key] = ""
        fields["alerts"] = []
        fields["preferences"] = {}
        fields["preference_name"] = None
        return fields

    def enter(self, section: Section, event: TagEvent, fields: dict[str, Any]) -> None:
        if section in _REFERENCES:
            key, _ = _REFERENCES[section]
            fields[key] = event.attributes.get("id", "")
        elif section is Section.ALERT:
            identity = event.attributes.get("id", "")
            if identity:
                fields["alerts"].append(identity)

    def leave(self, section: Section, event: TagEvent, fields: dict[str, Any]) -> None:
        if section is Section.PREFERENCE:
            fields["preference_name"] = None

    def field(self, section: Section, event: TagEvent, fields: dict[str, Any]) -> None:
        if section is not Section.PREFERENCE:
            super().field(section, event, fields)
        elif event.name == "scanner_name":
            fields["preference_name"] = event.content
        elif event.name == "value" and fields["preference_name"]:
            fields["preferences"][fields["preference_name"]] = event.content

    def build(self, entity: DecodedEntity, context: ExportContext) -> CreationDocument:
        fields = entity.fields
        owner = f"Task '{entity.name}'"

        builder = DocumentBuilder("create_task")
        builder.text("name", fields["name"])
        builder.text("comment", fields["comment"])
        builder.optional("alterable", fields["alterable"])
        for tag, kind in _REFERENCES.values():
            identity = fields[tag]
            target = identity if kind is None else context.reference(kind, identity, owner)
            builder.reference(tag, target or None)
        for identity in fields["alerts"]:
            builder.reference("alert", context.reference(EntityKind.ALERT, identity, owner))

        if fields["preferences"]:
            preferences = builder.text("preferences", None)
            for name, value in fields["preferences"].items():
                preference = builder.text("preference", None, preferences)
                builder.text("scanner_name", name, preference)
                builder.text("value", preference_value(name, value), preference)
        return builder.build()
