"""Note and override decoders.

Notes and overrides have no name of their own. They are merged by the NVT
they annotate plus their text, ``"{nvt_oid}:{text}"``, with newlines in
the text replaced by ``#n`` so that the key fits on one manifest line.
"""

from datetime import UTC, datetime
from typing import Any

from ompsnap.decoders.base import (
    DecodedEntity,
    Decoder,
    ExportContext,
    Section,
    parse_timestamp,
)
from ompsnap.models.entity import EntityKind
from ompsnap.protocol.document import CreationDocument, DocumentBuilder, escape_newlines
from ompsnap.protocol.tags import TagEvent


def encode_active(active: str, end_time: datetime | None, now: datetime) -> str | None:
    """Encode active state and expiry as create_note expects it.

    Args:
        active: Reported active flag, ``"1"`` or ``"0"``.
        end_time: Expiry, or None if the annotation never expires.
        now: Current time.

    Returns:
        ``"-1"`` for active without expiry, the remaining seconds for active
        with expiry (``"0"`` once elapsed), ``"0"`` for inactive, or None
        when the flag was not reported.
    """
    if active == "0":
        return "0"
    if active != "1":
        return None
    if end_time is None:
        return "-1"
    if end_time.tzinfo is None:
        end_time = end_time.replace(tzinfo=UTC)
    remaining = int((end_time - now).total_seconds())
    return str(max(remaining, 0))


class AnnotationDecoder(Decoder):
    """Shared decoder for notes and overrides."""

    sections = {
        "nvt": Section.NVT,
        "task": Section.TASK,
        "text": Section.TEXT,
        "result": Section.RESULT,
    }
    global_fields: tuple[str, ...] = ("active", "end_time", "hosts", "port", "severity")
    command: str

    def start(self) -> dict[str, Any]:
        fields = super().start()
        fields.update(nvt="", task="", text="")
        return fields

    def enter(self, section: Section, event: TagEvent, fields: dict[str, Any]) -> None:
        if section is Section.NVT:
            fields["nvt"] = event.attributes.get("oid", "")
        elif section is Section.TASK:
            fields["task"] = event.attributes.get("id", "")
        elif section is Section.TEXT:
            fields["text"] = escape_newlines(event.content)

    def merge_name(self, fields: dict[str, Any]) -> str:
        return f"{fields['nvt']}:{fields['text']}"

    def build(self, entity: DecodedEntity, context: ExportContext) -> CreationDocument:
        fields = entity.fields
        owner = f"{self.kind.prefix.capitalize()} {entity.ordinal}"

        try:
            end_time = parse_timestamp(fields["end_time"])
        except ValueError as e:
            context.report.warn(f"{owner}: {e}, exported without expiry")
            end_time = None

        builder = DocumentBuilder(self.command)
        builder.text("text", fields["text"])
        builder.reference("nvt", fields["nvt"], attribute="oid")
        builder.optional("hosts", fields["hosts"])
        builder.optional("port", fields["port"])
        builder.reference("task", context.reference(EntityKind.TASK, fields["task"], owner))
        builder.optional("severity", fields["severity"])
        self.extra(builder, fields)
        builder.optional("active", encode_active(fields["active"], end_time, context.clock()))
        return builder.build()

    def extra(self, builder: DocumentBuilder, fields: dict[str, Any]) -> None:
        """Append kind-specific elements before the active state."""


class NoteDecoder(AnnotationDecoder):
    """Decoder for ``<get_notes details="1"/>`` listings."""

    kind = EntityKind.NOTE
    entity_tag = "note"
    request = '<get_notes details="1"/>'
    command = "create_note"


class OverrideDecoder(AnnotationDecoder):
    """Decoder for ``<get_overrides details="1"/>`` listings."""

    kind = EntityKind.OVERRIDE
    entity_tag = "override"
    request = '<get_overrides details="1"/>'
    command = "create_override"
    global_fields = (*AnnotationDecoder.global_fields, "new_severity")

    def extra(self, builder: DocumentBuilder, fields: dict[str, Any]) -> None:
        builder.optional("new_severity", fields["new_severity"])
