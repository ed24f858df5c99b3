"""Schedule decoder.

The manager reports a schedule's first run as one timestamp, while
``create_schedule`` wants it split into calendar fields. The wall-clock
time is kept as reported; the timezone is carried separately when the
manager reports one.
"""

import logging
from typing import Any

from ompsnap.decoders.base import (
    DecodedEntity,
    Decoder,
    ExportContext,
    Section,
    parse_timestamp,
)
from ompsnap.models.entity import EntityKind
from ompsnap.protocol.document import CreationDocument, DocumentBuilder
from ompsnap.protocol.tags import TagEvent

logger = logging.getLogger(__name__)

# create_schedule field -> strftime directive
FIRST_TIME_PARTS: tuple[tuple[str, str], ...] = (
    ("day_of_month", "%d"),
    ("hour", "%H"),
    ("minute", "%M"),
    ("month", "%m"),
    ("year", "%Y"),
)


def split_first_time(value: str) -> dict[str, str]:
    """Decompose a first-run timestamp into create_schedule fields.

    Args:
        value: Timestamp as reported by the manager.

    Returns:
        Zero padded day_of_month, hour, minute, month and four digit year.
        All values are empty when the timestamp is empty.

    Raises:
        ValueError: If the timestamp cannot be parsed.
    """
    moment = parse_timestamp(value)
    if moment is None:
        return {part: "" for part, _ in FIRST_TIME_PARTS}
    return {part: f"{moment:{directive}}" for part, directive in FIRST_TIME_PARTS}


class ScheduleDecoder(Decoder):
    """Decoder for ``<get_schedules/>`` listings."""

    kind = EntityKind.SCHEDULE
    entity_tag = "schedule"
    request = "<get_schedules/>"
    sections = {
        "tasks": Section.TASKS,
        "simple_duration": Section.SIMPLE_DURATION,
        "simple_period": Section.SIMPLE_PERIOD,
    }
    global_fields = ("name", "comment", "first_time", "timezone")

    def start(self) -> dict[str, Any]:
        fields = super().start()
        fields.update(duration="", duration_unit="", period="", period_unit="")
        return fields

    def enter(self, section: Section, event: TagEvent, fields: dict[str, Any]) -> None:
        if section is Section.SIMPLE_DURATION:
            fields["duration"] = event.content
        elif section is Section.SIMPLE_PERIOD:
            fields["period"] = event.content

    def field(self, section: Section, event: TagEvent, fields: dict[str, Any]) -> None:
        if event.name == "unit":
            if section is Section.SIMPLE_DURATION:
                fields["duration_unit"] = event.content
            elif section is Section.SIMPLE_PERIOD:
                fields["period_unit"] = event.content
            return
        super().field(section, event, fields)

    def build(self, entity: DecodedEntity, context: ExportContext) -> CreationDocument:
        fields = entity.fields
        try:
            first_time = split_first_time(fields["first_time"])
        except ValueError as e:
            message = f"Schedule '{entity.name}': {e}, first run time not exported"
            logger.warning(message)
            context.report.warn(message)
            first_time = split_first_time("")

        builder = DocumentBuilder("create_schedule")
        builder.text("name", fields["name"])
        builder.text("comment", fields["comment"])
        first = builder.text("first_time", None)
        for part, value in first_time.items():
            builder.text(part, value, first)
        duration = builder.text("duration", fields["duration"])
        builder.text("unit", fields["duration_unit"], duration)
        period = builder.text("period", fields["period"])
        builder.text("unit", fields["period_unit"], period)
        builder.optional("timezone", fields["timezone"])
        return builder.build()
