"""Entity decoders, one per entity kind.

This module exports the decoder classes and a lookup by kind.
"""

from ompsnap.decoders.alert import AlertDecoder
from ompsnap.decoders.annotation import NoteDecoder, OverrideDecoder
from ompsnap.decoders.base import DecodedEntity, Decoder, ExportContext, Section
from ompsnap.decoders.credential import CredentialDecoder
from ompsnap.decoders.filter import FilterDecoder
from ompsnap.decoders.report_format import ReportFormatDecoder
from ompsnap.decoders.scan_config import ScanConfigDecoder
from ompsnap.decoders.schedule import ScheduleDecoder
from ompsnap.decoders.slave import SlaveDecoder
from ompsnap.decoders.target import TargetDecoder
from ompsnap.decoders.task import TaskDecoder
from ompsnap.models.entity import EntityKind

DECODERS: dict[EntityKind, type[Decoder]] = {
    decoder.kind: decoder
    for decoder in (
        CredentialDecoder,
        FilterDecoder,
        ReportFormatDecoder,
        ScanConfigDecoder,
        SlaveDecoder,
        ScheduleDecoder,
        TargetDecoder,
        AlertDecoder,
        TaskDecoder,
        NoteDecoder,
        OverrideDecoder,
    )
}


def get_decoder(kind: EntityKind) -> Decoder:
    """Get a decoder instance for an entity kind.

    Args:
        kind: Entity kind.

    Returns:
        Decoder for the kind.
    """
    return DECODERS[kind]()


__all__ = [
    "DECODERS",
    "AlertDecoder",
    "CredentialDecoder",
    "DecodedEntity",
    "Decoder",
    "ExportContext",
    "FilterDecoder",
    "NoteDecoder",
    "OverrideDecoder",
    "ReportFormatDecoder",
    "ScanConfigDecoder",
    "ScheduleDecoder",
    "Section",
    "SlaveDecoder",
    "TargetDecoder",
    "TaskDecoder",
    "get_decoder",
]
