"""Scan config decoder.

Like report formats, scan configs are exported as their verbatim detail
response wrapped in ``create_config``.
"""

from ompsnap.decoders.base import DecodedEntity, Decoder, ExportContext, Section
from ompsnap.models.entity import EntityKind
from ompsnap.protocol.document import CreationDocument


class ScanConfigDecoder(Decoder):
    """Decoder for ``<get_configs/>`` listings."""

    kind = EntityKind.SCAN_CONFIG
    entity_tag = "config"
    request = "<get_configs/>"
    sections = {
        "tasks": Section.TASKS,
        "families": Section.FAMILIES,
        "preferences": Section.PREFERENCES,
    }

    def build(self, entity: DecodedEntity, context: ExportContext) -> CreationDocument:
        detail = context.service.execute(
            f"<get_configs details='1' config_id='{entity.identity}'/>"
        )
        return CreationDocument.verbatim("create_config", detail)
