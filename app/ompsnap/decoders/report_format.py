"""Report format decoder.

Report format definitions are too structured to rebuild field by field:
the creation document embeds the detail response verbatim, which
``create_report_format`` accepts as an import.
"""

from ompsnap.decoders.base import DecodedEntity, Decoder, ExportContext, Section
from ompsnap.models.entity import EntityKind
from ompsnap.protocol.document import CreationDocument


class ReportFormatDecoder(Decoder):
    """Decoder for ``<get_report_formats/>`` listings."""

    kind = EntityKind.REPORT_FORMAT
    entity_tag = "report_format"
    request = "<get_report_formats/>"
    sections = {"param": Section.PARAM, "alerts": Section.ALERTS}

    def build(self, entity: DecodedEntity, context: ExportContext) -> CreationDocument:
        detail = context.service.execute(
            f"<get_report_formats details='1' report_format_id='{entity.identity}'/>"
        )
        return CreationDocument.verbatim("create_report_format", detail)
