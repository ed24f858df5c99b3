"""Filter decoder."""

from ompsnap.decoders.base import DecodedEntity, Decoder, ExportContext, Section
from ompsnap.models.entity import EntityKind
from ompsnap.protocol.document import CreationDocument, DocumentBuilder


class FilterDecoder(Decoder):
    """Decoder for ``<get_filters/>`` listings."""

    kind = EntityKind.FILTER
    entity_tag = "filter"
    request = "<get_filters/>"
    sections = {"alerts": Section.ALERTS}
    global_fields = ("name", "comment", "term", "type")

    def build(self, entity: DecodedEntity, context: ExportContext) -> CreationDocument:
        builder = DocumentBuilder("create_filter")
        for tag in self.global_fields:
            builder.text(tag, entity.fields[tag])
        return builder.build()
