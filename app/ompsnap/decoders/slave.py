"""Slave decoder.

OMP does not return slave passwords. The creation document carries the
password of the connection profile used for the export instead, in
plaintext. This exposes the exporting operator's own password to anyone
who can read the snapshot, and it is only correct when the slave accepts
that same password. Treat snapshots that contain slaves as secrets.
"""

from ompsnap.decoders.base import DecodedEntity, Decoder, ExportContext, Section
from ompsnap.models.entity import EntityKind
from ompsnap.protocol.document import CreationDocument, DocumentBuilder


class SlaveDecoder(Decoder):
    """Decoder for ``<get_slaves/>`` listings."""

    kind = EntityKind.SLAVE
    entity_tag = "slave"
    request = "<get_slaves/>"
    sections = {"tasks": Section.TASKS}
    global_fields = ("name", "comment", "host", "port", "login")

    def build(self, entity: DecodedEntity, context: ExportContext) -> CreationDocument:
        builder = DocumentBuilder("create_slave")
        for tag in self.global_fields:
            builder.text(tag, entity.fields[tag])
        builder.text("password", context.slave_password)
        return builder.build()
