"""Credential decoder.

Credentials cannot be recreated: OMP never returns their private keys or
passwords. They are recorded by name only so that targets can reference
them, and the destination must already hold credentials of the same name.
"""

from ompsnap.decoders.base import DecodedEntity, Decoder, ExportContext, Section
from ompsnap.models.entity import EntityKind
from ompsnap.protocol.document import CreationDocument

CREDENTIALS_WARNING = (
    "Credentials found, you will have to import them manually since there is no way "
    "to export the private key via OMP (or generate new credentials with the same name)."
)


class CredentialDecoder(Decoder):
    """Decoder for ``<get_lsc_credentials/>`` listings."""

    kind = EntityKind.CREDENTIAL
    entity_tag = "lsc_credential"
    request = "<get_lsc_credentials/>"
    sections = {"targets": Section.TARGETS}

    def build(self, entity: DecodedEntity, context: ExportContext) -> CreationDocument | None:
        return None

    def finish(self, count: int, context: ExportContext) -> None:
        if count:
            context.report.warn(CREDENTIALS_WARNING)
