"""Target decoder."""

from typing import Any

from ompsnap.decoders.base import DecodedEntity, Decoder, ExportContext, Section
from ompsnap.models.entity import EntityKind
from ompsnap.protocol.document import CreationDocument, DocumentBuilder
from ompsnap.protocol.tags import TagEvent

# Section -> field holding the referenced id
_REFERENCE_FIELDS: dict[Section, str] = {
    Section.SSH_CREDENTIAL: "ssh_credential",
    Section.SMB_CREDENTIAL: "smb_credential",
    Section.ESXI_CREDENTIAL: "esxi_credential",
    Section.PORT_LIST: "port_list",
}


class TargetDecoder(Decoder):
    """Decoder for ``<get_targets/>`` listings.

    Credential references become ``credential_{n}`` tokens. Port lists are
    not exported, so their identities are passed through unchanged.
    """

    kind = EntityKind.TARGET
    entity_tag = "target"
    request = "<get_targets/>"
    sections = {
        "ssh_lsc_credential": Section.SSH_CREDENTIAL,
        "smb_lsc_credential": Section.SMB_CREDENTIAL,
        "esxi_lsc_credential": Section.ESXI_CREDENTIAL,
        "port_list": Section.PORT_LIST,
        "tasks": Section.TASKS,
    }
    global_fields = ("name", "comment", "hosts", "alive_tests")

    def start(self) -> dict[str, Any]:
        fields = super().start()
        fields.update(dict.fromkeys(_REFERENCE_FIELDS.values(), ""))
        fields["ssh_port"] = ""
        return fields

    def enter(self, section: Section, event: TagEvent, fields: dict[str, Any]) -> None:
        key = _REFERENCE_FIELDS.get(section)
        if key is not None:
            fields[key] = event.attributes.get("id", "")

    def field(self, section: Section, event: TagEvent, fields: dict[str, Any]) -> None:
        if section is Section.SSH_CREDENTIAL and event.name == "port":
            fields["ssh_port"] = event.content
            return
        super().field(section, event, fields)

    def build(self, entity: DecodedEntity, context: ExportContext) -> CreationDocument:
        fields = entity.fields
        owner = f"Target '{entity.name}'"

        builder = DocumentBuilder("create_target")
        for tag in self.global_fields:
            builder.text(tag, fields[tag])

        ssh = context.reference(EntityKind.CREDENTIAL, fields["ssh_credential"], owner)
        element = builder.reference("ssh_lsc_credential", ssh)
        if element is not None:
            builder.text("port", fields["ssh_port"], element)
        builder.reference(
            "smb_lsc_credential",
            context.reference(EntityKind.CREDENTIAL, fields["smb_credential"], owner),
        )
        builder.reference(
            "esxi_lsc_credential",
            context.reference(EntityKind.CREDENTIAL, fields["esxi_credential"], owner),
        )
        builder.reference("port_list", fields["port_list"] or None)
        return builder.build()
