"""Unit tests for the target decoder."""

import xml.etree.ElementTree as ET

import pytest
from omp_fakes import ScriptedService
from ompsnap.core.resolver import ReferenceResolver
from ompsnap.decoders.base import ExportContext
from ompsnap.decoders.target import TargetDecoder
from ompsnap.models.entity import EntityKind, Ref
from ompsnap.models.report import RunReport


@pytest.fixture
def context() -> ExportContext:
    """Export context with the two sample credentials registered."""
    resolver = ReferenceResolver()
    resolver.register(EntityKind.CREDENTIAL, 1, "c-ssh")
    resolver.register(EntityKind.CREDENTIAL, 2, "c-smb")
    return ExportContext(service=ScriptedService({}), resolver=resolver, report=RunReport())


class TestTargetDecoder:
    """Tests for TargetDecoder."""

    def test_decode(self, targets_response: str) -> None:
        """Credential ids and the SSH port are read from their sections."""
        entity = next(TargetDecoder().decode(targets_response))
        assert entity.name == "Web servers"
        assert entity.fields["ssh_credential"] == "c-ssh"
        assert entity.fields["ssh_port"] == "22"
        assert entity.fields["smb_credential"] == ""
        assert entity.fields["port_list"] == "pl-default"

    def test_build(self, targets_response: str, context: ExportContext) -> None:
        """Credentials become tokens, the port list is passed through."""
        entity = next(TargetDecoder().decode(targets_response))
        document = TargetDecoder().build(entity, context)
        root = ET.fromstring(document.xml)

        assert document.refs == (Ref(EntityKind.CREDENTIAL, 1),)
        assert root.findtext("hosts") == "10.0.0.1,10.0.0.3"
        assert root.findtext("alive_tests") == "ICMP Ping"
        assert root.find("ssh_lsc_credential").get("id") == "credential_1"
        assert root.findtext("ssh_lsc_credential/port") == "22"
        assert root.find("smb_lsc_credential") is None
        assert root.find("esxi_lsc_credential") is None
        assert root.find("port_list").get("id") == "pl-default"
        assert context.report.warnings == []

    def test_ssh_port_does_not_leak_between_targets(self, context: ExportContext) -> None:
        """A target without SSH credential gets no port from a previous one."""
        response = (
            '<target id="t-1"><name>A</name><ssh_lsc_credential id="c-ssh"><port>2222</port>'
            '</ssh_lsc_credential></target><target id="t-2"><name>B</name>'
            '<smb_lsc_credential id="c-smb"/></target>'
        )
        second = list(TargetDecoder().decode(response))[1]
        document = TargetDecoder().build(second, context)
        root = ET.fromstring(document.xml)

        assert second.fields["ssh_port"] == ""
        assert root.find("ssh_lsc_credential") is None
        assert root.find("smb_lsc_credential").get("id") == "credential_2"

    def test_esxi_credential(self, context: ExportContext) -> None:
        """ESXi credentials are referenced like the others."""
        response = '<target id="t"><name>V</name><esxi_lsc_credential id="c-smb"/></target>'
        entity = next(TargetDecoder().decode(response))
        document = TargetDecoder().build(entity, context)
        assert '<esxi_lsc_credential id="credential_2" />' in document.xml

    def test_unknown_credential_passes_through(self, context: ExportContext) -> None:
        """Credentials outside the snapshot are kept verbatim with a warning."""
        response = '<target id="t"><name>X</name><ssh_lsc_credential id="c-other"/></target>'
        entity = next(TargetDecoder().decode(response))
        document = TargetDecoder().build(entity, context)

        assert '<ssh_lsc_credential id="c-other">' in document.xml
        assert document.refs == ()
        assert len(context.report.warnings) == 1
