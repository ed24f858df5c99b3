"""Unit tests for the task decoder."""

import xml.etree.ElementTree as ET

import pytest
from omp_fakes import ScriptedService
from ompsnap.core.resolver import ReferenceResolver
from ompsnap.decoders.base import ExportContext
from ompsnap.decoders.task import TaskDecoder, preference_value
from ompsnap.models.entity import EntityKind, Ref
from ompsnap.models.report import RunReport


@pytest.fixture
def context() -> ExportContext:
    """Export context with the sample task dependencies registered."""
    resolver = ReferenceResolver()
    resolver.register(EntityKind.SCAN_CONFIG, 1, "sc-1")
    resolver.register(EntityKind.TARGET, 1, "t-1")
    resolver.register(EntityKind.SCHEDULE, 1, "sch-1")
    resolver.register(EntityKind.ALERT, 1, "a-1")
    return ExportContext(service=ScriptedService({}), resolver=resolver, report=RunReport())


class TestPreferenceValue:
    """Tests for preference_value."""

    def test_auto_delete_zero_becomes_five(self) -> None:
        """auto_delete_data 0 is exported as 5."""
        assert preference_value("auto_delete_data", "0") == "5"

    def test_auto_delete_other_values_are_kept(self) -> None:
        """Other auto_delete_data values are kept."""
        assert preference_value("auto_delete_data", "3") == "3"

    def test_other_preferences_are_kept(self) -> None:
        """Other preferences are kept even when 0."""
        assert preference_value("max_hosts", "0") == "0"


class TestTaskDecoder:
    """Tests for TaskDecoder."""

    def test_decode(self, tasks_response: str) -> None:
        """References, alerts and preferences are read from their sections."""
        fields = next(TaskDecoder().decode(tasks_response)).fields
        assert fields["name"] == "Weekly web"
        assert fields["config"] == "sc-1"
        assert fields["slave"] == ""
        assert fields["scanner"] == "scn-ov"
        assert fields["alerts"] == ["a-1"]
        assert fields["preferences"] == {"auto_delete_data": "0", "max_hosts": "20"}

    def test_build(self, tasks_response: str, context: ExportContext) -> None:
        """Exported references become tokens, the scanner is passed through."""
        entity = next(TaskDecoder().decode(tasks_response))
        document = TaskDecoder().build(entity, context)
        root = ET.fromstring(document.xml)

        assert document.refs == (
            Ref(EntityKind.SCAN_CONFIG, 1),
            Ref(EntityKind.TARGET, 1),
            Ref(EntityKind.SCHEDULE, 1),
            Ref(EntityKind.ALERT, 1),
        )
        assert root.find("config").get("id") == "scanconfig_1"
        assert root.find("target").get("id") == "target_1"
        assert root.find("slave") is None
        assert root.find("schedule").get("id") == "schedule_1"
        assert root.find("scanner").get("id") == "scn-ov"
        assert root.find("alert").get("id") == "alert_1"
        assert root.findtext("alterable") == "0"
        assert context.report.warnings == []

    def test_build_preferences(self, tasks_response: str, context: ExportContext) -> None:
        """Preferences are exported by scanner name with rewritten values."""
        entity = next(TaskDecoder().decode(tasks_response))
        root = ET.fromstring(TaskDecoder().build(entity, context).xml)

        preferences = {
            p.findtext("scanner_name"): p.findtext("value")
            for p in root.iterfind("preferences/preference")
        }
        assert preferences == {"auto_delete_data": "5", "max_hosts": "20"}

    def test_multiple_alerts(self, context: ExportContext) -> None:
        """Every attached alert is referenced."""
        context.resolver.register(EntityKind.ALERT, 2, "a-2")
        response = '<task id="x"><name>T</name><alert id="a-1"/><alert id="a-2"/></task>'
        entity = next(TaskDecoder().decode(response))
        document = TaskDecoder().build(entity, context)

        assert document.refs == (Ref(EntityKind.ALERT, 1), Ref(EntityKind.ALERT, 2))
        assert root_tags(document.xml) == ["name", "comment", "alert", "alert"]

    def test_no_preferences_element_without_preferences(self, context: ExportContext) -> None:
        """Tasks without preferences get no preferences element."""
        entity = next(TaskDecoder().decode('<task id="x"><name>T</name></task>'))
        assert "<preferences" not in TaskDecoder().build(entity, context).xml


def root_tags(xml: str) -> list[str]:
    """Return the tags of the root's children."""
    return [child.tag for child in ET.fromstring(xml)]
