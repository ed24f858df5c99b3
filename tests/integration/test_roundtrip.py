"""Integration tests for snapshot round trips.

These tests export the sample source manager into an archive, read the
archive back and replay it against an in-memory destination manager.
"""

import xml.etree.ElementTree as ET
from collections.abc import Callable
from datetime import datetime
from pathlib import Path

import pytest
from omp_fakes import FakeManager, ScriptedService
from ompsnap.core.exporter import ExportEngine
from ompsnap.core.restore import RestoreEngine
from ompsnap.core.snapshot import SnapshotReader, SnapshotWriter, pack_snapshot
from ompsnap.models.entity import EntityKind
from ompsnap.models.report import ImportOutcome, RunReport


@pytest.fixture
def archive(
    source_service: ScriptedService, tmp_path: Path, fixed_clock: Callable[[], datetime]
) -> Path:
    """Export the sample source manager into prod.tgz."""
    workdir = tmp_path / "work"
    workdir.mkdir()
    writer = SnapshotWriter(workdir, source="scanner-1")
    ExportEngine(source_service, writer, slave_password="pw", clock=fixed_clock).run()
    writer.close()
    target = tmp_path / "prod.tgz"
    pack_snapshot(workdir, target)
    return target


@pytest.fixture
def destination(fake_manager: FakeManager) -> FakeManager:
    """Destination manager holding the sample credentials."""
    fake_manager.add(EntityKind.CREDENTIAL, "ssh-key", "c-dest-1")
    fake_manager.add(EntityKind.CREDENTIAL, "smb-admin", "c-dest-2")
    return fake_manager


def restore(archive: Path, destination: FakeManager) -> RunReport:
    """Replay an archive against a destination manager."""
    return RestoreEngine(destination, SnapshotReader.open(archive)).run()


def created_element(manager: FakeManager, kind: EntityKind, name: str) -> ET.Element:
    """Parse the accepted create request of an entity."""
    return ET.fromstring(manager.create_request(kind, name))


class TestRoundTrip:
    """Tests for export followed by import into an empty manager."""

    def test_everything_is_created(self, archive: Path, destination: FakeManager) -> None:
        """Every kind but credentials is created once."""
        report = restore(archive, destination)

        assert not report.failed
        assert report.count(ImportOutcome.CREATED) == 10
        assert report.count(ImportOutcome.SKIPPED) == 2
        assert destination.created_names(EntityKind.FILTER) == ["High only"]
        assert destination.created_names(EntityKind.REPORT_FORMAT) == ["Custom CSV"]
        assert destination.created_names(EntityKind.SCAN_CONFIG) == ["Fast"]
        assert destination.created_names(EntityKind.SLAVE) == ["DMZ"]
        assert destination.created_names(EntityKind.SCHEDULE) == ["Nightly"]
        assert destination.created_names(EntityKind.TARGET) == ["Web servers"]
        assert destination.created_names(EntityKind.ALERT) == ["Mail"]
        assert destination.created_names(EntityKind.TASK) == ["Weekly web"]

    def test_creates_follow_dependency_order(
        self, archive: Path, destination: FakeManager
    ) -> None:
        """Entities are created before anything referencing them."""
        restore(archive, destination)

        kinds = [kind for kind, _, _ in destination.created]
        assert kinds == [kind for kind in EntityKind.ordered() if kind in kinds]

    def test_references_point_to_destination(
        self, archive: Path, destination: FakeManager
    ) -> None:
        """References carry identities assigned by the destination."""
        restore(archive, destination)
        ids = {
            kind: destination.entities[kind][name]
            for kind, name, _ in destination.created
            if kind not in (EntityKind.NOTE, EntityKind.OVERRIDE)
        }

        target = created_element(destination, EntityKind.TARGET, "Web servers")
        assert target.find("ssh_lsc_credential").get("id") == "c-dest-1"
        assert target.find("port_list").get("id") == "pl-default"

        task = created_element(destination, EntityKind.TASK, "Weekly web")
        assert task.find("config").get("id") == ids[EntityKind.SCAN_CONFIG]
        assert task.find("target").get("id") == ids[EntityKind.TARGET]
        assert task.find("schedule").get("id") == ids[EntityKind.SCHEDULE]
        assert task.find("alert").get("id") == ids[EntityKind.ALERT]
        assert task.find("scanner").get("id") == "scn-ov"

        alert = created_element(destination, EntityKind.ALERT, "Mail")
        assert alert.find("filter").get("id") == ids[EntityKind.FILTER]
        assert ids[EntityKind.REPORT_FORMAT] in [data.text for data in alert.iter("data")]

    def test_note_text_keeps_newlines(self, archive: Path, destination: FakeManager) -> None:
        """Multi-line note texts arrive unchanged."""
        restore(archive, destination)

        requests = [request for kind, _, request in destination.created if kind is EntityKind.NOTE]
        assert len(requests) == 1
        note = ET.fromstring(requests[0])
        assert note.findtext("text") == "False positive\nchecked by ops"
        assert note.find("nvt").get("oid") == "1.3.6.1.4.1.25623.1.0.10330"

    def test_report_format_is_activated(self, archive: Path, destination: FakeManager) -> None:
        """Imported report formats are activated."""
        restore(archive, destination)
        identity = destination.entities[EntityKind.REPORT_FORMAT]["Custom CSV"]
        assert destination.activated == [identity]


class TestReimport:
    """Tests for importing into a manager that already holds the snapshot."""

    def test_second_import_creates_nothing(
        self, archive: Path, destination: FakeManager
    ) -> None:
        """A repeated import skips every entry."""
        restore(archive, destination)
        created = len(destination.created)

        report = restore(archive, destination)

        assert not report.failed
        assert len(destination.created) == created
        assert report.count(ImportOutcome.CREATED) == 0
        assert report.count(ImportOutcome.SKIPPED) == 12

    def test_report_format_is_activated_again(
        self, archive: Path, destination: FakeManager
    ) -> None:
        """Skipped report formats are activated as well."""
        restore(archive, destination)
        restore(archive, destination)

        assert len(destination.activated) == 2
        assert destination.activated[0] == destination.activated[1]

    def test_existing_entities_are_referenced(
        self, archive: Path, destination: FakeManager
    ) -> None:
        """Entities already present by name are referenced by their identity."""
        destination.add(EntityKind.TARGET, "Web servers", "t-99")

        restore(archive, destination)

        assert "Web servers" not in destination.created_names(EntityKind.TARGET)
        task = created_element(destination, EntityKind.TASK, "Weekly web")
        assert task.find("target").get("id") == "t-99"


class TestFailures:
    """Tests for imports that cannot complete."""

    def test_missing_credentials_stop_the_import(
        self, archive: Path, fake_manager: FakeManager
    ) -> None:
        """Nothing is created when credentials are missing."""
        report = restore(archive, fake_manager)

        assert report.failed
        assert report.aborted_at is EntityKind.CREDENTIAL
        assert fake_manager.created == []
        assert len(report.errors) == 2

    def test_rejected_filter_stops_before_dependents(
        self, archive: Path, destination: FakeManager
    ) -> None:
        """A rejected create stops the import after its kind."""
        destination.reject.add("High only")

        report = restore(archive, destination)

        assert report.aborted_at is EntityKind.FILTER
        assert destination.created == []
        assert "status returned was '400'" in report.errors[0]
