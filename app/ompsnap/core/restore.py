"""Restore engine.

Replays a snapshot against a destination server, one kind at a time in
dependency order. Entities whose name already exists on the destination
are reused; all others are created from their stored document after their
references were resolved to destination identities. Failures are
collected for the whole kind, and the run stops after the first kind that
had any.
"""

import logging

from ompsnap.core.resolver import ReferenceResolver, UnresolvedReferenceError
from ompsnap.core.snapshot import SnapshotReader
from ompsnap.decoders import get_decoder
from ompsnap.models.entity import EntityKind, ManifestEntry
from ompsnap.models.report import ImportOutcome, ImportResult, RunReport
from ompsnap.protocol.service import STATUS_CREATED, ProtocolService, response_status

logger = logging.getLogger(__name__)

# Kinds whose texts carry escaped newlines
_ESCAPED_TEXT_KINDS = frozenset({EntityKind.NOTE, EntityKind.OVERRIDE})


class RestoreEngine:
    """Replay a snapshot against a destination server.

    Attributes:
        service: Destination server.
        reader: Validated snapshot.
        report: Run report for notices, results, warnings and errors.
        resolver: Destination identities of the replayed entities.
        empty_trashcan: Empty the destination trashcan before replaying.
    """

    def __init__(
        self,
        service: ProtocolService,
        reader: SnapshotReader,
        *,
        report: RunReport | None = None,
        empty_trashcan: bool = True,
    ) -> None:
        self.service = service
        self.reader = reader
        self.report = report or RunReport()
        self.resolver = ReferenceResolver()
        self.empty_trashcan = empty_trashcan

    def run(self) -> RunReport:
        """Replay all kinds in dependency order.

        Returns:
            The run report. ``report.aborted_at`` names the kind whose
            failures stopped the run, if any.

        Raises:
            ProtocolError: If the destination cannot be reached.
        """
        if self.empty_trashcan:
            self.service.execute("<empty_trashcan/>")

        for kind in EntityKind.ordered():
            if not self.restore_kind(kind):
                self.report.aborted_at = kind
                logger.info("Aborting import after failures in %s", kind.label)
                break
        return self.report

    def restore_kind(self, kind: EntityKind) -> bool:
        """Replay all manifest entries of one kind.

        Returns:
            True if every entry was resolved on the destination.
        """
        verb = "Checking" if kind is EntityKind.CREDENTIAL else "Importing"
        self.report.notice(f"{verb} {kind.label}")

        entries = self.reader.manifest(kind)
        if not entries:
            return True

        decoder = get_decoder(kind)
        inventory = decoder.inventory(self.service.execute(decoder.request))
        self.resolver.set_inventory(kind, inventory)

        ok = True
        for entry in entries:
            result = self._restore_entry(entry)
            self.report.record(result)
            if result.failed:
                ok = False
        return ok

    def _restore_entry(self, entry: ManifestEntry) -> ImportResult:
        kind = entry.kind
        existing = self.resolver.lookup_name(kind, entry.name)
        if existing is not None:
            self.resolver.register(kind, entry.ordinal, existing)
            self.report.notice(f" - {kind.prefix} '{entry.name}' already exists, skipping import")
            if kind is EntityKind.REPORT_FORMAT:
                self._activate_report_format(existing)
            return self._result(entry, ImportOutcome.SKIPPED, identity=existing)

        if kind is EntityKind.CREDENTIAL:
            return self._fail(
                entry,
                f"Credential {entry.ordinal} ({entry.name}) not found, you have to add it by hand",
            )

        document = self.reader.document(entry)
        try:
            command = document.command
            request = document.render(
                self.resolver.identity_for,
                unescape_text=kind in _ESCAPED_TEXT_KINDS,
            )
        except (UnresolvedReferenceError, ValueError) as e:
            return self._fail(
                entry, f"Could not import {kind.prefix} {entry.ordinal} ({entry.name}), {e}"
            )

        response = self.service.execute(request)
        status, identity = response_status(response, command)
        if status != STATUS_CREATED or identity is None:
            return self._fail(
                entry,
                f"Could not import {kind.prefix} {entry.ordinal} ({entry.name}), "
                f"status returned was '{status}'",
            )

        self.resolver.register(kind, entry.ordinal, identity)
        self.report.notice(f" - imported {entry.name} as {identity}")
        if kind is EntityKind.REPORT_FORMAT:
            self._activate_report_format(identity)
        return self._result(entry, ImportOutcome.CREATED, identity=identity)

    def _activate_report_format(self, identity: str) -> None:
        response = self.service.execute(
            f"<modify_report_format report_format_id='{identity}'>"
            "<active>1</active></modify_report_format>"
        )
        status, _ = response_status(response, "modify_report_format")
        logger.debug("Activated report format %s, status %s", identity, status)

    def _fail(self, entry: ManifestEntry, message: str) -> ImportResult:
        logger.debug(message)
        self.report.error(message)
        return self._result(entry, ImportOutcome.FAILED, message=message)

    @staticmethod
    def _result(
        entry: ManifestEntry,
        outcome: ImportOutcome,
        *,
        identity: str | None = None,
        message: str | None = None,
    ) -> ImportResult:
        return ImportResult(
            kind=entry.kind,
            ordinal=entry.ordinal,
            name=entry.name,
            outcome=outcome,
            identity=identity,
            message=message,
        )
