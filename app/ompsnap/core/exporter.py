"""Export engine.

Drives the decoders in dependency order against the source server and
feeds the decoded records to the snapshot writer. Each kind's identities
are registered in the resolver before the next kind is decoded, so later
kinds can express their references as snapshot tokens.
"""

import logging
from collections.abc import Callable
from datetime import datetime

from ompsnap.core.resolver import ReferenceResolver
from ompsnap.core.snapshot import SnapshotWriter
from ompsnap.decoders import get_decoder
from ompsnap.decoders.base import ExportContext, utcnow
from ompsnap.models.entity import EntityKind, Record
from ompsnap.models.report import RunReport
from ompsnap.protocol.service import ProtocolService

logger = logging.getLogger(__name__)


class ExportEngine:
    """Capture the configuration of a server into a snapshot.

    Attributes:
        service: Source server.
        writer: Snapshot writer receiving the records.
        report: Run report for notices and warnings.
        resolver: Source identities of the exported entities.
    """

    def __init__(
        self,
        service: ProtocolService,
        writer: SnapshotWriter,
        *,
        report: RunReport | None = None,
        slave_password: str = "",
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self.service = service
        self.writer = writer
        self.report = report or RunReport()
        self.resolver = ReferenceResolver()
        self._context = ExportContext(
            service=service,
            resolver=self.resolver,
            report=self.report,
            slave_password=slave_password,
            clock=clock,
        )

    def run(self, kinds: list[EntityKind] | None = None) -> RunReport:
        """Export all kinds in dependency order.

        Args:
            kinds: Kinds to export. Defaults to all kinds.

        Returns:
            The run report.

        Raises:
            ProtocolError: If the source server cannot be queried.
            SnapshotError: If the snapshot cannot be written.
        """
        selected = kinds or EntityKind.ordered()
        for kind in EntityKind.ordered():
            if kind in selected:
                self.export_kind(kind)
        return self.report

    def export_kind(self, kind: EntityKind) -> int:
        """Export all entities of one kind.

        Returns:
            Number of records written.
        """
        decoder = get_decoder(kind)
        self.report.notice(f"Requesting {kind.label}")
        response = self.service.execute(decoder.request)

        count = 0
        for entity in decoder.decode(response):
            record = Record(
                kind=kind,
                ordinal=entity.ordinal,
                name=entity.name,
                source_identity=entity.identity,
                document=decoder.build(entity, self._context),
            )
            self.writer.write(record)
            self.resolver.register(kind, entity.ordinal, entity.identity)
            count += 1

        decoder.finish(count, self._context)
        logger.info("Exported %d %s", count, kind.label)
        return count
