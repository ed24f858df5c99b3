"""Run report models.

Collects per-entity import results together with the warnings and errors
of one export or import run, so they can be shown once at the end.
"""

from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum

from ompsnap.models.entity import EntityKind


class ImportOutcome(Enum):
    """Outcome of importing one manifest entry.

    Attributes:
        CREATED: The entity was created on the destination.
        SKIPPED: An entity with the same name already existed.
        FAILED: The entity could not be created or found.
    """

    CREATED = "created"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass(frozen=True, slots=True)
class ImportResult:
    """Result of importing a single manifest entry.

    Attributes:
        kind: Entity kind.
        ordinal: Ordinal of the entry in the snapshot.
        name: Name of the entry.
        outcome: What happened to the entry.
        identity: Identity on the destination, if one was resolved.
        message: Error message for failed entries.
    """

    kind: EntityKind
    ordinal: int
    name: str
    outcome: ImportOutcome
    identity: str | None = None
    message: str | None = None

    @property
    def success(self) -> bool:
        """Check if the entry is resolved on the destination."""
        return self.outcome != ImportOutcome.FAILED

    @property
    def failed(self) -> bool:
        """Check if the entry failed."""
        return self.outcome == ImportOutcome.FAILED


@dataclass
class RunReport:
    """Warnings, errors and results accumulated over one run.

    Attributes:
        warnings: Non-fatal problems, shown at the end of the run.
        errors: Problems that make the run fail, shown at the end.
        results: Import results in processing order.
        aborted_at: Kind after which an import run was aborted.
        on_notice: Callback receiving progress notices as they happen.
    """

    warnings: list[str] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)
    results: list[ImportResult] = field(default_factory=list)
    aborted_at: EntityKind | None = None
    on_notice: Callable[[str], None] | None = None

    def notice(self, message: str) -> None:
        """Emit a progress notice."""
        if self.on_notice is not None:
            self.on_notice(message)

    def warn(self, message: str) -> None:
        """Record a warning."""
        self.warnings.append(message)

    def error(self, message: str) -> None:
        """Record an error."""
        self.errors.append(message)

    def record(self, result: ImportResult) -> None:
        """Record an import result."""
        self.results.append(result)

    def results_for(self, kind: EntityKind) -> list[ImportResult]:
        """Return the results recorded for one kind."""
        return [r for r in self.results if r.kind == kind]

    def count(self, outcome: ImportOutcome) -> int:
        """Count results with the given outcome."""
        return sum(1 for r in self.results if r.outcome == outcome)

    @property
    def failed(self) -> bool:
        """Check if the run produced any error."""
        return bool(self.errors)
