"""Entity kinds, typed references and snapshot records.

This module defines the closed set of configuration entities that can be
snapshotted, their fixed dependency order, and the records and manifest
entries that carry them through a snapshot.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ompsnap.protocol.document import CreationDocument


class EntityKind(Enum):
    """Kind of configuration entity managed over OMP.

    The enum value is the token prefix used in manifests and symbolic
    references (``filter_3``, ``reportformat_1``...). Members are declared
    in replay order: a kind may only reference kinds declared before it.
    """

    CREDENTIAL = "credential"
    FILTER = "filter"
    REPORT_FORMAT = "reportformat"
    SCAN_CONFIG = "scanconfig"
    SLAVE = "slave"
    SCHEDULE = "schedule"
    TARGET = "target"
    ALERT = "alert"
    TASK = "task"
    NOTE = "note"
    OVERRIDE = "override"

    @property
    def prefix(self) -> str:
        """Token prefix of this kind."""
        return self.value

    @property
    def rank(self) -> int:
        """Position of this kind in replay order (0-based)."""
        return _ORDER.index(self)

    @property
    def label(self) -> str:
        """Plural, human readable name used in progress notices."""
        return _LABELS[self]

    @property
    def command(self) -> str:
        """OMP command that creates an entity of this kind."""
        return _COMMANDS[self]

    @property
    def dependencies(self) -> frozenset[EntityKind]:
        """Kinds whose entities this kind's documents may reference."""
        return _DEPENDENCIES.get(self, frozenset())

    @classmethod
    def ordered(cls) -> list[EntityKind]:
        """Return all kinds in dependency (replay) order."""
        return list(_ORDER)

    @classmethod
    def from_prefix(cls, prefix: str) -> EntityKind:
        """Look up a kind by its token prefix.

        Raises:
            ValueError: If the prefix names no kind.
        """
        return cls(prefix)


_ORDER: tuple[EntityKind, ...] = tuple(EntityKind)

_LABELS: dict[EntityKind, str] = {
    EntityKind.CREDENTIAL: "credentials",
    EntityKind.FILTER: "filters",
    EntityKind.REPORT_FORMAT: "report formats",
    EntityKind.SCAN_CONFIG: "scan configs",
    EntityKind.SLAVE: "slaves",
    EntityKind.SCHEDULE: "schedules",
    EntityKind.TARGET: "targets",
    EntityKind.ALERT: "alerts",
    EntityKind.TASK: "tasks",
    EntityKind.NOTE: "notes",
    EntityKind.OVERRIDE: "overrides",
}

_COMMANDS: dict[EntityKind, str] = {
    EntityKind.CREDENTIAL: "create_lsc_credential",
    EntityKind.FILTER: "create_filter",
    EntityKind.REPORT_FORMAT: "create_report_format",
    EntityKind.SCAN_CONFIG: "create_config",
    EntityKind.SLAVE: "create_slave",
    EntityKind.SCHEDULE: "create_schedule",
    EntityKind.TARGET: "create_target",
    EntityKind.ALERT: "create_alert",
    EntityKind.TASK: "create_task",
    EntityKind.NOTE: "create_note",
    EntityKind.OVERRIDE: "create_override",
}

_DEPENDENCIES: dict[EntityKind, frozenset[EntityKind]] = {
    EntityKind.TARGET: frozenset({EntityKind.CREDENTIAL}),
    EntityKind.ALERT: frozenset({EntityKind.FILTER, EntityKind.REPORT_FORMAT}),
    EntityKind.TASK: frozenset(
        {
            EntityKind.SCAN_CONFIG,
            EntityKind.TARGET,
            EntityKind.SLAVE,
            EntityKind.SCHEDULE,
            EntityKind.ALERT,
        }
    ),
    EntityKind.NOTE: frozenset({EntityKind.TASK}),
    EntityKind.OVERRIDE: frozenset({EntityKind.TASK}),
}


@dataclass(frozen=True, slots=True)
class Ref:
    """Typed reference to the entity with a given ordinal of a given kind.

    Attributes:
        kind: Kind of the referenced entity.
        ordinal: 1-based ordinal of the referenced entity in the snapshot.
    """

    kind: EntityKind
    ordinal: int

    def __post_init__(self) -> None:
        """Validate the ordinal."""
        if self.ordinal < 1:
            msg = f"Ordinal must be positive, got {self.ordinal}"
            raise ValueError(msg)

    @property
    def token(self) -> str:
        """Symbolic token form, e.g. ``target_3``."""
        return f"{self.kind.prefix}_{self.ordinal}"

    @classmethod
    def parse(cls, token: str) -> Ref:
        """Parse a symbolic token.

        Args:
            token: Token of the form ``{prefix}_{ordinal}``.

        Returns:
            The parsed reference.

        Raises:
            ValueError: If the token is malformed or names an unknown kind.
        """
        prefix, sep, ordinal = token.rpartition("_")
        if not sep or not ordinal.isdigit():
            msg = f"Malformed reference token: {token!r}"
            raise ValueError(msg)
        return cls(EntityKind.from_prefix(prefix), int(ordinal))

    def __str__(self) -> str:
        return self.token


@dataclass(frozen=True, slots=True)
class ManifestEntry:
    """One manifest line: the ordinal and name of a snapshotted entity.

    Attributes:
        kind: Entity kind.
        ordinal: 1-based ordinal within the kind.
        name: Merge key of the entity.
    """

    kind: EntityKind
    ordinal: int
    name: str

    @property
    def ref(self) -> Ref:
        """Reference to this entry."""
        return Ref(self.kind, self.ordinal)

    @property
    def line(self) -> str:
        """Manifest line form, ``{prefix}_{ordinal}@{name}``."""
        return f"{self.ref.token}@{self.name}"

    @classmethod
    def parse(cls, line: str) -> ManifestEntry:
        """Parse a manifest line, splitting on the first ``@``.

        Raises:
            ValueError: If the line is malformed.
        """
        token, sep, name = line.partition("@")
        if not sep:
            msg = f"Manifest line without '@': {line!r}"
            raise ValueError(msg)
        ref = Ref.parse(token)
        return cls(kind=ref.kind, ordinal=ref.ordinal, name=name)


@dataclass(frozen=True, slots=True)
class Record:
    """One captured entity, ready to be written to a snapshot.

    Attributes:
        kind: Entity kind.
        ordinal: 1-based ordinal, assigned in encounter order.
        name: Merge key of the entity.
        source_identity: Identity on the exporting server. Never written
            into the creation document.
        document: Document that recreates the entity, or None for kinds
            that cannot be exported (credentials).
    """

    kind: EntityKind
    ordinal: int
    name: str
    source_identity: str
    document: CreationDocument | None = None
    warnings: tuple[str, ...] = field(default=())

    def __post_init__(self) -> None:
        """Check that the document only references earlier kinds."""
        if self.document is None:
            return
        for ref in self.document.refs:
            if ref.kind.rank >= self.kind.rank:
                msg = (
                    f"{self.kind.prefix} {self.ordinal} references {ref.token}, "
                    f"which is not an earlier kind"
                )
                raise ValueError(msg)

    @property
    def ref(self) -> Ref:
        """Reference to this record."""
        return Ref(self.kind, self.ordinal)

    @property
    def token(self) -> str:
        """Symbolic token of this record."""
        return self.ref.token

    @property
    def manifest_entry(self) -> ManifestEntry:
        """Manifest entry for this record."""
        return ManifestEntry(kind=self.kind, ordinal=self.ordinal, name=self.name)
