"""Abstract base class for entity decoders.

A decoder turns the tag stream of one ``get_*`` response into entities of
a single kind. Each decoder is an explicit finite-state machine: the
current ``Section`` decides what a tag means, and a transition table keyed
by ``(section, tag)`` moves between ``Section.GLOBAL`` and the sections the
decoder declares. Sections do not nest; section tags seen while another
section is active are ordinary tags of that section.
"""

import logging
from abc import ABC, abstractmethod
from collections.abc import Callable, Iterator, Mapping
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Any, ClassVar

from ompsnap.core.resolver import ReferenceResolver
from ompsnap.models.entity import EntityKind, Ref
from ompsnap.models.report import RunReport
from ompsnap.protocol.document import CreationDocument
from ompsnap.protocol.service import ProtocolService
from ompsnap.protocol.tags import TagEvent, iter_tags

logger = logging.getLogger(__name__)


class Section(Enum):
    """Part of an entity the decoder is currently reading."""

    GLOBAL = "global"
    # Present on every entity, never exported
    OWNER = "owner"
    PERMISSIONS = "permissions"
    USER_TAGS = "user_tags"
    # Listings of related entities, never exported
    TARGETS = "targets"
    ALERTS = "alerts"
    TASKS = "tasks"
    PARAM = "param"
    FAMILIES = "families"
    PREFERENCES = "preferences"
    RESULT = "result"
    CURRENT_REPORT = "current_report"
    FIRST_REPORT = "first_report"
    LAST_REPORT = "last_report"
    SECOND_LAST_REPORT = "second_last_report"
    # Alerts
    CONDITION = "condition"
    EVENT = "event"
    METHOD = "method"
    FILTER = "filter"
    # Schedules
    SIMPLE_DURATION = "simple_duration"
    SIMPLE_PERIOD = "simple_period"
    # Targets
    SSH_CREDENTIAL = "ssh_credential"
    SMB_CREDENTIAL = "smb_credential"
    ESXI_CREDENTIAL = "esxi_credential"
    PORT_LIST = "port_list"
    # Tasks
    CONFIG = "config"
    TARGET = "target"
    SLAVE = "slave"
    SCHEDULE = "schedule"
    SCANNER = "scanner"
    ALERT = "alert"
    PREFERENCE = "preference"
    # Notes and overrides
    NVT = "nvt"
    TASK = "task"
    TEXT = "text"


# Sections every decoder ignores
COMMON_SECTIONS: dict[str, Section] = {
    "owner": Section.OWNER,
    "permissions": Section.PERMISSIONS,
    "user_tags": Section.USER_TAGS,
}

Transitions = dict[tuple[Section, str], Section]


def build_transitions(sections: Mapping[str, Section]) -> Transitions:
    """Build the transition table for a section map.

    An opening section tag moves ``GLOBAL -> section``; its closing tag
    moves ``section -> GLOBAL``.

    Raises:
        ValueError: If two tags share a section or a tag maps to GLOBAL.
    """
    table: Transitions = {}
    seen: set[Section] = set()
    for tag, section in sections.items():
        if section is Section.GLOBAL or section in seen:
            msg = f"Invalid section mapping for tag {tag!r}: {section}"
            raise ValueError(msg)
        seen.add(section)
        table[(Section.GLOBAL, tag)] = section
        table[(section, f"/{tag}")] = Section.GLOBAL
    return table


def utcnow() -> datetime:
    """Current time in UTC."""
    return datetime.now(UTC)


# Timestamp format of older managers, e.g. "Mon Apr 20 16:54:28 2015"
_LEGACY_TIMESTAMP = "%a %b %d %H:%M:%S %Y"


def parse_timestamp(value: str) -> datetime | None:
    """Parse a timestamp as reported by the manager.

    Args:
        value: ISO 8601 or legacy ctime-style timestamp.

    Returns:
        Parsed datetime (naive if the value carries no offset), or None for
        an empty value.

    Raises:
        ValueError: If the value is not a recognized timestamp.
    """
    value = value.strip()
    if not value:
        return None
    try:
        return datetime.fromisoformat(value)
    except ValueError:
        pass
    try:
        return datetime.strptime(value, _LEGACY_TIMESTAMP)
    except ValueError:
        msg = f"Unrecognized timestamp: {value!r}"
        raise ValueError(msg) from None


@dataclass(frozen=True, slots=True)
class DecodedEntity:
    """One entity read from a listing.

    Attributes:
        ordinal: 1-based position in the listing.
        identity: Identity on the server that produced the listing.
        name: Merge key of the entity.
        fields: Accumulated field values, specific to the kind.
    """

    ordinal: int
    identity: str
    name: str
    fields: dict[str, Any] = field(default_factory=dict)


@dataclass
class ExportContext:
    """Collaborators a decoder needs to build creation documents.

    Attributes:
        service: Source server, for detail queries.
        resolver: Source identities of the entities exported so far.
        report: Run report receiving warnings.
        slave_password: Password of the active connection profile.
        clock: Current time, used for expiry computations.
    """

    service: ProtocolService
    resolver: ReferenceResolver
    report: RunReport
    slave_password: str = ""
    clock: Callable[[], datetime] = utcnow

    def reference(self, kind: EntityKind, identity: str, owner: str) -> Ref | str | None:
        """Turn a source identity into a snapshot reference.

        Identities of entities outside the snapshot are returned unchanged,
        with a warning.

        Args:
            kind: Kind of the referenced entity.
            identity: Source identity, possibly empty.
            owner: Description of the referencing entity for the warning.

        Returns:
            A Ref, the identity itself, or None for an empty identity.
        """
        if not identity:
            return None
        ref = self.resolver.ref_for(kind, identity)
        if ref is not None:
            return ref
        message = (
            f"{owner} references {kind.prefix} {identity}, which is not part of "
            f"the snapshot; the identity is kept as is"
        )
        logger.warning(message)
        self.report.warn(message)
        return identity


class Decoder(ABC):
    """Abstract base class for all entity decoders.

    Subclasses declare the entity tag, the listing request, their sections
    and the plain text fields read in ``Section.GLOBAL``; they override the
    hooks to capture anything else.

    Example:
        >>> decoder = FilterDecoder()
        >>> for entity in decoder.decode(service.execute(decoder.request)):
        ...     print(entity.ordinal, entity.name)
    """

    kind: ClassVar[EntityKind]
    entity_tag: ClassVar[str]
    request: ClassVar[str]
    sections: ClassVar[Mapping[str, Section]] = {}
    global_fields: ClassVar[tuple[str, ...]] = ("name",)
    transitions: ClassVar[Transitions] = {}

    def __init_subclass__(cls, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        cls.transitions = build_transitions({**COMMON_SECTIONS, **cls.sections})

    def decode(self, response: str) -> Iterator[DecodedEntity]:
        """Decode all entities of a listing, in encounter order.

        Args:
            response: Raw ``get_*`` response.

        Yields:
            DecodedEntity with ordinals 1..N.
        """
        section = Section.GLOBAL
        fields: dict[str, Any] | None = None
        identity = ""
        ordinal = 0
        closing_tag = f"/{self.entity_tag}"

        for event in iter_tags(response):
            if event.name == self.entity_tag and section is Section.GLOBAL:
                ordinal += 1
                identity = event.attributes.get("id", "")
                fields = self.start()
                continue
            if fields is None:
                continue
            if event.name == closing_tag:
                yield DecodedEntity(
                    ordinal=ordinal,
                    identity=identity,
                    name=self.merge_name(fields),
                    fields=fields,
                )
                fields = None
                section = Section.GLOBAL
                continue

            target = self.transitions.get((section, event.name))
            if target is None:
                self.field(section, event, fields)
            elif target is Section.GLOBAL:
                self.leave(section, event, fields)
                section = target
            else:
                self.enter(target, event, fields)
                section = target

    def inventory(self, response: str) -> dict[str, str]:
        """Map names to identities for a listing of existing entities."""
        return {entity.name: entity.identity for entity in self.decode(response)}

    def start(self) -> dict[str, Any]:
        """Return fresh accumulators for a new entity."""
        return dict.fromkeys(self.global_fields, "")

    def enter(self, section: Section, event: TagEvent, fields: dict[str, Any]) -> None:
        """Handle the opening tag of a section."""

    def leave(self, section: Section, event: TagEvent, fields: dict[str, Any]) -> None:
        """Handle the closing tag of a section."""

    def field(self, section: Section, event: TagEvent, fields: dict[str, Any]) -> None:
        """Handle a tag that is not a section boundary."""
        if section is Section.GLOBAL and event.name in self.global_fields:
            fields[event.name] = event.content

    def merge_name(self, fields: Mapping[str, Any]) -> str:
        """Return the name used to merge entities across servers."""
        return str(fields.get("name", ""))

    @abstractmethod
    def build(self, entity: DecodedEntity, context: ExportContext) -> CreationDocument | None:
        """Build the creation document of an entity.

        Args:
            entity: Decoded entity.
            context: Export collaborators.

        Returns:
            Creation document, or None if the kind cannot be recreated.

        Raises:
            ProtocolError: If a detail query fails.
        """

    def finish(self, count: int, context: ExportContext) -> None:
        """Hook called after all entities of the kind were exported."""
