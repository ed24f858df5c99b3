"""Reference resolver.

Per-run bookkeeping between snapshot ordinals and server identities. During
an export the identities are those of the source server; during an import
they are those of the destination. A resolver is never persisted.
"""

import logging
from collections.abc import Mapping

from ompsnap.models.entity import EntityKind, Ref

logger = logging.getLogger(__name__)


class UnresolvedReferenceError(Exception):
    """Raised when a reference has no identity on the current server."""

    def __init__(self, ref: Ref) -> None:
        super().__init__(f"reference {ref.token} is not resolved")
        self.ref = ref


class ReferenceResolver:
    """Bidirectional ordinal/identity table per kind, plus name inventory.

    Example:
        >>> resolver = ReferenceResolver()
        >>> resolver.register(EntityKind.TARGET, 3, "t-99")
        >>> resolver.identity_for(Ref(EntityKind.TARGET, 3))
        't-99'
    """

    def __init__(self) -> None:
        self._identities: dict[EntityKind, dict[int, str]] = {k: {} for k in EntityKind}
        self._ordinals: dict[EntityKind, dict[str, int]] = {k: {} for k in EntityKind}
        self._inventory: dict[EntityKind, dict[str, str]] = {k: {} for k in EntityKind}

    def register(self, kind: EntityKind, ordinal: int, identity: str) -> None:
        """Record that ``ordinal`` of ``kind`` is ``identity`` on this server."""
        self._identities[kind][ordinal] = identity
        self._ordinals[kind][identity] = ordinal
        logger.debug("Registered %s_%d as %s", kind.prefix, ordinal, identity)

    def identity_for(self, ref: Ref) -> str:
        """Return the identity a reference resolves to.

        Raises:
            UnresolvedReferenceError: If the ordinal was never registered.
        """
        try:
            return self._identities[ref.kind][ref.ordinal]
        except KeyError:
            raise UnresolvedReferenceError(ref) from None

    def ordinal_for(self, kind: EntityKind, identity: str) -> int | None:
        """Return the ordinal registered for an identity, if any."""
        return self._ordinals[kind].get(identity)

    def ref_for(self, kind: EntityKind, identity: str) -> Ref | None:
        """Return a typed reference for an identity, if it was registered."""
        ordinal = self.ordinal_for(kind, identity)
        return None if ordinal is None else Ref(kind, ordinal)

    def set_inventory(self, kind: EntityKind, inventory: Mapping[str, str]) -> None:
        """Replace the name to identity map of existing entities of a kind."""
        self._inventory[kind] = dict(inventory)

    def lookup_name(self, kind: EntityKind, name: str) -> str | None:
        """Return the identity of an existing entity by name, if any."""
        return self._inventory[kind].get(name)

    def resolved(self, kind: EntityKind) -> int:
        """Number of ordinals registered for a kind."""
        return len(self._identities[kind])
