"""Creation documents with typed references.

A creation document is the OMP ``create_*`` command that recreates one
entity. References to other snapshotted entities are carried as typed
``Ref`` values next to the XML; in the XML itself they appear as symbolic
tokens in attribute values or element text. On restore, exactly those
positions are replaced by destination identities.
"""

import logging
import xml.etree.ElementTree as ET
from collections.abc import Callable, Iterable
from dataclasses import dataclass

from ompsnap.models.entity import Ref
from ompsnap.protocol.tags import iter_tags

logger = logging.getLogger(__name__)

# Marker replacing newlines in note and override texts
NEWLINE_MARKER = "#n"


def escape_newlines(text: str) -> str:
    """Replace newlines by the single-line marker."""
    return text.replace("\n", NEWLINE_MARKER)


def unescape_newlines(text: str) -> str:
    """Restore newlines replaced by ``escape_newlines``."""
    return text.replace(NEWLINE_MARKER, "\n")


@dataclass(frozen=True, slots=True)
class CreationDocument:
    """Serialized ``create_*`` command plus the references it declares.

    Attributes:
        xml: Serialized command, with references as symbolic tokens.
        refs: References declared by the document.
    """

    xml: str
    refs: tuple[Ref, ...] = ()

    @property
    def command(self) -> str:
        """Name of the root element, e.g. ``create_filter``."""
        for event in iter_tags(self.xml):
            if not event.is_closing:
                return event.name
        msg = "Creation document has no root element"
        raise ValueError(msg)

    @classmethod
    def verbatim(cls, command: str, body: str) -> "CreationDocument":
        """Wrap a raw response in a creation envelope.

        Used for report formats and scan configs, whose detail responses
        are accepted as-is inside the matching ``create_*`` command.

        Args:
            command: Envelope element, e.g. ``create_config``.
            body: Raw detail response.

        Returns:
            Document without references.
        """
        return cls(xml=f"<{command}>\n{body.strip()}\n</{command}>")

    def render(
        self,
        resolve: Callable[[Ref], str],
        *,
        unescape_text: bool = False,
    ) -> str:
        """Produce the request to submit to the destination.

        Every attribute value or element text equal to a declared token is
        replaced by ``resolve(ref)``. Documents without references are
        returned unchanged unless text unescaping is requested.

        Args:
            resolve: Maps a reference to a destination identity.
            unescape_text: Restore newlines in ``text`` elements.

        Returns:
            Request text.

        Raises:
            UnresolvedReferenceError: Propagated from ``resolve``.
            ValueError: If the document is not well-formed XML.
        """
        if not self.refs and not unescape_text:
            return self.xml

        identities = {ref.token: resolve(ref) for ref in self.refs}

        try:
            root = ET.fromstring(self.xml)
        except ET.ParseError as e:
            msg = f"Invalid creation document: {e}"
            raise ValueError(msg) from e

        for element in root.iter():
            for key, value in element.attrib.items():
                if value in identities:
                    element.set(key, identities[value])
            if element.text is not None:
                if element.text in identities:
                    element.text = identities[element.text]
                elif unescape_text and element.tag == "text":
                    element.text = unescape_newlines(element.text)

        return ET.tostring(root, encoding="unicode")


class DocumentBuilder:
    """Build a creation document element by element.

    Example:
        >>> builder = DocumentBuilder("create_task")
        >>> builder.text("name", "Weekly")
        >>> builder.reference("target", Ref(EntityKind.TARGET, 3))
        >>> document = builder.build()
    """

    def __init__(self, command: str) -> None:
        self._root = ET.Element(command)
        self._refs: list[Ref] = []

    @property
    def root(self) -> ET.Element:
        """Root element of the document."""
        return self._root

    def text(self, tag: str, value: str | None, parent: ET.Element | None = None) -> ET.Element:
        """Append an element with text content, empty when value is None."""
        element = ET.SubElement(self._root if parent is None else parent, tag)
        element.text = value or ""
        return element

    def optional(
        self, tag: str, value: str | None, parent: ET.Element | None = None
    ) -> ET.Element | None:
        """Append an element only when value is non-empty."""
        if not value:
            return None
        return self.text(tag, value, parent)

    def token(self, target: Ref | str) -> str:
        """Return the text for a reference and declare it.

        Args:
            target: A snapshot reference, or an identity passed through
                verbatim because its entity is not part of the snapshot.
        """
        if isinstance(target, Ref):
            if target not in self._refs:
                self._refs.append(target)
            return target.token
        return target

    def reference(
        self,
        tag: str,
        target: Ref | str | None,
        parent: ET.Element | None = None,
        attribute: str = "id",
    ) -> ET.Element | None:
        """Append an element referencing another entity through an attribute."""
        if target is None or target == "":
            return None
        element = ET.SubElement(self._root if parent is None else parent, tag)
        element.set(attribute, self.token(target))
        return element

    def references(self, tag: str, targets: Iterable[Ref | str]) -> None:
        """Append one referencing element per target."""
        for target in targets:
            self.reference(tag, target)

    def build(self) -> CreationDocument:
        """Serialize the document."""
        xml = ET.tostring(self._root, encoding="unicode")
        logger.debug("Built %s with %d reference(s)", self._root.tag, len(self._refs))
        return CreationDocument(xml=xml, refs=tuple(self._refs))
