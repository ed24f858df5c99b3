"""Streaming tag reader for OMP responses.

OMP responses are treated as a flat stream of tags rather than a document
tree: the text is split on ``<`` and ``>``, and every tag becomes one
event carrying its attributes and the text that follows it up to the next
tag. No well-formedness is checked; malformed input yields best-effort
events.
"""

import html
import re
from collections.abc import Iterator
from dataclasses import dataclass, field

# key=value pairs, value double quoted, single quoted or bare
_ATTRIBUTE_RE = re.compile(r"""([^\s=]+)\s*=\s*("[^"]*"|'[^']*'|[^\s"']\S*)""")


@dataclass(frozen=True, slots=True)
class TagEvent:
    """One tag of a response.

    Attributes:
        name: Tag name. Closing tags carry a leading ``/``.
        attributes: Unescaped attribute values by name.
        content: Trimmed, unescaped text between this tag and the next.
    """

    name: str
    attributes: dict[str, str] = field(default_factory=dict)
    content: str = ""

    @property
    def is_closing(self) -> bool:
        """Check if this is a closing tag."""
        return self.name.startswith("/")

    @property
    def tag(self) -> str:
        """Tag name without the closing marker."""
        return self.name.removeprefix("/")


def _unescape(value: str) -> str:
    return html.unescape(value.strip())


def _parse_attributes(raw: str) -> dict[str, str]:
    attributes: dict[str, str] = {}
    for key, value in _ATTRIBUTE_RE.findall(raw):
        if len(value) >= 2 and value[0] == value[-1] and value[0] in "\"'":
            value = value[1:-1]
        attributes[key] = _unescape(value)
    return attributes


def _events(raw: str, content: str) -> Iterator[TagEvent]:
    """Turn the text between one ``<`` and ``>`` into events."""
    raw = raw.strip()
    if not raw or raw[0] in "?!":
        return

    if raw.startswith("/"):
        yield TagEvent(name="/" + raw[1:].strip(), content=_unescape(content))
        return

    self_closing = raw.endswith("/")
    if self_closing:
        raw = raw[:-1].rstrip()

    parts = raw.split(None, 1)
    if not parts:
        return
    name = parts[0]
    attributes = _parse_attributes(parts[1]) if len(parts) > 1 else {}

    if self_closing:
        yield TagEvent(name=name, attributes=attributes)
        yield TagEvent(name="/" + name, content=_unescape(content))
    else:
        yield TagEvent(name=name, attributes=attributes, content=_unescape(content))


def iter_tags(text: str) -> Iterator[TagEvent]:
    """Iterate over the tags of a response.

    Text before the first tag is ignored. Self-closing tags produce an
    opening event followed by a closing event. Processing instructions and
    comments are skipped.

    Args:
        text: Raw response text.

    Yields:
        TagEvent for each tag, in document order.
    """
    start = text.find("<")
    while start != -1:
        end = text.find(">", start + 1)
        if end == -1:
            return
        following = text.find("<", end + 1)
        content = text[end + 1 :] if following == -1 else text[end + 1 : following]
        yield from _events(text[start + 1 : end], content)
        start = following
