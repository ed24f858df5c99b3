"""Snapshot file I/O operations.

A snapshot is a gzip compressed tar archive holding:

- ``snapshot.toml``: metadata and the references declared by each document
- ``<prefix>.manifest``: one ``{prefix}_{ordinal}@{name}`` line per entity
- ``<prefix>_<ordinal>.xml``: the creation document of each entity

The writer fills a working directory which is then packed; the reader
loads an archive into memory and validates it before anything is
restored.
"""

import logging
import socket
import tarfile
import tomllib
import xml.etree.ElementTree as ET
from datetime import UTC, datetime
from pathlib import Path, PurePosixPath
from typing import Any, BinaryIO

import tomli_w

from ompsnap import __version__
from ompsnap.models.entity import EntityKind, ManifestEntry, Record, Ref
from ompsnap.protocol.document import CreationDocument

logger = logging.getLogger(__name__)

INDEX_FILE = "snapshot.toml"
MANIFEST_SUFFIX = ".manifest"
DOCUMENT_SUFFIX = ".xml"


class SnapshotError(Exception):
    """Base exception for snapshot-related errors."""


class SnapshotNotFoundError(SnapshotError):
    """Raised when a snapshot archive is not found."""


class SnapshotFormatError(SnapshotError):
    """Raised when a snapshot archive is malformed or incomplete."""


def manifest_name(kind: EntityKind) -> str:
    """File name of a kind's manifest."""
    return f"{kind.prefix}{MANIFEST_SUFFIX}"


def document_name(ref: Ref) -> str:
    """File name of a record's creation document."""
    return f"{ref.token}{DOCUMENT_SUFFIX}"


class SnapshotWriter:
    """Write records into a snapshot working directory.

    Attributes:
        directory: Working directory receiving the snapshot files.
        source: Host the snapshot was taken from.
    """

    def __init__(self, directory: Path, *, source: str | None = None) -> None:
        self.directory = directory
        self.source = source or socket.gethostname()
        self._references: dict[str, list[str]] = {}
        self._counts: dict[EntityKind, int] = dict.fromkeys(EntityKind, 0)

    def write(self, record: Record) -> None:
        """Append a record to its manifest and store its document.

        Raises:
            SnapshotError: If the files cannot be written.
        """
        try:
            with open(self.directory / manifest_name(record.kind), "a", encoding="utf-8") as f:
                f.write(record.manifest_entry.line + "\n")
            if record.document is not None:
                path = self.directory / document_name(record.ref)
                path.write_text(record.document.xml + "\n", encoding="utf-8")
        except OSError as e:
            raise SnapshotError(f"Failed to write {record.token}: {e}") from e

        if record.document is not None and record.document.refs:
            self._references[record.token] = [ref.token for ref in record.document.refs]
        self._counts[record.kind] += 1
        logger.debug("Wrote %s (%s)", record.token, record.name)

    def count(self, kind: EntityKind) -> int:
        """Number of records written for a kind."""
        return self._counts[kind]

    def close(self) -> Path:
        """Write the snapshot index.

        Returns:
            Path of the index file.

        Raises:
            SnapshotError: If the index cannot be written.
        """
        data: dict[str, Any] = {
            "meta": {
                "version": __version__,
                "created": datetime.now(UTC).isoformat(),
                "source": self.source,
                "counts": {k.prefix: n for k, n in self._counts.items() if n},
            },
            "references": self._references,
        }
        path = self.directory / INDEX_FILE
        try:
            with open(path, "wb") as f:
                tomli_w.dump(data, f)
        except OSError as e:
            raise SnapshotError(f"Failed to write snapshot index: {e}") from e
        return path


def pack_snapshot(directory: Path, target: Path | BinaryIO) -> None:
    """Pack a snapshot working directory into an archive.

    Args:
        directory: Directory filled by a SnapshotWriter.
        target: Archive path, or a binary stream for ``-f -``.

    Raises:
        SnapshotError: If the archive cannot be written.
    """
    files = sorted(p for p in directory.iterdir() if p.is_file())
    try:
        if isinstance(target, Path):
            target.parent.mkdir(parents=True, exist_ok=True)
            archive = tarfile.open(target, "w:gz")
        else:
            archive = tarfile.open(fileobj=target, mode="w|gz")
        with archive:
            for path in files:
                archive.add(path, arcname=path.name)
    except (OSError, tarfile.TarError) as e:
        raise SnapshotError(f"Failed to write snapshot archive: {e}") from e
    logger.info("Packed %d file(s) from %s", len(files), directory)


def _read_archive(source: Path | BinaryIO) -> dict[str, bytes]:
    files: dict[str, bytes] = {}
    if isinstance(source, Path):
        if not source.is_file():
            raise SnapshotNotFoundError(f"{source.name} not found")
        archive = tarfile.open(source, "r:gz")
    else:
        archive = tarfile.open(fileobj=source, mode="r|gz")
    with archive:
        for member in archive:
            if not member.isfile():
                continue
            extracted = archive.extractfile(member)
            if extracted is None:
                continue
            files[PurePosixPath(member.name).name] = extracted.read()
    return files


class SnapshotReader:
    """Validated, in-memory view of a snapshot archive.

    Example:
        >>> reader = SnapshotReader.open(Path("prod.tgz"))
        >>> for entry in reader.manifest(EntityKind.FILTER):
        ...     print(entry.line)
    """

    def __init__(self, files: dict[str, bytes]) -> None:
        """Load and validate snapshot files.

        Args:
            files: File contents by archive member name.

        Raises:
            SnapshotFormatError: If the snapshot is malformed or incomplete.
        """
        self._files = files
        self.meta, references = self._load_index()
        self._manifests = {kind: self._load_manifest(kind) for kind in EntityKind}
        self._documents: dict[Ref, CreationDocument] = {}
        for kind, entries in self._manifests.items():
            for entry in entries:
                if kind is EntityKind.CREDENTIAL:
                    continue
                self._documents[entry.ref] = self._load_document(entry, references)

    @classmethod
    def open(cls, source: Path | BinaryIO) -> "SnapshotReader":
        """Read a snapshot archive.

        Args:
            source: Archive path, or a binary stream for ``-f -``.

        Returns:
            Validated SnapshotReader.

        Raises:
            SnapshotNotFoundError: If the archive does not exist.
            SnapshotFormatError: If the archive is unreadable or invalid.
        """
        try:
            files = _read_archive(source)
        except SnapshotError:
            raise
        except (OSError, EOFError, tarfile.TarError) as e:
            raise SnapshotFormatError(f"Failed to read snapshot archive: {e}") from e
        return cls(files)

    def _text(self, name: str) -> str | None:
        data = self._files.get(name)
        if data is None:
            return None
        try:
            return data.decode("utf-8")
        except UnicodeDecodeError as e:
            raise SnapshotFormatError(f"{name} is not valid UTF-8: {e}") from e

    def _load_index(self) -> tuple[dict[str, Any], dict[str, list[str]]]:
        text = self._text(INDEX_FILE)
        if text is None:
            raise SnapshotFormatError(f"Snapshot has no {INDEX_FILE}")
        try:
            data = tomllib.loads(text)
        except tomllib.TOMLDecodeError as e:
            raise SnapshotFormatError(f"Invalid {INDEX_FILE}: {e}") from e
        meta = data.get("meta", {})
        references = data.get("references", {})
        if not isinstance(meta, dict) or not isinstance(references, dict):
            raise SnapshotFormatError(f"Invalid {INDEX_FILE}: unexpected layout")
        return meta, references

    def _load_manifest(self, kind: EntityKind) -> list[ManifestEntry]:
        name = manifest_name(kind)
        text = self._text(name)
        if text is None:
            return []

        entries: list[ManifestEntry] = []
        for number, line in enumerate(text.splitlines(), start=1):
            if not line.strip():
                continue
            try:
                entry = ManifestEntry.parse(line)
            except ValueError as e:
                raise SnapshotFormatError(f"{name} line {number}: {e}") from e
            if entry.kind is not kind:
                msg = f"{name} line {number}: entry of kind {entry.kind.prefix}"
                raise SnapshotFormatError(msg)
            if entry.ordinal != len(entries) + 1:
                msg = f"{name} line {number}: expected ordinal {len(entries) + 1}, got {entry.ordinal}"
                raise SnapshotFormatError(msg)
            entries.append(entry)
        return entries

    def _load_document(
        self, entry: ManifestEntry, references: dict[str, list[str]]
    ) -> CreationDocument:
        name = document_name(entry.ref)
        xml = self._text(name)
        if xml is None:
            raise SnapshotFormatError(f"Snapshot has no {name} for {entry.line}")
        try:
            root = ET.fromstring(xml)
        except ET.ParseError as e:
            raise SnapshotFormatError(f"{name} is not well-formed XML: {e}") from e
        if root.tag != entry.kind.command:
            msg = f"{name}: expected <{entry.kind.command}>, found <{root.tag}>"
            raise SnapshotFormatError(msg)

        refs: list[Ref] = []
        for token in references.get(entry.ref.token, []):
            try:
                ref = Ref.parse(token)
            except ValueError as e:
                raise SnapshotFormatError(f"{entry.ref.token}: {e}") from e
            if ref.kind.rank >= entry.kind.rank:
                msg = f"{entry.ref.token} references {token}, which is not an earlier kind"
                raise SnapshotFormatError(msg)
            if ref.ordinal > len(self._manifests.get(ref.kind, [])):
                raise SnapshotFormatError(f"{entry.ref.token} references unknown {token}")
            refs.append(ref)
        return CreationDocument(xml=xml.strip(), refs=tuple(refs))

    def manifest(self, kind: EntityKind) -> list[ManifestEntry]:
        """Return the manifest entries of a kind, in replay order."""
        return list(self._manifests[kind])

    def document(self, entry: ManifestEntry) -> CreationDocument:
        """Return the creation document of a manifest entry.

        Raises:
            SnapshotFormatError: If the entry has no document.
        """
        try:
            return self._documents[entry.ref]
        except KeyError:
            raise SnapshotFormatError(f"No creation document for {entry.line}") from None

    @property
    def total(self) -> int:
        """Number of entries across all kinds."""
        return sum(len(entries) for entries in self._manifests.values())
