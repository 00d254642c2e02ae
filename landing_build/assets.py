"""Content-addressed catalog of source media for a single build.

:class:`AssetRegistry` assigns every source image and font a canonical
identity: the SHA-256 digest of its bytes. Paths are aliases; two
byte-identical files collapse into one :class:`AssetRecord`. A registry is
created per build and passed explicitly to the transcoder, packager, and
composer so registration order can never leak between builds.

Examples
--------
>>> from pathlib import Path
>>> registry = AssetRegistry(Path("src"))  # doctest: +SKIP
>>> record = registry.register(Path("src/images/hero.jpg"))  # doctest: +SKIP
>>> record.kind  # doctest: +SKIP
<AssetKind.IMAGE: 'image'>
"""

from __future__ import annotations

import dataclasses as dc
import enum
import hashlib
import typing as typ
from pathlib import Path

from landing_build._constants import FONT_EXTENSIONS, IMAGE_EXTENSIONS
from landing_build.errors import NotFound, UnsupportedKind
from landing_build.log import get_logger

if typ.TYPE_CHECKING:
    import collections.abc as cabc

logger = get_logger(__name__)


class AssetKind(enum.StrEnum):
    """Kinds of source media the registry accepts."""

    IMAGE = "image"
    FONT = "font"


@dc.dataclass(frozen=True, slots=True)
class AssetRecord:
    """A registered source asset identified by its content hash.

    Attributes
    ----------
    source_path : Path
        First path the content was registered under.
    kind : AssetKind
        Whether the asset is an image or a font.
    content_hash : str
        Hex SHA-256 digest of the file bytes.
    declared_usages : tuple[str, ...]
        Usage labels (``"hero:320"``, ``"font:sans"``) recorded by later stages.
    """

    source_path: Path
    kind: AssetKind
    content_hash: str
    declared_usages: tuple[str, ...] = ()

    @property
    def short_hash(self) -> str:
        """Return the first ten hex characters of the content hash."""
        return self.content_hash[:10]


def hash_bytes(data: bytes) -> str:
    """Return the hex SHA-256 digest of ``data``."""
    return hashlib.sha256(data).hexdigest()


def classify(path: Path) -> AssetKind:
    """Return the asset kind for ``path`` based on its extension.

    Raises
    ------
    UnsupportedKind
        If the extension is neither a recognized image nor font type.
    """
    suffix = path.suffix.lower()
    if suffix in IMAGE_EXTENSIONS:
        return AssetKind.IMAGE
    if suffix in FONT_EXTENSIONS:
        return AssetKind.FONT
    msg = f"Unsupported asset type '{suffix or path.name}'."
    raise UnsupportedKind(msg, asset_path=path)


class AssetRegistry:
    """Registry table mapping content hashes and path aliases to records."""

    def __init__(self, root: Path) -> None:
        """Create an empty registry rooted at the asset source directory.

        Parameters
        ----------
        root : Path
            Asset source tree; relative lookups and path aliases are keyed
            against it.
        """
        self.root = root
        self._records: dict[str, AssetRecord] = {}
        self._aliases: dict[str, str] = {}

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> cabc.Iterator[AssetRecord]:
        return iter(list(self._records.values()))

    def register(self, path: Path) -> AssetRecord:
        """Register ``path`` and return its (possibly pre-existing) record.

        Raises
        ------
        NotFound
            If ``path`` does not exist or is not a file.
        UnsupportedKind
            If the extension is not a recognized image or font type.
        """
        resolved = path if path.is_absolute() else self.root / path
        if not resolved.is_file():
            msg = f"Asset '{self._alias(resolved)}' does not exist."
            raise NotFound(msg, asset_path=self._alias(resolved))
        kind = classify(resolved)
        digest = hash_bytes(resolved.read_bytes())
        alias = self._alias(resolved)
        self._aliases[alias] = digest
        existing = self._records.get(digest)
        if existing is not None:
            if alias != self._alias(existing.source_path):
                logger.debug("asset.duplicate", path=alias, content_hash=digest[:10])
            return existing
        record = AssetRecord(source_path=resolved, kind=kind, content_hash=digest)
        self._records[digest] = record
        logger.debug("asset.registered", path=alias, kind=kind.value)
        return record

    def scan(self) -> list[AssetRecord]:
        """Register every recognized file under the root in sorted order.

        Hidden files and unrecognized extensions are skipped; a missing root
        yields an empty list.
        """
        if not self.root.is_dir():
            return []
        records: list[AssetRecord] = []
        for candidate in sorted(self.root.rglob("*")):
            relative = candidate.relative_to(self.root)
            if any(part.startswith(".") for part in relative.parts):
                continue
            if not candidate.is_file():
                continue
            suffix = candidate.suffix.lower()
            if suffix not in IMAGE_EXTENSIONS and suffix not in FONT_EXTENSIONS:
                continue
            record = self.register(candidate)
            if record not in records:
                records.append(record)
        logger.info("assets.scanned", root=str(self.root), records=len(records))
        return records

    def lookup(self, path: str | Path) -> AssetRecord | None:
        """Return the record registered under ``path``, if any."""
        candidate = Path(path)
        resolved = candidate if candidate.is_absolute() else self.root / candidate
        digest = self._aliases.get(self._alias(resolved))
        if digest is None:
            return None
        return self._records[digest]

    def get(self, content_hash: str) -> AssetRecord:
        """Return the record identified by ``content_hash``."""
        return self._records[content_hash]

    def record_usage(self, content_hash: str, usage: str) -> AssetRecord:
        """Append ``usage`` to the record's declared usages and return it."""
        record = self._records[content_hash]
        if usage in record.declared_usages:
            return record
        updated = dc.replace(
            record, declared_usages=(*record.declared_usages, usage)
        )
        self._records[content_hash] = updated
        return updated

    def display_path(self, record: AssetRecord) -> str:
        """Return the root-relative POSIX path used in reports and filenames."""
        return self._alias(record.source_path)

    def _alias(self, path: Path) -> str:
        try:
            return path.relative_to(self.root).as_posix()
        except ValueError:
            return path.as_posix()


__all__ = ["AssetKind", "AssetRecord", "AssetRegistry", "classify", "hash_bytes"]
