"""Assemble and publish the static output bundle.

:class:`StaticEmitter` turns the composed page, packaged faces, and staged
media into an :class:`ArtifactSet`: one entry document, content-hashed style
and script bundles, content-hashed variants and font binaries, fixed-path root
files, and a build manifest. Nothing in the set depends on wall-clock time or
filesystem iteration order, so identical inputs always yield identical bytes.

Publishing writes the set into a sibling temporary directory and swaps it into
place only once every file is written; a failed build leaves the previously
published bundle untouched.
"""

from __future__ import annotations

import dataclasses as dc
import json
import posixpath
import re
import shutil
import tempfile
import typing as typ
from html.parser import HTMLParser
from pathlib import Path
from urllib.parse import urlsplit

from landing_build._constants import (
    ASSETS_DIR,
    ENTRY_DOCUMENT,
    HASH_PREFIX_LENGTH,
    HASHED_NAME_TEMPLATE,
    MANIFEST_FILENAME,
    SITEMAP_FILENAME,
)
from landing_build.assets import hash_bytes
from landing_build.errors import NonDeterministicOutput, NotFound, UnresolvedReference
from landing_build.fonts import check_token_aliases
from landing_build.islands import build_island_bundle
from landing_build.log import get_logger

if typ.TYPE_CHECKING:
    import collections.abc as cabc

    from landing_build.composer import ComponentComposer, ComposedPage
    from landing_build.config import SiteConfig
    from landing_build.fonts import FontPackage
    from landing_build.staging import StagingArea

logger = get_logger(__name__)

COMPONENT_STYLESHEET = (
    Path(__file__).resolve().parent / "templates" / "styles" / "components.css"
)
URL_ATTRIBUTES = frozenset({"src", "href"})
CSS_URL_PATTERN = re.compile(r"url\(\s*[\"']?([^\"')]+)[\"']?\s*\)")
ROOT_FILE_LINKS: dict[str, dict[str, str]] = {
    "favicon.ico": {"rel": "icon", "href": "/favicon.ico", "sizes": "any"},
    "favicon.svg": {"rel": "icon", "href": "/favicon.svg", "type": "image/svg+xml"},
    "apple-touch-icon.png": {"rel": "apple-touch-icon", "href": "/apple-touch-icon.png"},
    "site.webmanifest": {"rel": "manifest", "href": "/site.webmanifest"},
}


@dc.dataclass(frozen=True, slots=True)
class OutputArtifact:
    """A file in the output bundle.

    Attributes
    ----------
    logical_path : str
        POSIX path relative to the output root.
    content_hash : str
        Hex SHA-256 digest of ``data``.
    data : bytes
        File contents.
    hashed : bool
        Whether ``logical_path`` embeds the content hash; fixed-path root
        files, the entry document, and the manifest do not.
    """

    logical_path: str
    content_hash: str
    data: bytes
    hashed: bool = True

    @classmethod
    def from_bytes(cls, logical_path: str, data: bytes, *, hashed: bool = True) -> OutputArtifact:
        return cls(logical_path, hash_bytes(data), data, hashed)


class ArtifactSet:
    """Ordered, write-once collection of output artifacts."""

    def __init__(self) -> None:
        self._artifacts: dict[str, OutputArtifact] = {}

    def __iter__(self) -> cabc.Iterator[OutputArtifact]:
        return iter([self._artifacts[key] for key in sorted(self._artifacts)])

    def __len__(self) -> int:
        return len(self._artifacts)

    def __contains__(self, logical_path: object) -> bool:
        return logical_path in self._artifacts

    def __getitem__(self, logical_path: str) -> OutputArtifact:
        return self._artifacts[logical_path]

    def add(self, artifact: OutputArtifact) -> None:
        """Add ``artifact``; re-adding a path with different bytes is an error."""
        existing = self._artifacts.get(artifact.logical_path)
        if existing is not None and existing.content_hash != artifact.content_hash:
            msg = f"Artifact '{artifact.logical_path}' was emitted twice with different bytes."
            raise NonDeterministicOutput(msg, asset_path=artifact.logical_path)
        self._artifacts[artifact.logical_path] = artifact

    def digests(self) -> dict[str, str]:
        """Return ``{logical_path: content_hash}`` for every artifact."""
        return {path: self._artifacts[path].content_hash for path in sorted(self._artifacts)}

    def by_suffix(self, suffix: str) -> list[OutputArtifact]:
        return [artifact for artifact in self if artifact.logical_path.endswith(suffix)]


def hashed_name(stem: str, data: bytes, ext: str) -> str:
    """Return ``assets/<stem>.<digest>.<ext>`` for ``data``."""
    digest = hash_bytes(data)[:HASH_PREFIX_LENGTH]
    return f"{ASSETS_DIR}/" + HASHED_NAME_TEMPLATE.format(stem=stem, digest=digest, ext=ext)


class StaticEmitter:
    """Produce and publish the deterministic output artifact set."""

    def __init__(self, config: SiteConfig) -> None:
        self.config = config

    def assemble(
        self,
        composer: ComponentComposer,
        fonts: FontPackage,
        staging: StagingArea,
    ) -> tuple[ArtifactSet, ComposedPage]:
        """Build bundles, compose the entry document, and collect artifacts.

        Raises
        ------
        NotFound
            If the token stylesheet or a fixed-path root file is missing.
        UnresolvedReference
            If a font alias or a hashed reference in the entry document does
            not resolve to an artifact.
        """
        artifacts = ArtifactSet()
        for logical_path, data in staging.items():
            artifacts.add(OutputArtifact.from_bytes(logical_path, data))

        stylesheet = self._style_bundle(fonts)
        style_path = hashed_name("styles", stylesheet, "css")
        artifacts.add(OutputArtifact.from_bytes(style_path, stylesheet))

        scripts: list[str] = []
        island_bundle = build_island_bundle(self.config.interactive_kinds)
        if island_bundle is not None:
            script_bytes = island_bundle.encode("utf-8")
            script_path = hashed_name("islands", script_bytes, "js")
            artifacts.add(OutputArtifact.from_bytes(script_path, script_bytes))
            scripts.append(script_path)

        head_links: list[dict[str, str]] = []
        for name in self.config.build.root_files:
            artifacts.add(self._root_file(name))
            if name in ROOT_FILE_LINKS:
                head_links.append(ROOT_FILE_LINKS[name])
        sitemap = self._sitemap(composer)
        if sitemap is not None:
            artifacts.add(sitemap)

        page = composer.compose(
            self.config.page,
            self.config.sections,
            stylesheets=[style_path],
            scripts=scripts,
            head_links=head_links,
        )
        html = page.html if page.html.endswith("\n") else page.html + "\n"
        artifacts.add(
            OutputArtifact.from_bytes(ENTRY_DOCUMENT, html.encode("utf-8"), hashed=False)
        )
        check_reference_integrity(artifacts)
        artifacts.add(self._manifest(artifacts))
        logger.info("emission.assembled", artifacts=len(artifacts))
        return artifacts, page

    def publish(self, artifacts: ArtifactSet, output_dir: Path | None = None) -> list[Path]:
        """Write ``artifacts`` and atomically swap them into ``output_dir``.

        Returns
        -------
        list[Path]
            Paths of the written files inside the published directory.
        """
        target = output_dir or self.config.build.output_dir
        parent = target.parent
        parent.mkdir(parents=True, exist_ok=True)
        staging_dir = Path(tempfile.mkdtemp(prefix=f".{target.name}-build-", dir=parent))
        backup: Path | None = None
        try:
            for artifact in artifacts:
                destination = staging_dir / artifact.logical_path
                destination.parent.mkdir(parents=True, exist_ok=True)
                destination.write_bytes(artifact.data)
            if target.exists():
                backup = Path(tempfile.mkdtemp(prefix=f".{target.name}-previous-", dir=parent))
                backup.rmdir()
                target.rename(backup)
            staging_dir.rename(target)
        except BaseException:
            shutil.rmtree(staging_dir, ignore_errors=True)
            if backup is not None and not target.exists():
                backup.rename(target)
            raise
        if backup is not None:
            shutil.rmtree(backup, ignore_errors=True)
        logger.info("emission.published", output_dir=str(target), artifacts=len(artifacts))
        return [target / artifact.logical_path for artifact in artifacts]

    def _style_bundle(self, fonts: FontPackage) -> bytes:
        parts: list[str] = []
        faces = fonts.stylesheet()
        if faces:
            parts.append(faces)
        token_path = self.config.build.stylesheet
        if token_path is not None:
            if not token_path.is_file():
                msg = f"Token stylesheet '{token_path}' does not exist."
                raise NotFound(msg, asset_path=token_path)
            tokens = token_path.read_text(encoding="utf-8")
            check_token_aliases(tokens, fonts, path=token_path.name)
            parts.append(tokens)
        parts.append(COMPONENT_STYLESHEET.read_text(encoding="utf-8"))
        return "\n".join(part.rstrip("\n") + "\n" for part in parts).encode("utf-8")

    def _root_file(self, name: str) -> OutputArtifact:
        source = self.config.build.source_dir / name
        if not source.is_file():
            msg = f"Root file '{name}' does not exist in the source directory."
            raise NotFound(msg, asset_path=name)
        return OutputArtifact.from_bytes(Path(name).as_posix(), source.read_bytes(), hashed=False)

    def _sitemap(self, composer: ComponentComposer) -> OutputArtifact | None:
        """Render ``sitemap.xml`` for the canonical URL.

        Nothing is emitted without a canonical URL, or when the source tree
        ships its own sitemap as a root file.
        """
        canonical_url = self.config.page.canonical_url
        if canonical_url is None or SITEMAP_FILENAME in self.config.build.root_files:
            return None
        xml = composer.env.get_template("sitemap.xml.jinja").render(loc=canonical_url)
        return OutputArtifact.from_bytes(SITEMAP_FILENAME, xml.encode("utf-8"), hashed=False)

    def _manifest(self, artifacts: ArtifactSet) -> OutputArtifact:
        payload = {
            "entry": ENTRY_DOCUMENT,
            "interactive_sections": sorted(
                kind.value for kind in self.config.interactive_kinds
            ),
            "artifacts": {
                artifact.logical_path: {
                    "sha256": artifact.content_hash,
                    "hashed": artifact.hashed,
                }
                for artifact in artifacts
            },
        }
        data = (json.dumps(payload, indent=2, sort_keys=True) + "\n").encode("utf-8")
        return OutputArtifact.from_bytes(MANIFEST_FILENAME, data, hashed=False)


class _ReferenceCollector(HTMLParser):
    """Collect URL values of ``src``, ``srcset``, and ``href`` attributes."""

    def __init__(self) -> None:
        super().__init__(convert_charrefs=True)
        self.references: list[str] = []

    def handle_starttag(self, tag: str, attrs: list[tuple[str, str | None]]) -> None:
        for name, value in attrs:
            if not value:
                continue
            if name in URL_ATTRIBUTES:
                self.references.append(value.strip())
            elif name == "srcset":
                self.references.extend(
                    candidate.split()[0]
                    for candidate in value.split(",")
                    if candidate.strip()
                )


def _local_path(url: str, base_dir: str = "") -> str | None:
    """Return the bundle-relative path ``url`` points at, or None if external."""
    parsed = urlsplit(url)
    if parsed.scheme or parsed.netloc or not parsed.path:
        return None
    if parsed.path.startswith("/"):
        return None
    return posixpath.normpath(posixpath.join(base_dir, parsed.path))


def check_reference_integrity(artifacts: ArtifactSet) -> None:
    """Ensure every local asset URL in the entry document and stylesheets exists.

    Only relative URLs are checked: attribute values in the entry document
    that point under ``assets/``, and ``url()`` values in stylesheets resolved
    against the stylesheet's directory. Absolute, root-relative, fragment, and
    scheme-qualified URLs are left alone.

    Raises
    ------
    UnresolvedReference
        If a referenced local path has no artifact.
    """
    collector = _ReferenceCollector()
    collector.feed(artifacts[ENTRY_DOCUMENT].data.decode("utf-8"))
    collector.close()
    for url in sorted(set(collector.references)):
        reference = _local_path(url)
        if reference is None or not reference.startswith(f"{ASSETS_DIR}/"):
            continue
        if reference not in artifacts:
            msg = f"Entry document references missing artifact '{reference}'."
            raise UnresolvedReference(msg, asset_path=reference)
    for stylesheet in artifacts.by_suffix(".css"):
        base_dir = posixpath.dirname(stylesheet.logical_path)
        for url in CSS_URL_PATTERN.findall(stylesheet.data.decode("utf-8")):
            reference = _local_path(url.strip(), base_dir)
            if reference is None:
                continue
            if reference not in artifacts:
                msg = f"Stylesheet '{stylesheet.logical_path}' references missing '{url}'."
                raise UnresolvedReference(msg, asset_path=reference)


__all__ = [
    "ArtifactSet",
    "OutputArtifact",
    "StaticEmitter",
    "check_reference_integrity",
    "hashed_name",
]
