"""Guard against shipping island runtime no section opted into.

The check is structural first: the islands present in the emitted script
bundles must equal the interactive section kinds. It then scans every script
bundle and the entry document's bytes for island markers, so runtime that
slipped in through a template or a stray bundle is caught even when the
structural bookkeeping agrees.
"""

from __future__ import annotations

import json
import re
import typing as typ

from landing_build._constants import (
    ENTRY_DOCUMENT,
    ISLAND_MARKER,
    ISLAND_RUNTIME_NAME,
    MANIFEST_FILENAME,
)
from landing_build.errors import NotFound, UnexpectedRuntime, UnresolvedReference

if typ.TYPE_CHECKING:
    import collections.abc as cabc
    from pathlib import Path

    from landing_build.config import SectionKind
    from landing_build.emission import ArtifactSet

ISLAND_MARKER_PATTERN = re.compile(
    re.escape(ISLAND_MARKER.encode("ascii")) + rb"([A-Za-z0-9_-]+) \*/"
)


def find_island_markers(data: bytes) -> set[str]:
    """Return the island names whose markers appear in ``data``."""
    return {match.decode("ascii") for match in ISLAND_MARKER_PATTERN.findall(data)}


def check_runtime_elision(
    interactive_kinds: cabc.Iterable[SectionKind], artifacts: ArtifactSet
) -> set[str]:
    """Verify only opted-in island runtime ships; return the islands found.

    Raises
    ------
    UnexpectedRuntime
        If runtime bytes ship while no section is interactive, or an island
        ships for a kind that did not opt in.
    UnresolvedReference
        If an interactive section's island is missing from the bundles.
    """
    scanned = {
        artifact.logical_path: artifact.data
        for artifact in artifacts
        if artifact.logical_path.endswith((".js", ".mjs"))
        or artifact.logical_path == ENTRY_DOCUMENT
    }
    return _check({kind.value for kind in interactive_kinds}, scanned)


def check_published_bundle(output_dir: Path) -> set[str]:
    """Run the elision check against a published output directory.

    The interactive section kinds are read from the build manifest.

    Raises
    ------
    NotFound
        If the directory has no build manifest.
    UnresolvedReference
        If the manifest is not valid JSON or lacks the interactive kinds.
    """
    manifest_path = output_dir / MANIFEST_FILENAME
    if not manifest_path.is_file():
        msg = f"No build manifest found in '{output_dir}'."
        raise NotFound(msg, asset_path=manifest_path)
    try:
        manifest = json.loads(manifest_path.read_text(encoding="utf-8"))
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        msg = f"Build manifest '{manifest_path}' is not valid JSON: {exc}"
        raise UnresolvedReference(msg, asset_path=manifest_path) from exc
    match manifest:
        case {"interactive_sections": list() as sections}:
            pass
        case _:
            msg = f"Build manifest '{manifest_path}' has no 'interactive_sections' list."
            raise UnresolvedReference(msg, asset_path=manifest_path)
    interactive = {str(kind) for kind in sections}
    scanned: dict[str, bytes] = {}
    for path in sorted(output_dir.rglob("*")):
        if not path.is_file():
            continue
        relative = path.relative_to(output_dir).as_posix()
        if relative.endswith((".js", ".mjs")) or relative == ENTRY_DOCUMENT:
            scanned[relative] = path.read_bytes()
    return _check(interactive, scanned)


def _check(interactive: set[str], scanned: cabc.Mapping[str, bytes]) -> set[str]:
    found: dict[str, str] = {}
    for logical_path, data in sorted(scanned.items()):
        for name in sorted(find_island_markers(data)):
            found.setdefault(name, logical_path)

    if not interactive and found:
        name, logical_path = next(iter(sorted(found.items())))
        msg = (
            f"Island runtime '{name}' ships in '{logical_path}' although no "
            "section enables interactivity."
        )
        raise UnexpectedRuntime(msg, asset_path=logical_path)

    expected = set(interactive)
    if expected:
        expected.add(ISLAND_RUNTIME_NAME)
    for name, logical_path in sorted(found.items()):
        if name not in expected:
            msg = f"Island runtime '{name}' ships but that section did not opt in."
            raise UnexpectedRuntime(msg, asset_path=logical_path, section_kind=name)
    for name in sorted(expected - found.keys()):
        msg = f"Interactive section '{name}' has no island runtime in the bundle."
        raise UnresolvedReference(
            msg, section_kind=None if name == ISLAND_RUNTIME_NAME else name
        )
    return set(found)


__all__ = [
    "ISLAND_MARKER_PATTERN",
    "check_published_bundle",
    "check_runtime_elision",
    "find_island_markers",
]
