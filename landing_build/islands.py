"""Interactive island runtimes shipped for opted-in sections."""

from __future__ import annotations

import typing as typ
from pathlib import Path

from landing_build._constants import ISLAND_RUNTIME_NAME
from landing_build.config import SectionKind

if typ.TYPE_CHECKING:
    import collections.abc as cabc

ISLANDS_DIR = Path(__file__).resolve().parent / "templates" / "islands"
BOOTSTRAP = "hydrateIslands();\n"


def island_source(name: str, *, islands_dir: Path = ISLANDS_DIR) -> str:
    """Return the script source for the ``name`` island (or the shared runtime)."""
    path = islands_dir / f"{name}.js"
    if not path.is_file():
        msg = f"No island runtime exists for '{name}'."
        raise FileNotFoundError(msg)
    return path.read_text(encoding="utf-8")


def build_island_bundle(
    kinds: cabc.Iterable[SectionKind], *, islands_dir: Path = ISLANDS_DIR
) -> str | None:
    """Concatenate the shared runtime and one island per kind into a module.

    Returns ``None`` when no kind is interactive, so nothing is emitted.
    Islands are ordered by the kind enumeration, not by request order, keeping
    the bundle byte-stable across section reorderings.
    """
    requested = set(kinds)
    if not requested:
        return None
    parts = [island_source(ISLAND_RUNTIME_NAME, islands_dir=islands_dir)]
    parts.extend(
        island_source(kind.value, islands_dir=islands_dir)
        for kind in SectionKind
        if kind in requested
    )
    parts.append(BOOTSTRAP)
    return "\n".join(part.rstrip("\n") + "\n" for part in parts)


__all__ = ["BOOTSTRAP", "ISLANDS_DIR", "build_island_bundle", "island_source"]
