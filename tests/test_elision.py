"""Tests for the runtime elision check."""

from __future__ import annotations

import typing as typ
from pathlib import Path

import pytest
from bs4 import BeautifulSoup
from conftest import SECTIONS, write_site

from landing_build._constants import ENTRY_DOCUMENT, MANIFEST_FILENAME
from landing_build.config import SectionKind, load_site_config
from landing_build.elision import (
    check_published_bundle,
    check_runtime_elision,
    find_island_markers,
)
from landing_build.emission import ArtifactSet, OutputArtifact
from landing_build.errors import NotFound, UnexpectedRuntime, UnresolvedReference
from landing_build.islands import build_island_bundle
from landing_build.pipeline import BuildPipeline


def _interactive_sections(*kinds: str) -> list[dict[str, typ.Any]]:
    sections = [dict(section) for section in SECTIONS]
    for section in sections:
        if section["kind"] in kinds:
            section["interactive"] = True
    return sections


def _entry(html: bytes = b"<html></html>") -> OutputArtifact:
    return OutputArtifact.from_bytes(ENTRY_DOCUMENT, html, hashed=False)


def test_static_page_ships_no_script(site_config_path: Path) -> None:
    result = BuildPipeline(load_site_config(site_config_path)).run(publish=False)

    assert result.islands == set()
    assert result.artifacts.by_suffix(".js") == []
    for artifact in result.artifacts:
        assert find_island_markers(artifact.data) == set()


def test_single_interactive_section_ships_only_its_island(tmp_path: Path) -> None:
    config_path = write_site(tmp_path / "site", sections=_interactive_sections("faq"))
    result = BuildPipeline(load_site_config(config_path)).run(publish=False)

    scripts = result.artifacts.by_suffix(".js")
    assert len(scripts) == 1
    assert find_island_markers(scripts[0].data) == {"runtime", "faq"}
    assert result.islands == {"runtime", "faq"}
    soup = BeautifulSoup(result.artifacts[ENTRY_DOCUMENT].data, "html.parser")
    assert [tag["data-island"] for tag in soup.select("[data-island]")] == ["faq"]
    assert soup.select_one("script[type=module]")["src"] == scripts[0].logical_path


def test_bundle_order_ignores_section_order() -> None:
    first = build_island_bundle([SectionKind.FAQ, SectionKind.HEADER])
    second = build_island_bundle([SectionKind.HEADER, SectionKind.FAQ])
    assert first == second
    assert build_island_bundle([]) is None


def test_runtime_without_interactive_sections_is_rejected() -> None:
    artifacts = ArtifactSet()
    artifacts.add(_entry())
    artifacts.add(
        OutputArtifact.from_bytes("assets/stray.0123456789.js", b"/*! island:runtime */\n")
    )
    with pytest.raises(UnexpectedRuntime) as excinfo:
        check_runtime_elision([], artifacts)
    assert excinfo.value.asset_path == "assets/stray.0123456789.js"


def test_marker_inlined_in_entry_document_is_rejected() -> None:
    artifacts = ArtifactSet()
    artifacts.add(_entry(b"<script>/*! island:gallery */</script>"))
    with pytest.raises(UnexpectedRuntime):
        check_runtime_elision([], artifacts)


def test_island_for_non_interactive_kind_is_rejected() -> None:
    bundle = build_island_bundle([SectionKind.FAQ, SectionKind.GALLERY])
    assert bundle is not None
    artifacts = ArtifactSet()
    artifacts.add(_entry())
    artifacts.add(OutputArtifact.from_bytes("assets/islands.0123456789.js", bundle.encode()))

    with pytest.raises(UnexpectedRuntime) as excinfo:
        check_runtime_elision([SectionKind.FAQ], artifacts)
    assert excinfo.value.section_kind == "gallery"


def test_missing_island_is_unresolved() -> None:
    artifacts = ArtifactSet()
    artifacts.add(_entry())
    with pytest.raises(UnresolvedReference):
        check_runtime_elision([SectionKind.FAQ], artifacts)


def test_published_bundle_check(tmp_path: Path) -> None:
    config_path = write_site(tmp_path / "site", sections=_interactive_sections("header"))
    BuildPipeline(load_site_config(config_path)).run()
    output_dir = tmp_path / "site" / "dist"

    assert check_published_bundle(output_dir) == {"runtime", "header"}

    (output_dir / "assets" / "extra.js").write_text("/*! island:faq */\n", encoding="utf-8")
    with pytest.raises(UnexpectedRuntime):
        check_published_bundle(output_dir)


def test_published_bundle_requires_manifest(tmp_path: Path) -> None:
    with pytest.raises(NotFound):
        check_published_bundle(tmp_path)


@pytest.mark.parametrize(
    "manifest",
    ['{"interactive_sections": ["faq"', '["faq"]', '{"interactive_sections": "faq"}'],
)
def test_corrupt_manifest_is_unresolved(tmp_path: Path, manifest: str) -> None:
    (tmp_path / MANIFEST_FILENAME).write_text(manifest, encoding="utf-8")
    with pytest.raises(UnresolvedReference) as excinfo:
        check_published_bundle(tmp_path)
    assert excinfo.value.asset_path == str(tmp_path / MANIFEST_FILENAME)
