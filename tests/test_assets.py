"""Unit tests for the content-addressed asset registry."""

from __future__ import annotations

from pathlib import Path

import pytest
from conftest import make_image

from landing_build.assets import AssetKind, AssetRegistry, hash_bytes
from landing_build.errors import NotFound, UnsupportedKind


def test_register_assigns_content_hash(tmp_path: Path) -> None:
    """Records are identified by the SHA-256 of their bytes."""
    image = make_image(tmp_path / "images" / "a.png", (40, 20))
    registry = AssetRegistry(tmp_path)

    record = registry.register(image)

    assert record.kind is AssetKind.IMAGE
    assert record.content_hash == hash_bytes(image.read_bytes())
    assert registry.lookup("images/a.png") == record


def test_identical_files_collapse_to_one_record(tmp_path: Path) -> None:
    """Two byte-identical files share one record and both paths resolve to it."""
    first = make_image(tmp_path / "a.png", (40, 20))
    second = tmp_path / "copy" / "b.png"
    second.parent.mkdir()
    second.write_bytes(first.read_bytes())
    registry = AssetRegistry(tmp_path)

    record_a = registry.register(first)
    record_b = registry.register(second)

    assert record_a is record_b
    assert len(registry) == 1
    assert registry.lookup("copy/b.png") == record_a
    assert registry.display_path(record_a) == "a.png"


def test_register_missing_path_raises_not_found(tmp_path: Path) -> None:
    registry = AssetRegistry(tmp_path)
    with pytest.raises(NotFound) as excinfo:
        registry.register(Path("images/missing.png"))
    assert excinfo.value.asset_path == "images/missing.png"
    assert len(registry) == 0


def test_register_unknown_extension_raises_unsupported_kind(tmp_path: Path) -> None:
    notes = tmp_path / "notes.txt"
    notes.write_text("hello", encoding="utf-8")
    registry = AssetRegistry(tmp_path)
    with pytest.raises(UnsupportedKind):
        registry.register(notes)
    assert registry.lookup("notes.txt") is None


def test_scan_skips_hidden_and_unrecognized_files(tmp_path: Path) -> None:
    make_image(tmp_path / "images" / "b.png", (10, 10), colour=(1, 2, 3))
    make_image(tmp_path / "images" / "a.jpg", (10, 10))
    make_image(tmp_path / ".cache" / "c.png", (10, 10), colour=(9, 9, 9))
    (tmp_path / "README.md").write_text("docs", encoding="utf-8")
    registry = AssetRegistry(tmp_path)

    records = registry.scan()

    assert [registry.display_path(record) for record in records] == [
        "images/a.jpg",
        "images/b.png",
    ]
    assert registry.lookup(".cache/c.png") is None


def test_record_usage_replaces_record_without_mutation(tmp_path: Path) -> None:
    image = make_image(tmp_path / "a.png", (10, 10))
    registry = AssetRegistry(tmp_path)
    original = registry.register(image)

    updated = registry.record_usage(original.content_hash, "hero:320")
    again = registry.record_usage(original.content_hash, "hero:320")

    assert original.declared_usages == ()
    assert updated.declared_usages == ("hero:320",)
    assert again is updated
    assert registry.get(original.content_hash) is updated


def test_registries_do_not_share_state(tmp_path: Path) -> None:
    image = make_image(tmp_path / "a.png", (10, 10))
    AssetRegistry(tmp_path).register(image)
    assert AssetRegistry(tmp_path).lookup("a.png") is None
