from __future__ import annotations

import json
from pathlib import Path

import pytest
from conftest import SECTIONS, write_site

from landing_build import cli
from landing_build._constants import ENTRY_DOCUMENT, MANIFEST_FILENAME


def test_build_prints_written_paths(
    site_config_path: Path, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    monkeypatch.chdir(site_config_path.parent)
    cli.build(config=Path("site.yaml"))

    out = capsys.readouterr().out.splitlines()
    assert f"wrote dist/{ENTRY_DOCUMENT}" in out
    assert all(line.startswith("wrote ") for line in out)


def test_build_output_dir_override(site_config_path: Path, tmp_path: Path) -> None:
    target = tmp_path / "public"
    cli.build(config=site_config_path, output_dir=target, workers=1, verify=True)

    assert (target / ENTRY_DOCUMENT).is_file()
    assert not (site_config_path.parent / "dist").exists()


def test_build_failure_writes_report(
    tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    sections = [dict(section) for section in SECTIONS]
    sections[4] = {
        "kind": "gallery",
        "props": {"heading": "The studio"},
        "images": [{"src": "images/unregistered.jpg", "width": 32}],
    }
    config_path = write_site(tmp_path / "site", sections=sections)
    report_path = tmp_path / "report.json"

    with pytest.raises(SystemExit) as excinfo:
        cli.build(config=config_path, report=report_path)

    assert excinfo.value.code == 1
    report = json.loads(report_path.read_text(encoding="utf-8"))
    assert report["status"] == "failed"
    assert report["error"] == "UnresolvedReference"
    assert report["section_kind"] == "gallery"
    assert report["asset_path"] == "images/unregistered.jpg"
    assert '"error": "UnresolvedReference"' in capsys.readouterr().err
    assert not (tmp_path / "site" / "dist").exists()


def test_invalid_config_reports_invalid_config(tmp_path: Path) -> None:
    config_path = tmp_path / "site.yaml"
    config_path.write_text("page: {title: Only a title}\n", encoding="utf-8")
    report_path = tmp_path / "report.json"

    with pytest.raises(SystemExit):
        cli.build(config=config_path, report=report_path)

    report = json.loads(report_path.read_text(encoding="utf-8"))
    assert report["error"] == "InvalidConfig"


def test_check_reports_islands(
    tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    config_path = write_site(tmp_path / "site")
    cli.build(config=config_path)
    capsys.readouterr()

    cli.check(output_dir=tmp_path / "site" / "dist")
    assert capsys.readouterr().out.strip() == "islands: none"


def test_check_without_manifest_fails(tmp_path: Path) -> None:
    report_path = tmp_path / "report.json"
    with pytest.raises(SystemExit):
        cli.check(output_dir=tmp_path, report=report_path)
    assert json.loads(report_path.read_text(encoding="utf-8"))["error"] == "NotFound"


def test_all_disabled_sections_write_report(tmp_path: Path) -> None:
    sections = [dict(section, enabled=False) for section in SECTIONS]
    config_path = write_site(tmp_path / "site", sections=sections)
    report_path = tmp_path / "report.json"

    with pytest.raises(SystemExit) as excinfo:
        cli.build(config=config_path, report=report_path)

    assert excinfo.value.code == 1
    report = json.loads(report_path.read_text(encoding="utf-8"))
    assert report["error"] == "InvalidConfig"
    assert "enabled" in report["message"]


def test_malformed_yaml_writes_report(
    tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    config_path = tmp_path / "site.yaml"
    config_path.write_text("page: [unclosed\n", encoding="utf-8")
    report_path = tmp_path / "report.json"

    with pytest.raises(SystemExit) as excinfo:
        cli.build(config=config_path, report=report_path)

    assert excinfo.value.code == 1
    assert json.loads(report_path.read_text(encoding="utf-8"))["error"] == "InvalidConfig"
    assert '"error": "InvalidConfig"' in capsys.readouterr().err


def test_check_with_corrupt_manifest_writes_report(tmp_path: Path) -> None:
    (tmp_path / MANIFEST_FILENAME).write_text("{\"artifacts\": ", encoding="utf-8")
    report_path = tmp_path / "report.json"

    with pytest.raises(SystemExit) as excinfo:
        cli.check(output_dir=tmp_path, report=report_path)

    assert excinfo.value.code == 1
    report = json.loads(report_path.read_text(encoding="utf-8"))
    assert report["error"] == "UnresolvedReference"
    assert report["asset_path"] == str(tmp_path / MANIFEST_FILENAME)
