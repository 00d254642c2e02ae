"""Load site configuration YAML into typed dataclasses."""

from __future__ import annotations

import typing as typ
from pathlib import Path

from ruamel.yaml import YAML
from ruamel.yaml.error import YAMLError

from landing_build._constants import (
    DEFAULT_FALLBACK_FORMAT,
    DEFAULT_MAX_VARIANTS_PER_ASSET,
    DEFAULT_MODERN_FORMAT,
    DEFAULT_QUALITY,
    DEFAULT_WORKERS,
    FORMAT_EXTENSIONS,
)

from .helpers import _optional_str, _required_str, _resolve_path, _str_tuple
from .models import BuildOptions, PageMetadata, SiteConfig, SiteConfigError
from .sections import _build_font_families, _build_sections


def load_site_config(path: Path) -> SiteConfig:
    """Load the YAML configuration describing the page, assets, and build.

    Parameters
    ----------
    path : Path
        Filesystem path to the YAML configuration file (for example,
        ``site.yaml``). Relative paths inside the file resolve against its
        parent directory.

    Returns
    -------
    SiteConfig
        Parsed configuration holding page metadata, the ordered section
        sequence, font families, and build options.

    Raises
    ------
    FileNotFoundError
        If the configuration file does not exist at ``path``.
    SiteConfigError
        If the YAML cannot be parsed, or required sections or fields are
        missing or invalid.

    Examples
    --------
    >>> from pathlib import Path
    >>> from landing_build.config import load_site_config
    >>> config = load_site_config(Path("site.yaml"))  # doctest: +SKIP
    >>> [section.kind.value for section in config.sections][:1]  # doctest: +SKIP
    ['header']
    """
    if not path.exists():
        msg = f"Configuration file '{path}' not found."
        raise FileNotFoundError(msg)

    loader = YAML(typ="safe")
    loader.version = (1, 2)
    try:
        with path.open("r", encoding="utf-8") as handle:
            loaded = loader.load(handle) or {}
    except YAMLError as exc:
        msg = f"Configuration file '{path}' is not valid YAML: {exc}"
        raise SiteConfigError(msg) from exc
    if not isinstance(loaded, dict):
        msg = "Top-level YAML structure must be a mapping."
        raise SiteConfigError(msg)
    raw: dict[str, typ.Any] = dict(loaded)
    base_dir = path.resolve().parent

    return SiteConfig(
        page=_build_page_metadata(raw.get("page")),
        sections=_build_sections(raw.get("sections")),
        fonts=_build_font_families(raw.get("fonts")),
        build=_build_options(raw.get("build") or {}, base_dir),
    )


def _build_page_metadata(payload: object) -> PageMetadata:
    """Build head metadata; title and description pass through unmodified."""
    match payload:
        case dict() as data:
            pass
        case _:
            msg = "Configuration requires a 'page' mapping with title and description."
            raise SiteConfigError(msg)
    return PageMetadata(
        title=_required_str(data, "title", "Page metadata"),
        description=_required_str(data, "description", "Page metadata"),
        lang=_optional_str(data.get("lang")) or "en",
        canonical_url=_optional_str(data.get("canonical_url")),
        theme_color=_optional_str(data.get("theme_color")),
    )


def _build_options(payload: typ.Mapping[str, typ.Any], base_dir: Path) -> BuildOptions:
    """Build pipeline options, resolving paths against ``base_dir``."""
    if not isinstance(payload, dict):
        msg = "'build' must be a mapping."
        raise SiteConfigError(msg)
    source_dir = _resolve_path(base_dir, payload.get("source_dir", "src"))
    output_dir = _resolve_path(base_dir, payload.get("output_dir", "dist"))
    stylesheet_raw = payload.get("stylesheet")
    stylesheet = (
        _resolve_path(source_dir, stylesheet_raw) if stylesheet_raw else None
    )

    formats = payload.get("formats") or {}
    if not isinstance(formats, dict):
        msg = "'build.formats' must be a mapping with 'modern' and 'fallback'."
        raise SiteConfigError(msg)
    modern = formats.get("modern", DEFAULT_MODERN_FORMAT)
    modern_format = _normalize_format(modern) if modern else None
    fallback_format = _normalize_format(formats.get("fallback", DEFAULT_FALLBACK_FORMAT))

    quality = dict(DEFAULT_QUALITY)
    quality_raw = payload.get("quality") or {}
    if not isinstance(quality_raw, dict):
        msg = "'build.quality' must map format names to integers."
        raise SiteConfigError(msg)
    for name, value in quality_raw.items():
        if not isinstance(value, int) or not 1 <= value <= 100:
            msg = f"Quality for '{name}' must be an integer between 1 and 100."
            raise SiteConfigError(msg)
        quality[_normalize_format(name)] = value

    workers = payload.get("workers", DEFAULT_WORKERS)
    max_variants = payload.get("max_variants_per_asset", DEFAULT_MAX_VARIANTS_PER_ASSET)
    for label, value in (("workers", workers), ("max_variants_per_asset", max_variants)):
        if isinstance(value, bool) or not isinstance(value, int) or value < 1:
            msg = f"'build.{label}' must be a positive integer."
            raise SiteConfigError(msg)

    return BuildOptions(
        source_dir=source_dir,
        output_dir=output_dir,
        stylesheet=stylesheet,
        root_files=_str_tuple(payload.get("root_files")),
        workers=workers,
        modern_format=modern_format,
        fallback_format=fallback_format,
        quality=quality,
        max_variants_per_asset=max_variants,
        verify_determinism=bool(payload.get("verify_determinism", False)),
    )


def _normalize_format(value: object) -> str:
    """Return a canonical Pillow format name for ``value``."""
    name = str(value).strip().lower()
    if name == "jpg":
        name = "jpeg"
    if name not in FORMAT_EXTENSIONS:
        known = ", ".join(sorted(FORMAT_EXTENSIONS))
        msg = f"Unknown image format '{value}'. Known formats: {known}"
        raise SiteConfigError(msg)
    return name


__all__ = ["load_site_config"]
