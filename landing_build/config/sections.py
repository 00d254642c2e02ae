"""Section and typeface configuration builders."""

from __future__ import annotations

import typing as typ
from types import MappingProxyType

from .helpers import (
    _int_tuple,
    _optional_str,
    _parse_weight_axis,
    _required_str,
    _str_tuple,
)
from .models import (
    FontFamilyConfig,
    FontSourceConfig,
    FontStyle,
    ImageReference,
    SectionKind,
    SectionNode,
    SiteConfigError,
)

REQUIRED_PROPS: dict[SectionKind, tuple[str, ...]] = {
    SectionKind.HEADER: ("brand",),
    SectionKind.HERO: ("heading",),
    SectionKind.ABOUT: ("heading", "body"),
    SectionKind.SERVICES: ("heading", "items"),
    SectionKind.GALLERY: ("heading",),
    SectionKind.TESTIMONIALS: ("heading", "quotes"),
    SectionKind.FAQ: ("heading", "items"),
    SectionKind.FOOTER: ("text",),
}


def _build_sections(entries: object) -> tuple[SectionNode, ...]:
    """Build the ordered section sequence from the ``sections`` list."""
    match entries:
        case list() as items if items:
            pass
        case _:
            msg = "Page configuration requires a non-empty 'sections' list."
            raise SiteConfigError(msg)
    sections = tuple(
        _build_section(entry, position) for position, entry in enumerate(items, 1)
    )
    if not any(section.enabled for section in sections):
        msg = "At least one section must be enabled."
        raise SiteConfigError(msg)
    return sections


def _build_section(entry: object, position: int) -> SectionNode:
    """Build a single SectionNode, validating kind, props, and images."""
    match entry:
        case {"kind": str() as raw_kind, **rest}:
            pass
        case _:
            msg = f"Section #{position} must be a mapping with a 'kind'."
            raise SiteConfigError(msg)
    try:
        kind = SectionKind(raw_kind.strip().lower())
    except ValueError as exc:
        known = ", ".join(member.value for member in SectionKind)
        msg = f"Section #{position} has unknown kind '{raw_kind}'. Known kinds: {known}"
        raise SiteConfigError(msg) from exc

    props = rest.get("props") or {}
    if not isinstance(props, dict):
        msg = f"Section #{position} ({kind}) props must be a mapping."
        raise SiteConfigError(msg)
    missing = [key for key in REQUIRED_PROPS[kind] if not props.get(key)]
    if missing:
        msg = f"Section #{position} ({kind}) is missing props: {', '.join(missing)}."
        raise SiteConfigError(msg)

    interactive = bool(rest.get("interactive", False))
    if interactive and not kind.supports_island:
        msg = f"Section #{position} ({kind}) has no interactive island to enable."
        raise SiteConfigError(msg)

    images = tuple(
        _build_image_reference(image, f"Section #{position} ({kind}) image")
        for image in rest.get("images") or []
    )
    return SectionNode(
        kind=kind,
        props=MappingProxyType(dict(props)),
        images=images,
        interactivity_enabled=interactive,
        enabled=bool(rest.get("enabled", True)),
    )


def _build_image_reference(payload: object, context: str) -> ImageReference:
    """Build an ImageReference from ``{src, width|widths, alt, sizes}``."""
    match payload:
        case {"src": str() as src, **rest}:
            pass
        case _:
            msg = f"{context} requires a 'src'."
            raise SiteConfigError(msg)
    widths = _int_tuple(rest.get("widths", rest.get("width")), f"{context} widths")
    if not widths:
        msg = f"{context} '{src}' requires 'width' or 'widths'."
        raise SiteConfigError(msg)
    return ImageReference(
        src=src.strip(),
        widths=widths,
        alt=str(rest.get("alt", "")),
        sizes=_optional_str(rest.get("sizes")),
        slot=_optional_str(rest.get("slot")) or "image",
        eager=bool(rest.get("eager", False)),
    )


def _build_font_families(entries: object) -> tuple[FontFamilyConfig, ...]:
    """Build font family configs, rejecting duplicate tokens."""
    match entries:
        case None:
            return ()
        case list() as items:
            pass
        case _:
            msg = "'fonts' must be a list of font family mappings."
            raise SiteConfigError(msg)
    families = tuple(_build_font_family(entry) for entry in items)
    tokens = [family.token for family in families]
    duplicates = sorted({token for token in tokens if tokens.count(token) > 1})
    if duplicates:
        msg = f"Font tokens must be unique; duplicated: {', '.join(duplicates)}."
        raise SiteConfigError(msg)
    return families


def _build_font_family(payload: object) -> FontFamilyConfig:
    """Build one FontFamilyConfig with its sources."""
    if not isinstance(payload, dict):
        msg = "Font family entries must be mappings."
        raise SiteConfigError(msg)
    family = _required_str(payload, "family", "Font family")
    context = f"Font family '{family}'"
    token = _optional_str(payload.get("token")) or family.lower().replace(" ", "-")
    sources_raw = payload.get("sources")
    if not isinstance(sources_raw, list) or not sources_raw:
        msg = f"{context} requires at least one source."
        raise SiteConfigError(msg)
    sources = tuple(_build_font_source(entry, context) for entry in sources_raw)

    kwargs: dict[str, typ.Any] = {}
    if "weights" in payload:
        kwargs["weights"] = _int_tuple(payload["weights"], f"{context} weights")
    if "italic_weights" in payload:
        kwargs["italic_weights"] = _int_tuple(
            payload["italic_weights"], f"{context} italic_weights"
        )
    ranges = _str_tuple(payload.get("unicode_ranges"))
    if ranges:
        kwargs["unicode_ranges"] = ranges
    fallback = _optional_str(payload.get("fallback"))
    if fallback:
        kwargs["fallback"] = fallback
    return FontFamilyConfig(family=family, token=token, sources=sources, **kwargs)


def _build_font_source(payload: object, context: str) -> FontSourceConfig:
    """Build a FontSourceConfig from ``{path, style, weight_axis}``."""
    match payload:
        case str() as path:
            return FontSourceConfig(path=path)
        case {"path": str() as path, **rest}:
            pass
        case _:
            msg = f"{context} sources require a 'path'."
            raise SiteConfigError(msg)
    raw_style = str(rest.get("style", FontStyle.NORMAL.value)).lower()
    try:
        style = FontStyle(raw_style)
    except ValueError as exc:
        msg = f"{context} source '{path}' has unknown style '{raw_style}'."
        raise SiteConfigError(msg) from exc
    return FontSourceConfig(
        path=path,
        style=style,
        weight_axis=_parse_weight_axis(rest.get("weight_axis"), context),
    )


__all__ = ["REQUIRED_PROPS"]
