"""Typed dataclasses describing the landing page build configuration."""

from __future__ import annotations

import dataclasses as dc
import enum
import typing as typ
from pathlib import Path

from landing_build._constants import (
    DEFAULT_FALLBACK_FORMAT,
    DEFAULT_MAX_VARIANTS_PER_ASSET,
    DEFAULT_MODERN_FORMAT,
    DEFAULT_UNICODE_RANGES,
    DEFAULT_WORKERS,
)


class SiteConfigError(ValueError):
    """Raised when the site configuration is invalid or incomplete."""


class SectionKind(enum.StrEnum):
    """Closed set of section kinds a page can be composed from."""

    HEADER = "header"
    HERO = "hero"
    ABOUT = "about"
    SERVICES = "services"
    GALLERY = "gallery"
    TESTIMONIALS = "testimonials"
    FAQ = "faq"
    FOOTER = "footer"

    @property
    def landmark(self) -> str:
        """Return the ARIA landmark role the section renders with."""
        match self:
            case SectionKind.HEADER:
                return "banner"
            case SectionKind.FOOTER:
                return "contentinfo"
            case _:
                return "region"

    @property
    def is_content_landmark(self) -> bool:
        """Return whether skip navigation may target this section."""
        return self.landmark == "region"

    @property
    def supports_island(self) -> bool:
        """Return whether an interactive island runtime exists for this kind."""
        return self in {
            SectionKind.HEADER,
            SectionKind.GALLERY,
            SectionKind.TESTIMONIALS,
            SectionKind.FAQ,
        }


class FontStyle(enum.StrEnum):
    """Font styles a typeface source can declare."""

    NORMAL = "normal"
    ITALIC = "italic"


@dc.dataclass(frozen=True, slots=True)
class ImageReference:
    """An image used by a section at one or more display widths."""

    src: str
    widths: tuple[int, ...]
    alt: str = ""
    sizes: str | None = None
    slot: str = "image"
    eager: bool = False


@dc.dataclass(frozen=True, slots=True)
class SectionNode:
    """One ordered content block of the page."""

    kind: SectionKind
    props: typ.Mapping[str, typ.Any]
    images: tuple[ImageReference, ...] = ()
    interactivity_enabled: bool = False
    enabled: bool = True

    @property
    def referenced_assets(self) -> tuple[str, ...]:
        """Return the source paths this section references, in declared order."""
        return tuple(reference.src for reference in self.images)


@dc.dataclass(frozen=True, slots=True)
class FontSourceConfig:
    """A typeface source file declaring its style and optional weight axis."""

    path: str
    style: FontStyle = FontStyle.NORMAL
    weight_axis: tuple[int, int] | None = None


@dc.dataclass(frozen=True, slots=True)
class FontFamilyConfig:
    """A font family bound to a stylesheet token."""

    family: str
    token: str
    sources: tuple[FontSourceConfig, ...]
    weights: tuple[int, ...] = (400,)
    italic_weights: tuple[int, ...] = ()
    unicode_ranges: tuple[str, ...] = DEFAULT_UNICODE_RANGES
    fallback: str = "sans-serif"


@dc.dataclass(frozen=True, slots=True)
class PageMetadata:
    """Head metadata passed through to the entry document."""

    title: str
    description: str
    lang: str = "en"
    canonical_url: str | None = None
    theme_color: str | None = None


@dc.dataclass(slots=True)
class BuildOptions:
    """Pipeline options controlling paths, formats, and parallelism."""

    source_dir: Path
    output_dir: Path
    stylesheet: Path | None = None
    root_files: tuple[str, ...] = ()
    workers: int = DEFAULT_WORKERS
    modern_format: str | None = DEFAULT_MODERN_FORMAT
    fallback_format: str = DEFAULT_FALLBACK_FORMAT
    quality: dict[str, int] = dc.field(default_factory=dict)
    max_variants_per_asset: int = DEFAULT_MAX_VARIANTS_PER_ASSET
    verify_determinism: bool = False


@dc.dataclass(slots=True)
class SiteConfig:
    """Fully resolved page definition sourced from YAML config."""

    page: PageMetadata
    sections: tuple[SectionNode, ...]
    fonts: tuple[FontFamilyConfig, ...]
    build: BuildOptions

    @property
    def enabled_sections(self) -> tuple[SectionNode, ...]:
        """Return sections with ``enabled`` set, preserving declared order."""
        return tuple(section for section in self.sections if section.enabled)

    @property
    def interactive_kinds(self) -> frozenset[SectionKind]:
        """Return the kinds of enabled sections that opted into interactivity."""
        return frozenset(
            section.kind
            for section in self.enabled_sections
            if section.interactivity_enabled
        )


__all__ = [
    "BuildOptions",
    "FontFamilyConfig",
    "FontSourceConfig",
    "FontStyle",
    "ImageReference",
    "PageMetadata",
    "SectionKind",
    "SectionNode",
    "SiteConfig",
    "SiteConfigError",
]
