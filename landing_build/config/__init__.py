"""Load and validate the landing page build configuration.

This subpackage parses the project's ``site.yaml`` file and produces strongly
typed dataclasses (:class:`SiteConfig`, :class:`SectionNode`, etc.) that the
pipeline stages consume. The primary entry point is :func:`load_site_config`,
which ensures required fields are present, applies defaults, validates section
kinds and their props, and resolves asset paths against the configuration
file's directory.

Examples
--------
>>> from pathlib import Path
>>> from landing_build.config import load_site_config
>>> site = load_site_config(Path("site.yaml"))  # doctest: +SKIP
>>> site.page.title  # doctest: +SKIP
'Harbour Lane Studio'
"""

from .loader import load_site_config
from .models import (
    BuildOptions,
    FontFamilyConfig,
    FontSourceConfig,
    FontStyle,
    ImageReference,
    PageMetadata,
    SectionKind,
    SectionNode,
    SiteConfig,
    SiteConfigError,
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
    "load_site_config",
]
