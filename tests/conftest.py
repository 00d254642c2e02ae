"""Shared fixtures for landing_build tests.

The fixtures synthesize every input the pipeline consumes so no binary test
data is checked in: Pillow draws the source images, fontTools' ``FontBuilder``
produces small variable fonts with a ``wght`` axis, and :func:`write_site`
lays out a complete site (assets, token stylesheet, root files, ``site.yaml``)
matching the reference eight-section page.
"""

from __future__ import annotations

import copy
import typing as typ
from pathlib import Path

import pytest
from fontTools.fontBuilder import FontBuilder
from fontTools.pens.ttGlyphPen import TTGlyphPen
from PIL import Image, ImageDraw
from ruamel.yaml import YAML

TOKENS_CSS = """:root {
  --color-ink: #1d1b19;
  --radius-card: 12px;
}
body { font-family: var(--font-body); color: var(--color-ink); }
h1, h2 { font-family: var(--font-display), serif; }
"""

SECTIONS: list[dict[str, typ.Any]] = [
    {
        "kind": "header",
        "props": {
            "brand": "Harbour Lane",
            "nav": [
                {"label": "About", "href": "#about"},
                {"label": "FAQ", "href": "#faq"},
            ],
        },
        "images": [{"src": "images/logo.png", "width": 120, "alt": "", "slot": "logo"}],
    },
    {
        "kind": "hero",
        "props": {
            "heading": "Calm, practical therapy",
            "lede": "Sessions in person and online.",
            "ctas": [{"label": "Book a call", "href": "https://example.com/book"}],
        },
        "images": [
            {"src": "images/team.jpg", "width": 320, "alt": "The team", "eager": True}
        ],
    },
    {
        "kind": "about",
        "props": {"heading": "About us", "body": "First paragraph.\n\nSecond one."},
        "images": [{"src": "images/team.jpg", "width": 36, "alt": "Team avatar"}],
    },
    {
        "kind": "services",
        "props": {
            "heading": "Services",
            "items": [
                {"title": "Individual", "description": "One to one sessions."},
                {"title": "Couples", "description": "Sessions for two."},
            ],
        },
    },
    {
        "kind": "gallery",
        "props": {"heading": "The studio"},
        "images": [{"src": "images/team.jpg", "width": 32, "alt": "Thumbnail"}],
    },
    {
        "kind": "testimonials",
        "props": {
            "heading": "Kind words",
            "quotes": [{"quote": "Very helpful.", "author": "A. Client"}],
        },
    },
    {
        "kind": "faq",
        "props": {
            "heading": "Questions",
            "items": [{"question": "Do you work online?", "answer": "Yes."}],
        },
    },
    {
        "kind": "footer",
        "props": {
            "text": "Harbour Lane Studio",
            "links": [{"label": "Email", "href": "mailto:hello@example.com"}],
        },
    },
]

FONTS: list[dict[str, typ.Any]] = [
    {
        "family": "Body Sans",
        "token": "body",
        "weights": [400, 700],
        "italic_weights": [400],
        "sources": [
            {"path": "fonts/BodySans-Variable.ttf", "style": "normal"},
            {"path": "fonts/BodySans-Italic-Variable.ttf", "style": "italic"},
        ],
    },
    {
        "family": "Display Serif",
        "token": "display",
        "weights": [700],
        "fallback": "serif",
        "sources": [{"path": "fonts/DisplaySerif-Variable.ttf"}],
    },
]


def _box_glyph(width: int = 500) -> typ.Any:
    pen = TTGlyphPen(None)
    pen.moveTo((100, 0))
    pen.lineTo((100, 700))
    pen.lineTo((width, 700))
    pen.lineTo((width, 0))
    pen.closePath()
    return pen.glyph()


def make_font(
    path: Path,
    family: str,
    *,
    style_name: str = "Regular",
    axis: tuple[int, int, int] | None = (100, 400, 900),
    weight_class: int = 400,
) -> Path:
    """Write a tiny TrueType font, variable on ``wght`` unless ``axis`` is None."""
    builder = FontBuilder(1000, isTTF=True)
    glyph_order = [".notdef", "space", "A", "B", "a", "b"]
    builder.setupGlyphOrder(glyph_order)
    builder.setupCharacterMap(
        {0x20: "space", 0x41: "A", 0x42: "B", 0x61: "a", 0x62: "b"}
    )
    glyphs = {name: _box_glyph() for name in glyph_order if name != "space"}
    glyphs["space"] = TTGlyphPen(None).glyph()
    builder.setupGlyf(glyphs)
    metrics = {name: (600, 0 if name == "space" else 100) for name in glyph_order}
    builder.setupHorizontalMetrics(metrics)
    builder.setupHorizontalHeader(ascent=800, descent=-200)
    builder.setupNameTable({"familyName": family, "styleName": style_name})
    builder.setupOS2(
        sTypoAscender=800,
        sTypoDescender=-200,
        usWinAscent=800,
        usWinDescent=200,
        usWeightClass=weight_class,
    )
    builder.setupPost()
    if axis is not None:
        low, default, high = axis
        builder.setupFvar(axes=[("wght", low, default, high, "Weight")], instances=[])
    path.parent.mkdir(parents=True, exist_ok=True)
    builder.save(str(path))
    return path


def make_image(
    path: Path,
    size: tuple[int, int],
    *,
    mode: str = "RGB",
    colour: tuple[int, ...] = (40, 90, 160),
) -> Path:
    """Write a deterministic test image with a drawn pattern."""
    image = Image.new(mode, size, colour if mode != "RGBA" else (*colour[:3], 0))
    draw = ImageDraw.Draw(image)
    width, height = size
    fill = (220, 180, 60) if mode == "RGB" else (220, 180, 60, 255)
    draw.rectangle((width // 8, height // 8, width // 2, height // 2), fill=fill)
    draw.ellipse((width // 2, height // 3, width - 4, height - 4), fill=fill)
    path.parent.mkdir(parents=True, exist_ok=True)
    image.save(path)
    return path


def write_site(
    root: Path,
    *,
    sections: list[dict[str, typ.Any]] | None = None,
    fonts: list[dict[str, typ.Any]] | None = None,
    build: dict[str, typ.Any] | None = None,
    page: dict[str, typ.Any] | None = None,
    tokens_css: str = TOKENS_CSS,
) -> Path:
    """Lay out a complete site under ``root`` and return its ``site.yaml`` path."""
    source = root / "src"
    make_image(source / "images" / "team.jpg", (800, 600))
    make_image(source / "images" / "logo.png", (200, 100), colour=(10, 10, 10))
    make_font(source / "fonts" / "BodySans-Variable.ttf", "Body Sans")
    make_font(
        source / "fonts" / "BodySans-Italic-Variable.ttf",
        "Body Sans",
        style_name="Italic",
    )
    make_font(
        source / "fonts" / "DisplaySerif-Variable.ttf",
        "Display Serif",
        axis=(300, 400, 800),
    )
    (source / "styles").mkdir(parents=True, exist_ok=True)
    (source / "styles" / "tokens.css").write_text(tokens_css, encoding="utf-8")
    (source / "favicon.ico").write_bytes(b"\x00\x00\x01\x00fake-icon")
    (source / "robots.txt").write_text("User-agent: *\nAllow: /\n", encoding="utf-8")

    build_options: dict[str, typ.Any] = {
        "source_dir": "src",
        "output_dir": "dist",
        "stylesheet": "styles/tokens.css",
        "root_files": ["favicon.ico", "robots.txt"],
        "workers": 2,
    }
    build_options.update(build or {})
    page_metadata: dict[str, typ.Any] = {
        "title": "Harbour Lane Studio",
        "description": "Therapy & counselling <in town>",
        "lang": "en",
    }
    page_metadata.update(page or {})
    document = {
        "page": page_metadata,
        "build": build_options,
        "sections": copy.deepcopy(SECTIONS if sections is None else sections),
        "fonts": copy.deepcopy(FONTS if fonts is None else fonts),
    }
    config_path = root / "site.yaml"
    yaml = YAML(typ="safe")
    yaml.default_flow_style = False
    with config_path.open("w", encoding="utf-8") as handle:
        yaml.dump(document, handle)
    return config_path


@pytest.fixture
def site_config_path(tmp_path: Path) -> Path:
    """Return the ``site.yaml`` of a freshly written reference site."""
    return write_site(tmp_path / "site")


@pytest.fixture
def sections_data() -> list[dict[str, typ.Any]]:
    """Return a mutable copy of the reference section declarations."""
    return copy.deepcopy(SECTIONS)
