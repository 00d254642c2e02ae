"""Common literal values used across landing_build.

These constants keep filenames, hash lengths, and format defaults centralized
so the transcoder, packager, emitter, and tests import the same values without
drifting.

Examples
--------
>>> from landing_build import _constants
>>> _constants.HASHED_NAME_TEMPLATE.format(stem="styles", digest="0123456789", ext="css")
'styles.0123456789.css'
>>> _constants.ISLAND_MARKER
'/*! island:'
"""

ENTRY_DOCUMENT = "index.html"
ASSETS_DIR = "assets"
MANIFEST_FILENAME = ".landing-build-manifest.json"
SITEMAP_FILENAME = "sitemap.xml"
HASH_PREFIX_LENGTH = 10
HASHED_NAME_TEMPLATE = "{stem}.{digest}.{ext}"

IMAGE_EXTENSIONS = frozenset(
    {".jpg", ".jpeg", ".png", ".webp", ".gif", ".tiff", ".bmp"}
)
FONT_EXTENSIONS = frozenset({".ttf", ".otf", ".woff", ".woff2"})

DEFAULT_MODERN_FORMAT = "webp"
DEFAULT_FALLBACK_FORMAT = "jpeg"
FORMAT_EXTENSIONS: dict[str, str] = {
    "avif": "avif",
    "webp": "webp",
    "jpeg": "jpg",
    "png": "png",
}
FORMAT_MIME_TYPES: dict[str, str] = {
    "avif": "image/avif",
    "webp": "image/webp",
    "jpeg": "image/jpeg",
    "png": "image/png",
}
DEFAULT_QUALITY: dict[str, int] = {"avif": 60, "webp": 80, "jpeg": 82}
DEFAULT_MAX_VARIANTS_PER_ASSET = 8
DEFAULT_WORKERS = 4

# Basic Latin, Latin-1 Supplement, and general punctuation.
DEFAULT_UNICODE_RANGES = ("U+0000-00FF", "U+2000-206F", "U+20AC", "U+2122")

ISLAND_MARKER = "/*! island:"
ISLAND_RUNTIME_NAME = "runtime"
