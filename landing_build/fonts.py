"""Self-hosted typeface packaging.

:class:`TypefacePackager` subsets each configured variable-font source to the
family's unicode ranges, encodes it as WOFF2, and emits one ``@font-face``
declaration per source. Families are exposed to the stylesheet layer through
``--font-<token>`` custom properties, so token consumers never depend on how
the faces are loaded.

Upright and italic sources of one family always produce two separate faces.
A weight the configuration references that no source of the matching style
covers fails the build with :class:`~landing_build.errors.MissingAxis` rather
than letting the browser substitute a system font.
"""

from __future__ import annotations

import dataclasses as dc
import io
import re
import typing as typ

from fontTools import subset
from fontTools.ttLib import TTFont, TTLibError

from landing_build._constants import ASSETS_DIR, HASH_PREFIX_LENGTH
from landing_build.assets import AssetKind, hash_bytes
from landing_build.config import FontStyle
from landing_build.errors import MissingAxis, UnresolvedReference, UnsupportedKind
from landing_build.log import get_logger
from landing_build.staging import StagingArea

if typ.TYPE_CHECKING:
    import collections.abc as cabc
    from pathlib import Path

    from landing_build.assets import AssetRecord, AssetRegistry
    from landing_build.config import FontFamilyConfig, FontSourceConfig

logger = get_logger(__name__)

FONT_DIR = f"{ASSETS_DIR}/fonts"
FONT_FAMILY_ALIAS_PATTERN = re.compile(
    r"font-family\s*:[^;}]*?var\(\s*--font-([A-Za-z0-9_-]+)\s*[,)]"
)
_SLUG_PATTERN = re.compile(r"[^a-z0-9]+")


@dc.dataclass(frozen=True, slots=True)
class FontFace:
    """A self-hosted face declaration backed by one subset binary."""

    family: str
    token: str
    weight_axis_range: tuple[int, int]
    style: FontStyle
    source_file_hash: str
    output_path: str
    content_hash: str
    unicode_ranges: tuple[str, ...] = ()

    @property
    def font_weight(self) -> str:
        low, high = self.weight_axis_range
        return str(low) if low == high else f"{low} {high}"

    def declaration(self, *, relative_to: str = ASSETS_DIR) -> str:
        """Render the ``@font-face`` rule with a URL relative to ``relative_to``."""
        url = self.output_path
        prefix = f"{relative_to.rstrip('/')}/"
        if relative_to and url.startswith(prefix):
            url = url[len(prefix) :]
        lines = [
            "@font-face {",
            f'  font-family: "{self.family}";',
            f"  font-style: {self.style.value};",
            f"  font-weight: {self.font_weight};",
            "  font-display: swap;",
            f'  src: url("{url}") format("woff2");',
        ]
        if self.unicode_ranges:
            lines.append(f"  unicode-range: {', '.join(self.unicode_ranges)};")
        lines.append("}")
        return "\n".join(lines)


@dc.dataclass(slots=True)
class FontPackage:
    """Faces and token bindings produced for every configured family."""

    faces: list[FontFace] = dc.field(default_factory=list)
    tokens: dict[str, str] = dc.field(default_factory=dict)

    def faces_for(self, family: str) -> list[FontFace]:
        return [face for face in self.faces if face.family == family]

    def stylesheet(self, *, relative_to: str = ASSETS_DIR) -> str:
        """Return the face declarations followed by the token bindings."""
        if not self.faces:
            return ""
        blocks = [face.declaration(relative_to=relative_to) for face in self.faces]
        bindings = "\n".join(
            f"  --font-{token}: {stack};" for token, stack in sorted(self.tokens.items())
        )
        blocks.append(f":root {{\n{bindings}\n}}")
        return "\n\n".join(blocks) + "\n"


def read_weight_axis(path: Path) -> tuple[int, int]:
    """Return the ``wght`` axis range of a font, or its static weight class.

    Raises
    ------
    UnsupportedKind
        If the file cannot be parsed as a font.
    """
    try:
        with TTFont(path, lazy=True) as font:
            if "fvar" in font:
                for axis in font["fvar"].axes:
                    if axis.axisTag == "wght":
                        return (round(axis.minValue), round(axis.maxValue))
            if "OS/2" in font:
                weight = int(font["OS/2"].usWeightClass)
                return (weight, weight)
    except (TTLibError, OSError) as exc:
        msg = f"Font '{path.name}' could not be parsed: {exc}"
        raise UnsupportedKind(msg, asset_path=path) from exc
    return (400, 400)


def check_token_aliases(stylesheet: str, package: FontPackage, *, path: str) -> None:
    """Ensure every ``font-family: var(--font-*)`` alias maps to a packaged family.

    Raises
    ------
    UnresolvedReference
        If the stylesheet references a token no family is bound to.
    """
    for match in FONT_FAMILY_ALIAS_PATTERN.finditer(stylesheet):
        token = match.group(1)
        if token not in package.tokens:
            msg = f"Stylesheet font-family alias '--font-{token}' has no packaged face."
            raise UnresolvedReference(msg, asset_path=path)


class TypefacePackager:
    """Subset and self-host variable fonts for every configured family."""

    def __init__(
        self,
        registry: AssetRegistry,
        *,
        staging: StagingArea | None = None,
    ) -> None:
        self.registry = registry
        self.staging = staging if staging is not None else StagingArea()

    def run(self, families: cabc.Iterable[FontFamilyConfig]) -> FontPackage:
        """Validate axes, subset every source, and return the packaged faces.

        Raises
        ------
        NotFound
            If a source file does not exist.
        UnsupportedKind
            If a source is not a font file.
        MissingAxis
            If a referenced weight falls outside every matching source's range.
        """
        package = FontPackage()
        for family in families:
            resolved = [self._resolve_source(family, source) for source in family.sources]
            self._check_weights(family, resolved)
            for source, record, axis in resolved:
                package.faces.append(self._package_face(family, source, record, axis))
            package.tokens[family.token] = f'"{family.family}", {family.fallback}'
        logger.info("fonts.packaged", faces=len(package.faces), families=len(package.tokens))
        return package

    def _resolve_source(
        self, family: FontFamilyConfig, source: FontSourceConfig
    ) -> tuple[FontSourceConfig, AssetRecord, tuple[int, int]]:
        record = self.registry.register(self.registry.root / source.path)
        if record.kind is not AssetKind.FONT:
            msg = f"Font family '{family.family}' source '{source.path}' is not a font."
            raise UnsupportedKind(msg, asset_path=source.path)
        self.registry.record_usage(record.content_hash, f"font:{family.token}")
        axis = source.weight_axis or read_weight_axis(record.source_path)
        return source, record, axis

    @staticmethod
    def _check_weights(
        family: FontFamilyConfig,
        resolved: list[tuple[FontSourceConfig, AssetRecord, tuple[int, int]]],
    ) -> None:
        for style, weights in (
            (FontStyle.NORMAL, family.weights),
            (FontStyle.ITALIC, family.italic_weights),
        ):
            ranges = [axis for source, _record, axis in resolved if source.style is style]
            for weight in weights:
                if any(low <= weight <= high for low, high in ranges):
                    continue
                declared = ", ".join(f"{low}-{high}" for low, high in ranges) or "none"
                msg = (
                    f"Font family '{family.family}' references {style.value} weight "
                    f"{weight}, outside every declared axis range ({declared})."
                )
                paths = [s.path for s, _record, _axis in resolved if s.style is style]
                raise MissingAxis(msg, asset_path=paths[0] if paths else family.family)

    def _package_face(
        self,
        family: FontFamilyConfig,
        source: FontSourceConfig,
        record: AssetRecord,
        axis: tuple[int, int],
    ) -> FontFace:
        data = self._subset(record, family.unicode_ranges)
        digest = hash_bytes(data)
        slug = _SLUG_PATTERN.sub("-", family.family.lower()).strip("-")
        output_path = (
            f"{FONT_DIR}/{slug}-{source.style.value}.{digest[:HASH_PREFIX_LENGTH]}.woff2"
        )
        self.staging.put(output_path, data)
        logger.debug("fonts.face", family=family.family, style=source.style.value, path=output_path)
        return FontFace(
            family=family.family,
            token=family.token,
            weight_axis_range=axis,
            style=source.style,
            source_file_hash=record.content_hash,
            output_path=output_path,
            content_hash=digest,
            unicode_ranges=family.unicode_ranges,
        )

    def _subset(self, record: AssetRecord, unicode_ranges: tuple[str, ...]) -> bytes:
        options = subset.Options()
        options.flavor = "woff2"
        options.layout_features = ["*"]
        options.notdef_outline = True
        options.recalc_timestamp = False
        try:
            font = subset.load_font(str(record.source_path), options)
        except (TTLibError, OSError) as exc:
            path = self.registry.display_path(record)
            msg = f"Font '{path}' could not be parsed: {exc}"
            raise UnsupportedKind(msg, asset_path=path) from exc
        try:
            subsetter = subset.Subsetter(options=options)
            subsetter.populate(unicodes=subset.parse_unicodes(",".join(unicode_ranges)))
            subsetter.subset(font)
            buffer = io.BytesIO()
            subset.save_font(font, buffer, options)
        finally:
            font.close()
        return buffer.getvalue()


__all__ = [
    "FONT_DIR",
    "FontFace",
    "FontPackage",
    "TypefacePackager",
    "check_token_aliases",
    "read_weight_axis",
]
