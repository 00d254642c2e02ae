"""Deterministic responsive image variant generation.

The transcoder collects every ``(image, display width)`` pair requested by the
page's sections, clamps each width to the source resolution (images are never
upscaled), deduplicates globally on ``(content hash, width, format)``, and
encodes the resulting units on a bounded thread pool. Encoded bytes land in a
:class:`~landing_build.staging.StagingArea` keyed by their content-addressed
output path.

The returned :class:`VariantIndex` answers the composer's questions: which
variants exist for a reference, and what intrinsic ``width``/``height`` the
markup should carry so the layout never shifts whichever variant loads.
"""

from __future__ import annotations

import concurrent.futures
import dataclasses as dc
import io
import typing as typ
from pathlib import PurePosixPath

from PIL import Image, ImageOps, UnidentifiedImageError, features

from landing_build._constants import (
    ASSETS_DIR,
    DEFAULT_FALLBACK_FORMAT,
    DEFAULT_MAX_VARIANTS_PER_ASSET,
    DEFAULT_MODERN_FORMAT,
    DEFAULT_QUALITY,
    DEFAULT_WORKERS,
    FORMAT_EXTENSIONS,
    FORMAT_MIME_TYPES,
    HASH_PREFIX_LENGTH,
)
from landing_build.assets import AssetKind, AssetRecord, hash_bytes
from landing_build.config import SiteConfigError
from landing_build.errors import (
    UnresolvedReference,
    UnsupportedKind,
    VariantLimitExceeded,
)
from landing_build.log import get_logger
from landing_build.staging import StagingArea

if typ.TYPE_CHECKING:
    import collections.abc as cabc

    from landing_build.assets import AssetRegistry
    from landing_build.config import ImageReference, SectionNode

logger = get_logger(__name__)

IMAGE_DIR = f"{ASSETS_DIR}/img"


@dc.dataclass(frozen=True, slots=True)
class SourceImage:
    """Probed properties of a registered source image."""

    record: AssetRecord
    width: int
    height: int
    has_alpha: bool

    def height_for(self, width: int) -> int:
        """Return the height preserving the source aspect ratio at ``width``."""
        return max(1, round(self.height * width / self.width))

    def effective_width(self, requested: int) -> int:
        """Clamp ``requested`` to the native width; images are never upscaled."""
        return min(requested, self.width)


@dc.dataclass(frozen=True, slots=True, order=True)
class TranscodeUnit:
    """One ``(asset, width, format)`` encoding job."""

    parent_hash: str
    width: int
    format: str


@dc.dataclass(frozen=True, slots=True)
class ImageVariant:
    """A resized, re-encoded derivative of a source image."""

    parent_hash: str
    width: int
    height: int
    format: str
    output_path: str
    content_hash: str

    @property
    def mime_type(self) -> str:
        return FORMAT_MIME_TYPES[self.format]


@dc.dataclass(slots=True)
class VariantIndex:
    """Lookup table of emitted variants keyed by ``(parent, width, format)``."""

    sources: dict[str, SourceImage] = dc.field(default_factory=dict)
    variants: dict[tuple[str, int, str], ImageVariant] = dc.field(
        default_factory=dict
    )
    formats: dict[str, tuple[str, ...]] = dc.field(default_factory=dict)

    def __len__(self) -> int:
        return len(self.variants)

    def all(self) -> list[ImageVariant]:
        """Return every variant sorted by its key."""
        return [self.variants[key] for key in sorted(self.variants)]

    def count_by_format(self) -> dict[str, int]:
        """Return the number of variants emitted per target format."""
        counts: dict[str, int] = {}
        for _parent, _width, fmt in self.variants:
            counts[fmt] = counts.get(fmt, 0) + 1
        return counts

    def resolve(self, parent_hash: str, requested_width: int) -> list[ImageVariant]:
        """Return the variants (one per format) serving ``requested_width``.

        An empty list means the reference was never transcoded.
        """
        source = self.sources.get(parent_hash)
        if source is None:
            return []
        width = source.effective_width(requested_width)
        return [
            self.variants[key]
            for fmt in self.formats.get(parent_hash, ())
            if (key := (parent_hash, width, fmt)) in self.variants
        ]

    def picture(self, reference: ImageReference, parent_hash: str) -> dict[str, typ.Any]:
        """Build the ``<picture>`` template context for one image reference."""
        source = self.sources[parent_hash]
        widths = sorted({source.effective_width(width) for width in reference.widths})
        formats = self.formats[parent_hash]
        display_width = widths[-1]
        sources: list[dict[str, str]] = []
        for fmt in formats[:-1]:
            sources.append(
                {
                    "type": FORMAT_MIME_TYPES[fmt],
                    "srcset": self._srcset(parent_hash, widths, fmt),
                }
            )
        fallback_format = formats[-1]
        fallback = self.variants[(parent_hash, display_width, fallback_format)]
        sizes = reference.sizes
        if sizes is None and len(widths) > 1:
            sizes = f"(max-width: {display_width}px) 100vw, {display_width}px"
        return {
            "sources": sources,
            "src": fallback.output_path,
            "srcset": (
                self._srcset(parent_hash, widths, fallback_format)
                if len(widths) > 1
                else None
            ),
            "sizes": sizes if len(widths) > 1 else None,
            "width": display_width,
            "height": source.height_for(display_width),
            "alt": reference.alt,
            "loading": "eager" if reference.eager else "lazy",
            "fetchpriority": "high" if reference.eager else None,
        }

    def _srcset(self, parent_hash: str, widths: list[int], fmt: str) -> str:
        return ", ".join(
            f"{self.variants[(parent_hash, width, fmt)].output_path} {width}w"
            for width in widths
        )


class ImageTranscoder:
    """Produce size/format variants for every image the sections reference."""

    def __init__(
        self,
        registry: AssetRegistry,
        *,
        staging: StagingArea | None = None,
        modern_format: str | None = DEFAULT_MODERN_FORMAT,
        fallback_format: str = DEFAULT_FALLBACK_FORMAT,
        quality: cabc.Mapping[str, int] | None = None,
        workers: int = DEFAULT_WORKERS,
        max_variants_per_asset: int = DEFAULT_MAX_VARIANTS_PER_ASSET,
    ) -> None:
        """Initialize the transcoder.

        Parameters
        ----------
        registry : AssetRegistry
            Registry the section image paths are looked up in.
        staging : StagingArea, optional
            Shared write-once output area; a fresh one is created when omitted.
        modern_format : str or None, optional
            Modern compressed target (``"webp"`` or ``"avif"``); ``None``
            disables it and only the fallback format is emitted.
        fallback_format : str, optional
            Universally supported target (``"jpeg"`` or ``"png"``). Sources with
            transparency always fall back to PNG.
        quality : Mapping[str, int], optional
            Per-format lossy quality overrides.
        workers : int, optional
            Upper bound on concurrently encoding threads.
        max_variants_per_asset : int, optional
            Maximum distinct widths a single image may be emitted at.

        Raises
        ------
        SiteConfigError
            If the requested modern format is not supported by the installed
            Pillow build.
        """
        if modern_format == "avif" and not features.check("avif"):
            msg = "AVIF output requested but Pillow was built without AVIF support."
            raise SiteConfigError(msg)
        self.registry = registry
        self.staging = staging if staging is not None else StagingArea()
        self.modern_format = modern_format
        self.fallback_format = fallback_format
        self.quality = {**DEFAULT_QUALITY, **(quality or {})}
        self.workers = max(1, workers)
        self.max_variants_per_asset = max_variants_per_asset

    def plan(
        self, sections: cabc.Iterable[SectionNode]
    ) -> tuple[VariantIndex, list[TranscodeUnit]]:
        """Resolve section references into deduplicated transcoding units.

        Raises
        ------
        UnresolvedReference
            If a section references a path the registry does not know.
        UnsupportedKind
            If a referenced asset is a font or cannot be decoded as an image.
        VariantLimitExceeded
            If one image would be emitted at more than the allowed widths.
        """
        index = VariantIndex()
        widths: dict[str, set[int]] = {}
        for section in sections:
            if not section.enabled:
                continue
            for reference in section.images:
                record = self.registry.lookup(reference.src)
                if record is None:
                    msg = (
                        f"Section '{section.kind}' references unregistered asset "
                        f"'{reference.src}'."
                    )
                    raise UnresolvedReference(
                        msg, asset_path=reference.src, section_kind=section.kind.value
                    )
                if record.kind is not AssetKind.IMAGE:
                    msg = f"Section '{section.kind}' uses font '{reference.src}' as an image."
                    raise UnsupportedKind(
                        msg, asset_path=reference.src, section_kind=section.kind.value
                    )
                source = index.sources.get(record.content_hash)
                if source is None:
                    source = self._probe(record)
                    index.sources[record.content_hash] = source
                    index.formats[record.content_hash] = self._formats_for(source)
                requested = widths.setdefault(record.content_hash, set())
                for width in reference.widths:
                    self.registry.record_usage(
                        record.content_hash, f"{section.kind}:{width}"
                    )
                    requested.add(source.effective_width(width))

        units: list[TranscodeUnit] = []
        for parent_hash, effective in sorted(widths.items()):
            if len(effective) > self.max_variants_per_asset:
                path = self.registry.display_path(index.sources[parent_hash].record)
                msg = (
                    f"Image '{path}' requests {len(effective)} distinct widths; "
                    f"the limit is {self.max_variants_per_asset}."
                )
                raise VariantLimitExceeded(msg, asset_path=path)
            units.extend(
                TranscodeUnit(parent_hash, width, fmt)
                for width in sorted(effective)
                for fmt in index.formats[parent_hash]
            )
        return index, units

    def run(self, sections: cabc.Iterable[SectionNode]) -> VariantIndex:
        """Transcode every planned unit and return the populated index.

        Any failing unit cancels the units still queued and re-raises; the
        index is only returned when every variant was produced.
        """
        index, units = self.plan(sections)
        if not units:
            return index
        logger.info("images.transcoding", units=len(units), workers=self.workers)
        with concurrent.futures.ThreadPoolExecutor(
            max_workers=min(self.workers, len(units)),
            thread_name_prefix="transcode",
        ) as executor:
            futures = {
                executor.submit(self._encode, index.sources[unit.parent_hash], unit): unit
                for unit in units
            }
            try:
                for future in concurrent.futures.as_completed(futures):
                    unit = futures[future]
                    index.variants[(unit.parent_hash, unit.width, unit.format)] = (
                        future.result()
                    )
            except BaseException:
                for pending in futures:
                    pending.cancel()
                raise
        logger.info("images.transcoded", variants=len(index))
        return index

    def _formats_for(self, source: SourceImage) -> tuple[str, ...]:
        """Return target formats, modern first and fallback last."""
        fallback = "png" if source.has_alpha else self.fallback_format
        if self.modern_format and self.modern_format != fallback:
            return (self.modern_format, fallback)
        return (fallback,)

    def _probe(self, record: AssetRecord) -> SourceImage:
        path = self.registry.display_path(record)
        try:
            with Image.open(record.source_path) as handle:
                oriented = ImageOps.exif_transpose(handle)
                width, height = oriented.size
                has_alpha = _has_alpha(oriented)
        except (UnidentifiedImageError, OSError) as exc:
            msg = f"Image '{path}' could not be decoded: {exc}"
            raise UnsupportedKind(msg, asset_path=path) from exc
        return SourceImage(record=record, width=width, height=height, has_alpha=has_alpha)

    def _encode(self, source: SourceImage, unit: TranscodeUnit) -> ImageVariant:
        """Resample and encode one unit, staging the bytes under their hashed path."""
        with Image.open(source.record.source_path) as handle:
            image = ImageOps.exif_transpose(handle)
            image = image.convert("RGBA" if source.has_alpha else "RGB")
            height = source.height_for(unit.width)
            if unit.width != image.width:
                image = image.resize(
                    (unit.width, height), resample=Image.Resampling.LANCZOS
                )
            data = self._save(image, unit.format)

        digest = hash_bytes(data)
        stem = PurePosixPath(self.registry.display_path(source.record)).stem
        extension = FORMAT_EXTENSIONS[unit.format]
        output_path = (
            f"{IMAGE_DIR}/{stem}-{unit.width}w.{digest[:HASH_PREFIX_LENGTH]}.{extension}"
        )
        self.staging.put(output_path, data)
        logger.debug(
            "images.variant", path=output_path, width=unit.width, format=unit.format
        )
        return ImageVariant(
            parent_hash=unit.parent_hash,
            width=unit.width,
            height=height,
            format=unit.format,
            output_path=output_path,
            content_hash=digest,
        )

    def _save(self, image: Image.Image, fmt: str) -> bytes:
        buffer = io.BytesIO()
        match fmt:
            case "jpeg":
                image.convert("RGB").save(
                    buffer,
                    format="JPEG",
                    quality=self.quality["jpeg"],
                    optimize=True,
                    progressive=True,
                )
            case "png":
                image.save(buffer, format="PNG", optimize=True)
            case "webp":
                image.save(buffer, format="WEBP", quality=self.quality["webp"], method=6)
            case "avif":
                image.save(buffer, format="AVIF", quality=self.quality["avif"], speed=6)
            case _:
                msg = f"Unknown image format '{fmt}'."
                raise SiteConfigError(msg)
        return buffer.getvalue()


def _has_alpha(image: Image.Image) -> bool:
    if image.mode in {"RGBA", "LA", "PA"}:
        return True
    return image.mode == "P" and "transparency" in image.info


__all__ = [
    "IMAGE_DIR",
    "ImageTranscoder",
    "ImageVariant",
    "SourceImage",
    "TranscodeUnit",
    "VariantIndex",
]
