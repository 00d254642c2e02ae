"""End-to-end orchestration of a landing page build.

The pipeline is a directed acyclic flow:

``AssetRegistry`` → {``ImageTranscoder``, ``TypefacePackager``} →
``ComponentComposer`` → ``StaticEmitter`` → runtime elision check → publish.

Every stage receives the registry and staging area explicitly; nothing is
cached between builds, so a rebuild from scratch is always consistent. Any
stage failure propagates before publishing, which leaves the previously
published bundle in place.

Example
-------
>>> from pathlib import Path
>>> from landing_build.config import load_site_config
>>> from landing_build.pipeline import BuildPipeline
>>> config = load_site_config(Path("site.yaml"))  # doctest: +SKIP
>>> result = BuildPipeline(config).run()  # doctest: +SKIP
>>> result.written[0].name  # doctest: +SKIP
'.landing-build-manifest.json'
"""

from __future__ import annotations

import dataclasses as dc
import typing as typ

from landing_build.assets import AssetRegistry
from landing_build.composer import ComponentComposer
from landing_build.elision import check_runtime_elision
from landing_build.emission import StaticEmitter
from landing_build.errors import NonDeterministicOutput
from landing_build.fonts import TypefacePackager
from landing_build.images import ImageTranscoder
from landing_build.log import get_logger
from landing_build.staging import StagingArea

if typ.TYPE_CHECKING:
    from pathlib import Path

    from landing_build.composer import ComposedPage
    from landing_build.config import SiteConfig
    from landing_build.emission import ArtifactSet
    from landing_build.fonts import FontPackage
    from landing_build.images import VariantIndex

logger = get_logger(__name__)


@dc.dataclass(slots=True)
class BuildResult:
    """Everything a successful build produced."""

    artifacts: ArtifactSet
    page: ComposedPage
    variants: VariantIndex
    fonts: FontPackage
    registry: AssetRegistry
    islands: set[str] = dc.field(default_factory=set)
    written: list[Path] = dc.field(default_factory=list)


class BuildPipeline:
    """Run every stage for one site configuration."""

    def __init__(self, config: SiteConfig, *, templates_dir: Path | None = None) -> None:
        self.config = config
        self.templates_dir = templates_dir
        self.emitter = StaticEmitter(config)

    def assemble(self) -> BuildResult:
        """Run every stage up to and including the elision check, in memory."""
        options = self.config.build
        registry = AssetRegistry(options.source_dir)
        registry.scan()
        staging = StagingArea()

        transcoder = ImageTranscoder(
            registry,
            staging=staging,
            modern_format=options.modern_format,
            fallback_format=options.fallback_format,
            quality=options.quality,
            workers=options.workers,
            max_variants_per_asset=options.max_variants_per_asset,
        )
        variants = transcoder.run(self.config.sections)
        fonts = TypefacePackager(registry, staging=staging).run(self.config.fonts)

        composer = ComponentComposer(
            registry, variants, templates_dir=self.templates_dir
        )
        artifacts, page = self.emitter.assemble(composer, fonts, staging)
        islands = check_runtime_elision(self.config.interactive_kinds, artifacts)
        return BuildResult(
            artifacts=artifacts,
            page=page,
            variants=variants,
            fonts=fonts,
            registry=registry,
            islands=islands,
        )

    def run(self, *, publish: bool = True, verify: bool | None = None) -> BuildResult:
        """Assemble, optionally verify determinism, and publish the bundle.

        Parameters
        ----------
        publish : bool, optional
            Write and swap the output directory into place when true.
        verify : bool or None, optional
            Assemble a second time and compare every artifact digest; defaults
            to ``build.verify_determinism`` from the configuration.

        Raises
        ------
        NonDeterministicOutput
            If the verification assembly diverges from the first one.
        """
        logger.info("build.started", sections=len(self.config.sections))
        result = self.assemble()
        should_verify = self.config.build.verify_determinism if verify is None else verify
        if should_verify:
            verify_determinism(result.artifacts, self.assemble().artifacts)
            logger.info("build.verified", artifacts=len(result.artifacts))
        if publish:
            result.written = self.emitter.publish(result.artifacts)
        logger.info("build.finished", artifacts=len(result.artifacts))
        return result


def verify_determinism(first: ArtifactSet, second: ArtifactSet) -> None:
    """Raise when two assemblies of identical inputs differ in any artifact."""
    expected = first.digests()
    actual = second.digests()
    for path in sorted(expected.keys() | actual.keys()):
        if expected.get(path) != actual.get(path):
            msg = f"Artifact '{path}' differs between two builds of identical input."
            raise NonDeterministicOutput(msg, asset_path=path)


__all__ = ["BuildPipeline", "BuildResult", "verify_determinism"]
