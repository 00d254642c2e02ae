"""Resolve the declared section sequence into one entry document."""

from __future__ import annotations

import typing as typ
from pathlib import Path

from jinja2 import Environment, FileSystemLoader, StrictUndefined

from landing_build.errors import UnresolvedReference
from landing_build.log import get_logger

from .models import ComposedPage, ComposedSection, SectionState
from .resolver import build_section_context

if typ.TYPE_CHECKING:
    import collections.abc as cabc

    from landing_build.assets import AssetRegistry
    from landing_build.config import PageMetadata, SectionNode
    from landing_build.images import VariantIndex

logger = get_logger(__name__)

SKIP_LINK_LABEL = "Skip to content"


def build_environment(templates_dir: Path | None = None) -> Environment:
    """Return the Jinja environment used for the shell and section partials."""
    directory = templates_dir or Path(__file__).resolve().parents[1] / "templates"
    return Environment(
        loader=FileSystemLoader(str(directory)),
        autoescape=True,
        trim_blocks=True,
        lstrip_blocks=True,
        keep_trailing_newline=True,
        undefined=StrictUndefined,
    )


class ComponentComposer:
    """Resolve each section's assets and concatenate them under the shell."""

    def __init__(
        self,
        registry: AssetRegistry,
        variants: VariantIndex,
        *,
        templates_dir: Path | None = None,
    ) -> None:
        """Initialize the composer.

        Parameters
        ----------
        registry : AssetRegistry
            Registry the section image paths are looked up in.
        variants : VariantIndex
            Emitted image variants; every reference must resolve to at least
            one before a section may reach ``RESOLVED``.
        templates_dir : Path, optional
            Directory containing ``page_shell.jinja`` and ``sections/``;
            defaults to the package templates.
        """
        self.registry = registry
        self.variants = variants
        self.env = build_environment(templates_dir)
        self.shell = self.env.get_template("page_shell.jinja")

    def prepare(self, sections: cabc.Iterable[SectionNode]) -> list[ComposedSection]:
        """Assign anchors to enabled sections in declared order."""
        prepared: list[ComposedSection] = []
        seen: dict[str, int] = {}
        for node in sections:
            if not node.enabled:
                logger.debug("composer.skipped", kind=node.kind.value)
                continue
            count = seen.get(node.kind.value, 0) + 1
            seen[node.kind.value] = count
            anchor = node.kind.value if count == 1 else f"{node.kind.value}-{count}"
            prepared.append(
                ComposedSection(node=node, anchor=anchor, position=len(prepared))
            )
        return prepared

    def resolve(self, section: ComposedSection) -> None:
        """Look up every referenced asset and build the section context.

        Raises
        ------
        UnresolvedReference
            If a referenced path is not registered, or was registered but has
            no emitted variant.
        """
        section.advance(SectionState.RESOLVING)
        node = section.node
        pictures: list[tuple[str, dict[str, typ.Any]]] = []
        for reference in node.images:
            record = self.registry.lookup(reference.src)
            if record is None:
                msg = (
                    f"Section '{node.kind}' references unregistered asset "
                    f"'{reference.src}'."
                )
                raise UnresolvedReference(
                    msg, asset_path=reference.src, section_kind=node.kind.value
                )
            for width in reference.widths:
                if not self.variants.resolve(record.content_hash, width):
                    msg = (
                        f"Section '{node.kind}' image '{reference.src}' has no "
                        f"variant for width {width}."
                    )
                    raise UnresolvedReference(
                        msg, asset_path=reference.src, section_kind=node.kind.value
                    )
            pictures.append(
                (reference.slot, self.variants.picture(reference, record.content_hash))
            )
        section.context = build_section_context(node, pictures)
        section.advance(SectionState.RESOLVED)

    def compose(
        self,
        page: PageMetadata,
        sections: cabc.Iterable[SectionNode],
        *,
        stylesheets: cabc.Sequence[str] = (),
        scripts: cabc.Sequence[str] = (),
        head_links: cabc.Sequence[dict[str, str]] = (),
    ) -> ComposedPage:
        """Render every enabled section, in declared order, into the shell.

        Parameters
        ----------
        page : PageMetadata
            Head metadata passed through unmodified.
        sections : Iterable[SectionNode]
            Declared section sequence; disabled sections are skipped.
        stylesheets, scripts : Sequence[str]
            Hashed bundle paths referenced from the head and body end.
        head_links : Sequence[dict[str, str]]
            Extra ``<link>`` attributes (icons, manifests) for fixed-path root
            files.
        """
        prepared = self.prepare(sections)
        if not prepared:
            msg = "The page has no enabled sections to compose."
            raise RuntimeError(msg)
        for section in prepared:
            self.resolve(section)
        for section in prepared:
            template = self.env.get_template(f"sections/{section.node.kind.value}.jinja")
            section.html = template.render(
                anchor=section.anchor,
                kind=section.node.kind.value,
                landmark=section.node.kind.landmark,
                interactive=section.node.interactivity_enabled,
                **section.context,
            ).strip()
            section.advance(SectionState.COMPOSED)

        skip_target = _skip_target(prepared)
        html = self.shell.render(
            page=page,
            sections=prepared,
            skip_target=skip_target,
            skip_label=SKIP_LINK_LABEL,
            stylesheets=list(stylesheets),
            scripts=list(scripts),
            head_links=list(head_links),
        )
        logger.info("composer.composed", sections=len(prepared), skip_target=skip_target)
        return ComposedPage(html=html, sections=prepared, skip_target=skip_target)


def _skip_target(sections: cabc.Sequence[ComposedSection]) -> str:
    """Return the anchor of the first content landmark, else the first section."""
    for section in sections:
        if section.node.kind.is_content_landmark:
            return section.anchor
    return sections[0].anchor


__all__ = ["SKIP_LINK_LABEL", "ComponentComposer", "build_environment"]
