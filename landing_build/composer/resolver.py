"""Per-kind template context builders.

Each section kind maps to exactly one builder through an exhaustive ``match``
over :class:`~landing_build.config.SectionKind`; adding a member without a
branch fails type checking at ``assert_never``.
"""

from __future__ import annotations

import typing as typ

from landing_build.config import SectionKind, SiteConfigError

if typ.TYPE_CHECKING:
    import collections.abc as cabc

    from landing_build.config import SectionNode

Picture = dict[str, typ.Any]


def build_section_context(
    node: SectionNode, pictures: cabc.Sequence[tuple[str, Picture]]
) -> dict[str, typ.Any]:
    """Return the template context for ``node`` given its resolved pictures.

    Parameters
    ----------
    node : SectionNode
        Section whose props are normalized.
    pictures : Sequence[tuple[str, dict]]
        ``(slot, picture context)`` pairs in declared image order.
    """
    props = node.props
    by_slot: dict[str, list[Picture]] = {}
    for slot, picture in pictures:
        by_slot.setdefault(slot, []).append(picture)
    first = pictures[0][1] if pictures else None

    match node.kind:
        case SectionKind.HEADER:
            return {
                "brand": str(props["brand"]),
                "nav": _links(props.get("nav"), node.kind, "nav"),
                "logo": _first(by_slot.get("logo")) or first,
            }
        case SectionKind.HERO:
            return {
                "heading": str(props["heading"]),
                "eyebrow": _text(props.get("eyebrow")),
                "lede": _text(props.get("lede")),
                "ctas": _links(props.get("ctas"), node.kind, "ctas"),
                "image": first,
            }
        case SectionKind.ABOUT:
            return {
                "heading": str(props["heading"]),
                "paragraphs": _paragraphs(props["body"]),
                "image": first,
            }
        case SectionKind.SERVICES:
            return {
                "heading": str(props["heading"]),
                "intro": _text(props.get("intro")),
                "items": _records(
                    props["items"], node.kind, "items", ("title", "description")
                ),
                "icons": by_slot.get("icon", []),
            }
        case SectionKind.GALLERY:
            return {
                "heading": str(props["heading"]),
                "caption": _text(props.get("caption")),
                "images": [picture for _slot, picture in pictures],
            }
        case SectionKind.TESTIMONIALS:
            quotes = _records(props["quotes"], node.kind, "quotes", ("quote", "author"))
            avatars = by_slot.get("avatar", [])
            for quote, avatar in zip(quotes, avatars, strict=False):
                quote["avatar"] = avatar
            return {"heading": str(props["heading"]), "quotes": quotes}
        case SectionKind.FAQ:
            return {
                "heading": str(props["heading"]),
                "items": _records(
                    props["items"], node.kind, "items", ("question", "answer")
                ),
            }
        case SectionKind.FOOTER:
            return {
                "text": str(props["text"]),
                "links": _links(props.get("links"), node.kind, "links"),
                "logo": first,
            }
        case _ as unreachable:
            typ.assert_never(unreachable)


def _first(pictures: list[Picture] | None) -> Picture | None:
    return pictures[0] if pictures else None


def _text(value: object) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _paragraphs(value: object) -> list[str]:
    """Split body text on blank lines; lists are taken as given paragraphs."""
    if isinstance(value, list):
        return [str(item).strip() for item in value if str(item).strip()]
    return [block.strip() for block in str(value).split("\n\n") if block.strip()]


def _records(
    value: object, kind: SectionKind, key: str, required: tuple[str, ...]
) -> list[dict[str, typ.Any]]:
    """Normalize a list of mappings, enforcing ``required`` keys on each."""
    if not isinstance(value, list):
        msg = f"Section '{kind}' prop '{key}' must be a list."
        raise SiteConfigError(msg)
    records: list[dict[str, typ.Any]] = []
    for entry in value:
        if not isinstance(entry, dict) or any(not entry.get(field) for field in required):
            fields = "', '".join(required)
            msg = f"Section '{kind}' prop '{key}' entries require '{fields}'."
            raise SiteConfigError(msg)
        records.append(dict(entry))
    return records


def _links(value: object, kind: SectionKind, key: str) -> list[dict[str, typ.Any]]:
    """Normalize hyperlink lists; links are the only navigation a page ships."""
    if value is None:
        return []
    links = _records(value, kind, key, ("label", "href"))
    for link in links:
        href = str(link["href"])
        link["external"] = href.startswith(("http://", "https://"))
    return links


__all__ = ["build_section_context"]
