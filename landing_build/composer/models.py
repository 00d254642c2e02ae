"""State carried for each section while the page is composed."""

from __future__ import annotations

import dataclasses as dc
import enum
import typing as typ

if typ.TYPE_CHECKING:
    from landing_build.config import SectionNode


class SectionState(enum.Enum):
    """Lifecycle of a section during composition."""

    UNRESOLVED = "unresolved"
    RESOLVING = "resolving"
    RESOLVED = "resolved"
    COMPOSED = "composed"


_TRANSITIONS: dict[SectionState, SectionState] = {
    SectionState.UNRESOLVED: SectionState.RESOLVING,
    SectionState.RESOLVING: SectionState.RESOLVED,
    SectionState.RESOLVED: SectionState.COMPOSED,
}


@dc.dataclass(slots=True)
class ComposedSection:
    """A section node together with its anchor, state, and rendered markup.

    Attributes
    ----------
    node : SectionNode
        Declared section from the page configuration.
    anchor : str
        Document-unique id used for the section element and skip navigation.
    position : int
        Zero-based index among the enabled sections.
    state : SectionState
        Current lifecycle state; only advances one step at a time.
    context : dict[str, Any]
        Template context produced during resolution.
    html : str
        Rendered section markup, set when the section is composed.
    """

    node: SectionNode
    anchor: str
    position: int
    state: SectionState = SectionState.UNRESOLVED
    context: dict[str, typ.Any] = dc.field(default_factory=dict)
    html: str = ""

    def advance(self, target: SectionState) -> None:
        """Move to ``target``, which must be the next state in the lifecycle."""
        expected = _TRANSITIONS.get(self.state)
        if expected is not target:
            msg = (
                f"Section '{self.anchor}' cannot move from {self.state.value} "
                f"to {target.value}."
            )
            raise RuntimeError(msg)
        self.state = target


@dc.dataclass(slots=True)
class ComposedPage:
    """The composed entry document and the sections it contains."""

    html: str
    sections: list[ComposedSection]
    skip_target: str


__all__ = ["ComposedPage", "ComposedSection", "SectionState"]
