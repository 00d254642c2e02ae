"""Section resolution and composition into the entry document."""

from .composer import SKIP_LINK_LABEL, ComponentComposer, build_environment
from .models import ComposedPage, ComposedSection, SectionState
from .resolver import build_section_context

__all__ = [
    "SKIP_LINK_LABEL",
    "ComponentComposer",
    "ComposedPage",
    "ComposedSection",
    "SectionState",
    "build_environment",
    "build_section_context",
]
