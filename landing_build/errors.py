"""Build failure taxonomy and the machine-readable failure report.

Every failure the pipeline can raise derives from :class:`BuildError`. Each
carries a stable ``kind`` string plus optional ``asset_path`` and
``section_kind`` fields so the CLI can emit a JSON report that identifies the
offending asset, section, and error kind without parsing messages.

Examples
--------
>>> err = UnresolvedReference("missing", asset_path="images/a.png", section_kind="hero")
>>> err.to_report()["error"]
'UnresolvedReference'
"""

from __future__ import annotations

import typing as typ

if typ.TYPE_CHECKING:
    from pathlib import Path


class BuildError(RuntimeError):
    """Base class for fail-fast build errors."""

    kind: typ.ClassVar[str] = "BuildError"

    def __init__(
        self,
        message: str,
        *,
        asset_path: str | Path | None = None,
        section_kind: str | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.asset_path = str(asset_path) if asset_path is not None else None
        self.section_kind = section_kind

    def to_report(self) -> dict[str, str | None]:
        """Return the JSON-serializable failure report for this error."""
        return {
            "status": "failed",
            "error": self.kind,
            "message": self.message,
            "asset_path": self.asset_path,
            "section_kind": self.section_kind,
        }


class NotFound(BuildError):
    """Raised when a source path does not exist."""

    kind = "NotFound"


class UnsupportedKind(BuildError):
    """Raised when a file is not a recognized image or font."""

    kind = "UnsupportedKind"


class MissingAxis(BuildError):
    """Raised when a referenced weight falls outside every source's axis range."""

    kind = "MissingAxis"


class UnresolvedReference(BuildError):
    """Raised when a section or document references an unknown asset."""

    kind = "UnresolvedReference"


class UnexpectedRuntime(BuildError):
    """Raised when island runtime ships for a section that did not opt in."""

    kind = "UnexpectedRuntime"


class NonDeterministicOutput(BuildError):
    """Raised when identical inputs produce diverging bytes."""

    kind = "NonDeterministicOutput"


class VariantLimitExceeded(BuildError):
    """Raised when an image requests more distinct widths than allowed."""

    kind = "VariantLimitExceeded"


def config_error_report(exc: Exception) -> dict[str, str | None]:
    """Build a failure report for configuration errors raised outside the taxonomy."""
    return {
        "status": "failed",
        "error": "InvalidConfig",
        "message": str(exc),
        "asset_path": None,
        "section_kind": None,
    }


__all__ = [
    "BuildError",
    "MissingAxis",
    "NonDeterministicOutput",
    "NotFound",
    "UnexpectedRuntime",
    "UnresolvedReference",
    "UnsupportedKind",
    "VariantLimitExceeded",
    "config_error_report",
]
