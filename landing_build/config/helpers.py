"""Utility helpers shared by the landing_build configuration loader."""

from __future__ import annotations

import typing as typ
from pathlib import Path

from .models import SiteConfigError


def _optional_str(value: object | None) -> str | None:
    """Return a stripped string value or None when empty."""
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _required_str(payload: typ.Mapping[str, typ.Any], key: str, context: str) -> str:
    """Return ``payload[key]`` as a non-empty string or raise."""
    text = _optional_str(payload.get(key))
    if not text:
        msg = f"{context} requires '{key}'."
        raise SiteConfigError(msg)
    return text


def _int_tuple(value: object, context: str) -> tuple[int, ...]:
    """Normalize a scalar or list of integers into a tuple of positive ints."""
    match value:
        case None:
            return ()
        case bool():
            msg = f"{context} must be an integer or list of integers."
            raise SiteConfigError(msg)
        case int() as single:
            items: list[object] = [single]
        case list() | tuple() as many:
            items = list(many)
        case _:
            msg = f"{context} must be an integer or list of integers."
            raise SiteConfigError(msg)
    result: list[int] = []
    for item in items:
        if isinstance(item, bool) or not isinstance(item, int) or item <= 0:
            msg = f"{context} entries must be positive integers, got {item!r}."
            raise SiteConfigError(msg)
        result.append(item)
    return tuple(result)


def _str_tuple(value: object) -> tuple[str, ...]:
    """Normalize a string or list of strings into a tuple of non-empty strings."""
    if isinstance(value, str):
        return tuple(segment for segment in value.split() if segment)
    if isinstance(value, list):
        normalized: list[str] = []
        for segment in value:
            text = str(segment).strip()
            if text:
                normalized.append(text)
        return tuple(normalized)
    return ()


def _resolve_path(base_dir: Path, value: object) -> Path:
    """Resolve ``value`` relative to ``base_dir`` unless it is absolute."""
    path = Path(str(value))
    if path.is_absolute():
        return path
    return base_dir / path


def _parse_weight_axis(value: object, context: str) -> tuple[int, int] | None:
    """Parse a ``[min, max]`` weight-axis declaration."""
    match value:
        case None:
            return None
        case [int() as low, int() as high] if 0 < low <= high <= 1000:
            return (low, high)
        case int() as point if 0 < point <= 1000:
            return (point, point)
        case _:
            msg = f"{context} weight_axis must be [min, max] within 1..1000."
            raise SiteConfigError(msg)


__all__ = [
    "_int_tuple",
    "_optional_str",
    "_parse_weight_axis",
    "_required_str",
    "_resolve_path",
    "_str_tuple",
]
