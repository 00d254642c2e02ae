"""Write-once, content-keyed staging area shared by transcoding workers."""

from __future__ import annotations

import threading
import typing as typ

from landing_build.errors import NonDeterministicOutput

if typ.TYPE_CHECKING:
    import collections.abc as cabc


class StagingArea:
    """Append-only mapping from logical output paths to encoded bytes.

    Concurrent writers that compute the same key must produce identical bytes;
    a second write with differing bytes raises :class:`NonDeterministicOutput`
    instead of replacing the first.
    """

    def __init__(self) -> None:
        self._entries: dict[str, bytes] = {}
        self._lock = threading.Lock()

    def put(self, key: str, data: bytes) -> bool:
        """Store ``data`` under ``key``; return ``False`` if it was already staged."""
        with self._lock:
            existing = self._entries.get(key)
            if existing is None:
                self._entries[key] = data
                return True
        if existing != data:
            msg = f"Staged output '{key}' was produced twice with different bytes."
            raise NonDeterministicOutput(msg, asset_path=key)
        return False

    def get(self, key: str) -> bytes:
        with self._lock:
            return self._entries[key]

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._entries

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def items(self) -> cabc.Iterator[tuple[str, bytes]]:
        """Yield staged entries sorted by key."""
        with self._lock:
            snapshot = sorted(self._entries.items())
        return iter(snapshot)


__all__ = ["StagingArea"]
