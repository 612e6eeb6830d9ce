"""In-memory OAuth state store for development."""

import typing as t
from datetime import datetime, timedelta, timezone

from oauth1_client.stores.base import StateStore


class MemoryStateStore(StateStore):
    """In-memory OAuth state store.

    Warning:
        This store is not suitable for production use in multi-process
        or distributed environments. Use a session backed store instead.
    """

    def __init__(self, ttl_seconds: t.Optional[int] = None) -> None:
        """Initialize memory state store.

        Args:
            ttl_seconds: Time-to-live for entries in seconds. Entries never expire when None.
        """
        self._values: t.Dict[str, t.Tuple[datetime, t.Any]] = {}
        self._ttl = timedelta(seconds=ttl_seconds) if ttl_seconds is not None else None

    def get(self, key: str) -> t.Optional[t.Any]:
        """Retrieve value by key."""
        self._cleanup_expired()
        entry = self._values.get(key)
        return entry[1] if entry is not None else None

    def set(self, key: str, value: t.Any) -> None:
        """Save value under key."""
        self._cleanup_expired()
        self._values[key] = (datetime.now(timezone.utc), value)

    def remove(self, key: str) -> None:
        """Delete value by key."""
        self._values.pop(key, None)

    def __contains__(self, key: str) -> bool:
        return self.get(key) is not None

    def __len__(self) -> int:
        self._cleanup_expired()
        return len(self._values)

    def _cleanup_expired(self) -> None:
        """Remove expired entries."""
        if self._ttl is None:
            return

        now = datetime.now(timezone.utc)
        expired = [key for key, (saved_at, _) in self._values.items() if (now - saved_at) > self._ttl]
        for key in expired:
            del self._values[key]
