import time
from typing import Any, Callable, Dict, Optional, Tuple


class TTLCache:
    """
    Small key/value cache whose entries expire `ttl_seconds` after being written.
    The clock is injectable (seconds, monotonic) so expiry can be tested.
    Entries are never invalidated except by expiry.
    """

    def __init__(self, ttl_seconds: float = 3600.0, clock: Callable[[], float] = time.monotonic):
        self.ttl_seconds = ttl_seconds
        self.clock = clock
        self._entries: Dict[Any, Tuple[Any, float]] = {}

    def get(self, key: Any) -> Optional[Any]:
        entry = self._entries.get(key)
        if entry is None:
            return None
        value, written_at = entry
        if self.clock() - written_at >= self.ttl_seconds:
            self._entries.pop(key, None)
            return None
        return value

    def set(self, key: Any, value: Any):
        self._entries[key] = (value, self.clock())

    def __contains__(self, key: Any) -> bool:
        return self.get(key) is not None

    def __len__(self) -> int:
        return len(self._entries)
