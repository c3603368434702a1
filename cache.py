"""In-process cache for rendered listing views, keyed by request path."""

import logging
import time

logger = logging.getLogger(__name__)


class ViewCache:
    def __init__(self, ttl=120, max_entries=512):
        self.ttl = ttl
        self.max_entries = max_entries
        self._entries = {}

    def get(self, key):
        entry = self._entries.get(key)
        if not entry:
            return None
        expires_at, value = entry
        if expires_at < time.time():
            self._entries.pop(key, None)
            return None
        return value

    def set(self, key, value, ttl=None):
        if len(self._entries) >= self.max_entries and key not in self._entries:
            oldest_key = min(self._entries.items(), key=lambda item: item[1][0])[0]
            self._entries.pop(oldest_key, None)
        self._entries[key] = (time.time() + (ttl or self.ttl), value)

    def invalidate(self, scope="/"):
        """Drop every cached view whose path is under scope."""
        if scope == "/":
            stale = list(self._entries)
        else:
            prefix = scope.rstrip("/") + "/"
            stale = [k for k in self._entries if k == scope or k.startswith(prefix)]
        for key in stale:
            self._entries.pop(key, None)
        logger.info("Invalidated %d cached view(s) under %s", len(stale), scope)
        return len(stale)

    def clear(self):
        self._entries.clear()

    def __len__(self):
        return len(self._entries)
