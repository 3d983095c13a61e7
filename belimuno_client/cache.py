import threading
import time


class EntityCache:
    """Read-through cache of server entities keyed by ``(kind, id)``.

    The server stays the source of truth: entries expire after ``ttl``
    seconds and every mutating client call invalidates what it touched.
    """

    def __init__(self, ttl=30.0, clock=time.monotonic):
        self.ttl = ttl
        self._clock = clock
        self._entries = {}
        self._lock = threading.Lock()

    def get(self, kind, entity_id):
        key = (kind, int(entity_id))
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            stored_at, value = entry
            if self._clock() - stored_at >= self.ttl:
                del self._entries[key]
                return None
            return value

    def set(self, kind, entity_id, value):
        with self._lock:
            self._entries[(kind, int(entity_id))] = (self._clock(), value)

    def invalidate(self, kind, entity_id):
        if entity_id is None:
            return
        with self._lock:
            self._entries.pop((kind, int(entity_id)), None)

    def clear(self):
        with self._lock:
            self._entries.clear()

    def get_or_fetch(self, kind, entity_id, fetch):
        value = self.get(kind, entity_id)
        if value is None:
            value = fetch()
            self.set(kind, entity_id, value)
        return value

    def __len__(self):
        with self._lock:
            return len(self._entries)
