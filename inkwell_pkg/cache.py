"""
Lazily populated cache that can be marked stale from any thread.

Readers on the fast path only dereference the current entry; the entry is
replaced wholesale, so a reader either sees the previous mapping or the
complete new one. Population happens under a lock with a second validity
check, so concurrent readers trigger at most one rebuild per invalidation.
"""

import logging
import threading
from types import MappingProxyType


class CacheEntry:
    """An immutable snapshot of the cached mapping."""
    __slots__ = ('items', 'version')

    def __init__(self, items, version):
        self.items = MappingProxyType(items)
        self.version = version


class InvalidatingCache:
    def __init__(self, populate, name=None):
        self._populate = populate
        self.name = name or getattr(populate, '__name__', 'cache')
        self._populate_lock = threading.Lock()
        self._state_lock = threading.Lock()
        self._entry = None
        self._version = 0
        self.logger = logging.getLogger('Inkwell.Cache')

    @property
    def is_valid(self):
        entry = self._entry
        return entry is not None and entry.version == self._version

    def invalidate(self):
        """Mark the contents stale. Never waits for a running population."""
        with self._state_lock:
            self._version += 1
        self.logger.debug(f"Invalidated cache {self.name}")

    def _current(self):
        entry = self._entry
        if entry is not None and entry.version == self._version:
            return entry

        with self._populate_lock:
            entry = self._entry
            version = self._version
            if entry is not None and entry.version == version:
                return entry

            self.logger.debug(f"Populating cache {self.name}")
            try:
                data = self._populate()
            except Exception as e:
                self.logger.error(f"Failed to populate cache {self.name}: {e}")
                raise

            # An invalidate() during population bumps _version, leaving this entry stale
            entry = CacheEntry(dict(data or {}), version)
            self._entry = entry
            self.logger.debug(f"Cache {self.name} populated with {len(entry.items)} items")
            return entry

    def get_all(self):
        return list(self._current().items.values())

    def get_by_key(self, key):
        return self._current().items.get(key)

    def items(self):
        return list(self._current().items.items())

    def count(self):
        return len(self._current().items)
