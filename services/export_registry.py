"""
Registry of generated export files awaiting download

Each export is registered under a short id and handed out once.
The registry is bounded and expires entries after a TTL; evicted
files are removed from disk.
"""

import logging
import os
import threading
import time
from collections import OrderedDict, namedtuple

logger = logging.getLogger(__name__)

ExportEntry = namedtuple('ExportEntry', ['export_id', 'path', 'kind', 'created_at'])

class ExportRegistry:
    """Thread-safe id -> file table owned by the application"""

    def __init__(self, max_entries=500, ttl_seconds=3600, clock=time.monotonic):
        if max_entries < 1:
            raise ValueError("max_entries must be at least 1")
        self.max_entries = max_entries
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries = OrderedDict()
        self._lock = threading.Lock()

    def __len__(self):
        with self._lock:
            return len(self._entries)

    def __contains__(self, export_id):
        return self.resolve(export_id) is not None

    def register(self, export_id, path, kind):
        """Add an export; evicts expired entries and the oldest ones beyond capacity"""
        evicted = []
        with self._lock:
            evicted.extend(self._expire_locked())
            self._entries.pop(export_id, None)
            entry = ExportEntry(export_id, path, kind, self._clock())
            self._entries[export_id] = entry
            while len(self._entries) > self.max_entries:
                _, entry = self._entries.popitem(last=False)
                evicted.append(entry)
        self._remove_files(evicted)
        return entry

    def resolve(self, export_id, kind=None):
        """Return the live entry for an id, or None"""
        evicted = []
        with self._lock:
            evicted.extend(self._expire_locked())
            entry = self._entries.get(export_id)
        self._remove_files(evicted)
        if entry is None or (kind is not None and entry.kind != kind):
            return None
        return entry

    def pop(self, export_id):
        """Remove an entry without touching its file"""
        with self._lock:
            return self._entries.pop(export_id, None)

    def discard(self, export_id):
        """Remove an entry and delete its file"""
        entry = self.pop(export_id)
        if entry is not None:
            self._remove_files([entry])
        return entry

    def purge_expired(self):
        with self._lock:
            evicted = self._expire_locked()
        self._remove_files(evicted)
        return len(evicted)

    def _expire_locked(self):
        if not self.ttl_seconds:
            return []
        deadline = self._clock() - self.ttl_seconds
        expired = []
        # Entries are kept in registration order, so the oldest come first
        while self._entries:
            export_id, entry = next(iter(self._entries.items()))
            if entry.created_at > deadline:
                break
            self._entries.pop(export_id)
            expired.append(entry)
        return expired

    @staticmethod
    def _remove_files(entries):
        for entry in entries:
            try:
                os.remove(entry.path)
                logger.info("Removed evicted export %s", entry.export_id)
            except FileNotFoundError:
                pass
            except OSError as e:
                logger.warning("Could not remove export file %s: %s", entry.path, e)
