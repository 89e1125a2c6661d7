"""In-memory cache of detail records keyed by their integer id.

The store is written by the population worker and read by any number of
application threads. Entries are never replaced: the first record inserted
for an id is kept until an explicit ``clear()``.

Readers should treat a missing id as "not cached yet" while population is
running; see ``PopulationWorker.population_complete``.
"""

from __future__ import annotations

import logging
import re
import threading
from typing import Dict, List, Optional, Tuple, Union

from pokecache.models import DetailRecord

logger = logging.getLogger(__name__)

_INTEGER_KEY = re.compile(r"[+-]?[0-9]+")


class CacheStoreError(RuntimeError):
    """The store was used before ``initialize()`` or initialized twice."""


class InvalidKeyError(ValueError):
    """A lookup key cannot be read as an integer id."""


class CacheStore:
    """Thread-safe id -> DetailRecord table with first-writer-wins inserts."""

    def __init__(self, name: str = "pokemons") -> None:
        self.name = name
        self._lock = threading.Lock()
        self._entries: Optional[Dict[int, DetailRecord]] = None

    @property
    def initialized(self) -> bool:
        return self._entries is not None

    def initialize(self) -> None:
        with self._lock:
            if self._entries is not None:
                raise CacheStoreError(f"Cache table '{self.name}' already exists.")
            self._entries = {}
        logger.debug("Created cache table %s", self.name)

    def drop(self) -> None:
        """Remove the table itself; ``initialize()`` may be called again."""
        with self._lock:
            self._entries = None
        logger.debug("Dropped cache table %s", self.name)

    def insert_if_absent(self, record_id: int, record: DetailRecord) -> bool:
        """Insert ``record`` unless ``record_id`` is already cached."""
        with self._lock:
            entries = self._table()
            if record_id in entries:
                return False
            entries[record_id] = record
            return True

    def lookup(self, key: Union[int, str]) -> Optional[DetailRecord]:
        """Return the cached record for ``key`` or ``None`` if absent."""
        record_id = parse_key(key)
        with self._lock:
            return self._table().get(record_id)

    def lookup_by_name(self, name: str) -> Optional[DetailRecord]:
        for _record_id, record in self.all():
            if record.name == name:
                return record
        return None

    def all(self) -> List[Tuple[int, DetailRecord]]:
        """Snapshot of every entry, ordered by id."""
        with self._lock:
            items = list(self._table().items())
        return sorted(items, key=lambda item: item[0])

    def records(self) -> List[DetailRecord]:
        return [record for _record_id, record in self.all()]

    def count(self) -> int:
        with self._lock:
            return len(self._table())

    def clear(self) -> None:
        """Remove every entry. Reserved for tests and manual resets."""
        with self._lock:
            self._table().clear()
        logger.info("Cleared cache table %s", self.name)

    def __len__(self) -> int:
        return self.count()

    def __contains__(self, key: object) -> bool:
        try:
            return self.lookup(key) is not None  # type: ignore[arg-type]
        except InvalidKeyError:
            return False

    def _table(self) -> Dict[int, DetailRecord]:
        if self._entries is None:
            raise CacheStoreError(
                f"Cache table '{self.name}' has not been initialized."
            )
        return self._entries


def parse_key(key: Union[int, str]) -> int:
    """Normalize a lookup key to an integer id."""
    if isinstance(key, bool):
        raise InvalidKeyError(f"Invalid cache key: {key!r}")
    if isinstance(key, int):
        return key
    if isinstance(key, str) and _INTEGER_KEY.fullmatch(key):
        return int(key)
    raise InvalidKeyError(f"Invalid cache key: {key!r}")


__all__ = ["CacheStore", "CacheStoreError", "InvalidKeyError", "parse_key"]
