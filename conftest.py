from __future__ import annotations

import threading
from collections import Counter
from typing import Dict, List, Optional

import pytest

from pokecache.clients import DecodeError, FetchError
from pokecache.models import CatalogReference, DetailRecord
from pokecache.services.cache import CacheStore


class FakeCatalogClient:
    """In-memory stand-in for the upstream catalog.

    ``failures`` maps a locator to the errors raised by its first calls,
    in order; later calls succeed.
    """

    def __init__(
        self,
        index: List[dict],
        details: Dict[str, dict],
        *,
        failures: Optional[Dict[str, List[FetchError]]] = None,
        index_error: Optional[FetchError] = None,
    ) -> None:
        self.index = index
        self.details = details
        self.failures = {key: list(value) for key, value in (failures or {}).items()}
        self.index_error = index_error
        self.index_calls = 0
        self.detail_calls: Counter = Counter()
        self.call_order: List[str] = []
        self._lock = threading.Lock()

    def fetch_index(self) -> List[CatalogReference]:
        self.index_calls += 1
        if self.index_error is not None:
            raise self.index_error
        return [CatalogReference.from_index_entry(entry) for entry in self.index]

    def fetch_detail(self, reference: CatalogReference) -> DetailRecord:
        with self._lock:
            self.detail_calls[reference.locator] += 1
            self.call_order.append(reference.locator)
            pending = self.failures.get(reference.locator)
            if pending:
                raise pending.pop(0)
        if reference.locator not in self.details:
            raise DecodeError("no such item", reference=reference)
        return DetailRecord.from_payload(self.details[reference.locator])


@pytest.fixture
def scenario_client() -> FakeCatalogClient:
    return FakeCatalogClient(
        index=[
            {"name": "bulbasaur", "url": "u1"},
            {"name": "ivysaur", "url": "u2"},
        ],
        details={
            "u1": {"id": 1, "name": "bulbasaur", "height": 7},
            "u2": {"id": 2, "name": "ivysaur", "height": 10},
        },
    )


@pytest.fixture
def store() -> CacheStore:
    cache_store = CacheStore()
    cache_store.initialize()
    return cache_store


@pytest.fixture
def make_client():
    return FakeCatalogClient
