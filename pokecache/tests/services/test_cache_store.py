from concurrent.futures import ThreadPoolExecutor

import pytest

from pokecache.models import DetailRecord
from pokecache.services.cache import CacheStore, CacheStoreError, InvalidKeyError


def _record(record_id: int, name: str, **attributes) -> DetailRecord:
    return DetailRecord.from_payload({"id": record_id, "name": name, **attributes})


def test_insert_if_absent_keeps_first_record(store: CacheStore) -> None:
    first = _record(25, "pikachu", height=4)
    second = _record(25, "raichu", height=8)

    assert store.insert_if_absent(25, first) is True
    assert store.insert_if_absent(25, second) is False

    assert store.lookup(25) == first
    assert store.count() == 1


def test_concurrent_inserts_have_one_winner(store: CacheStore) -> None:
    candidates = [_record(7, f"squirtle-{index}") for index in range(64)]

    with ThreadPoolExecutor(max_workers=16) as pool:
        outcomes = list(
            pool.map(lambda record: store.insert_if_absent(7, record), candidates)
        )

    assert outcomes.count(True) == 1
    assert store.count() == 1
    winner = candidates[outcomes.index(True)]
    assert store.lookup(7) is winner


def test_lookup_absent_then_present(store: CacheStore) -> None:
    record = _record(4, "charmander")

    assert store.lookup(4) is None
    assert 4 not in store

    store.insert_if_absent(4, record)

    assert store.lookup(4) is record
    store.insert_if_absent(5, _record(5, "charmeleon"))
    assert store.lookup(4) is record
    assert 4 in store


def test_lookup_parses_string_keys(store: CacheStore) -> None:
    record = _record(25, "pikachu")
    store.insert_if_absent(25, record)

    assert store.lookup("25") is store.lookup(25)
    assert store.lookup("+25") is record
    assert store.lookup("26") is None


@pytest.mark.parametrize("key", ["abc", "25abc", " 25", "", "2.5", 2.5, None, True])
def test_lookup_rejects_invalid_keys(store: CacheStore, key) -> None:
    with pytest.raises(InvalidKeyError):
        store.lookup(key)


def test_invalid_key_is_value_error() -> None:
    assert issubclass(InvalidKeyError, ValueError)


def test_all_records_and_count(store: CacheStore) -> None:
    store.insert_if_absent(2, _record(2, "ivysaur"))
    store.insert_if_absent(1, _record(1, "bulbasaur"))

    assert [record_id for record_id, _ in store.all()] == [1, 2]
    assert [record.name for record in store.records()] == ["bulbasaur", "ivysaur"]
    assert store.count() == 2
    assert len(store) == 2


def test_lookup_by_name(store: CacheStore) -> None:
    store.insert_if_absent(1, _record(1, "bulbasaur"))

    assert store.lookup_by_name("bulbasaur").id == 1
    assert store.lookup_by_name("mew") is None


def test_clear_removes_entries(store: CacheStore) -> None:
    store.insert_if_absent(1, _record(1, "bulbasaur"))

    store.clear()

    assert store.count() == 0
    assert store.lookup(1) is None
    assert store.insert_if_absent(1, _record(1, "bulbasaur")) is True


def test_store_requires_initialization() -> None:
    cache_store = CacheStore()

    with pytest.raises(CacheStoreError):
        cache_store.lookup(1)
    with pytest.raises(CacheStoreError):
        cache_store.insert_if_absent(1, _record(1, "bulbasaur"))


def test_initialize_only_once(store: CacheStore) -> None:
    with pytest.raises(CacheStoreError):
        store.initialize()


def test_drop_allows_recreation(store: CacheStore) -> None:
    store.insert_if_absent(1, _record(1, "bulbasaur"))

    store.drop()
    assert store.initialized is False
    store.initialize()

    assert store.count() == 0


def test_stores_are_isolated() -> None:
    first = CacheStore()
    second = CacheStore()
    first.initialize()
    second.initialize()

    first.insert_if_absent(1, _record(1, "bulbasaur"))

    assert second.lookup(1) is None
