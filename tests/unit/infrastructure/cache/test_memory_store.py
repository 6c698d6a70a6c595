import threading

import pytest

from catinfo.infrastructure.cache.memory_store import DEFAULT_MAX_COST_BYTES, DEFAULT_MAX_ENTRIES, MemoryStore

def test_get_returns_stored_value():
    store = MemoryStore(max_entries=2, max_cost_bytes=100)
    store.put("a", "value-a", 10)
    assert store.get("a") == "value-a"
    assert store.get("missing") is None

def test_count_limit_evicts_least_recently_used():
    store = MemoryStore(max_entries=2, max_cost_bytes=1000)
    store.put("a", "A", 1)
    store.put("b", "B", 1)
    store.put("c", "C", 1)

    assert "a" not in store
    assert store.get("b") == "B"
    assert store.get("c") == "C"
    assert len(store) == 2

def test_get_refreshes_recency():
    store = MemoryStore(max_entries=2, max_cost_bytes=1000)
    store.put("a", "A", 1)
    store.put("b", "B", 1)
    store.get("a")
    store.put("c", "C", 1)

    assert "a" in store
    assert "b" not in store

def test_cost_limit_evicts_until_total_fits():
    store = MemoryStore(max_entries=10, max_cost_bytes=100)
    store.put("a", "A", 40)
    store.put("b", "B", 40)
    store.put("c", "C", 40)

    assert "a" not in store
    assert len(store) == 2
    assert store.total_cost == 80

def test_replacing_a_key_updates_cost():
    store = MemoryStore(max_entries=10, max_cost_bytes=100)
    store.put("a", "A", 60)
    store.put("a", "A2", 30)

    assert store.get("a") == "A2"
    assert store.total_cost == 30
    assert len(store) == 1

def test_item_larger_than_cost_limit_is_not_stored():
    store = MemoryStore(max_entries=10, max_cost_bytes=100)
    store.put("small", "S", 10)
    store.put("huge", "H", 101)

    assert "huge" not in store
    assert store.get("small") == "S"
    assert store.total_cost == 10

def test_oversized_replacement_drops_previous_value():
    store = MemoryStore(max_entries=10, max_cost_bytes=100)
    store.put("a", "old", 10)
    store.put("a", "new", 500)

    assert store.get("a") is None
    assert store.total_cost == 0

def test_clear_empties_store():
    store = MemoryStore(max_entries=10, max_cost_bytes=100)
    store.put("a", "A", 10)
    store.put("b", "B", 20)

    store.clear()
    assert len(store) == 0
    assert store.total_cost == 0
    assert store.get("a") is None

def test_default_limits():
    store = MemoryStore()
    assert store.max_entries == DEFAULT_MAX_ENTRIES == 100
    assert store.max_cost_bytes == DEFAULT_MAX_COST_BYTES == 50 * 1024 * 1024

def test_concurrent_put_and_get_keep_limits():
    store = MemoryStore(max_entries=20, max_cost_bytes=500)
    keys = [f"k{index}" for index in range(60)]
    start = threading.Barrier(8)

    def worker(worker_id: int):
        start.wait()
        for i in range(300):
            key = keys[(worker_id * 7 + i) % len(keys)]
            cost = (worker_id + i) % 40 + 1
            # Each value carries the cost it was stored with
            store.put(key, (key, cost), cost)
            store.get(keys[i % len(keys)])

    threads = [threading.Thread(target=worker, args=(worker_id,)) for worker_id in range(8)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert len(store) <= store.max_entries
    assert store.total_cost <= store.max_cost_bytes
    remaining = [key for key in keys if key in store]
    assert len(remaining) == len(store)
    assert store.total_cost == sum(store.get(key)[1] for key in remaining)

@pytest.mark.parametrize("max_entries, max_cost", [(0, 10), (10, 0), (-1, 10)])
def test_non_positive_limits_are_rejected(max_entries, max_cost):
    with pytest.raises(ValueError):
        MemoryStore(max_entries=max_entries, max_cost_bytes=max_cost)
