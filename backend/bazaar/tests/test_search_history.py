import asyncio
import json

from bazaar.connectors.example_marketplace import ExampleMarketplaceStore
from bazaar.core.errors import StoreError
from bazaar.core.local_storage import MemoryLocalStorage
from bazaar.services.search_history import LOCAL_HISTORY_KEY, SearchHistory, SearchHistoryTracker


class BrokenHistoryStore(ExampleMarketplaceStore):
    async def save_search_history(self, user_id, searches):
        raise StoreError("history table unavailable")

    async def log_search(self, user_id, term, radius_miles):
        raise StoreError("log table unavailable")


def test_history_moves_repeated_terms_to_front():
    history = SearchHistory(["bike", "car"])
    history.add("  CAR ")
    assert history.terms == ["car", "bike"]


def test_history_is_capped_and_deduplicated():
    history = SearchHistory(max_length=10)
    for i in range(12):
        history.add(f"term {i}")
    history.add("term 5")

    assert len(history) == 10
    assert history.terms[0] == "term 5"
    assert history.terms.count("term 5") == 1
    assert "term 0" not in history.terms


def test_blank_terms_are_ignored():
    history = SearchHistory()
    assert history.add("   ") is False
    assert history.add(None) is False
    assert list(history) == []


def test_anonymous_history_lives_in_local_storage():
    store = ExampleMarketplaceStore()
    storage = MemoryLocalStorage()
    storage.set_item(LOCAL_HISTORY_KEY, json.dumps(["bike"]))
    tracker = SearchHistoryTracker(store, storage)

    async def scenario():
        assert await tracker.load() == ["bike"]
        tracker.submit("Car", radius_miles=25)
        await tracker.drain()

    asyncio.run(scenario())
    assert json.loads(storage.get_item(LOCAL_HISTORY_KEY)) == ["car", "bike"]
    assert store.histories == {}
    assert [(user, term, radius) for user, term, radius, _ in store.search_log] == [(None, "car", 25)]


def test_corrupt_local_history_loads_as_empty():
    storage = MemoryLocalStorage()
    storage.set_item(LOCAL_HISTORY_KEY, "{not json")
    tracker = SearchHistoryTracker(ExampleMarketplaceStore(), storage)
    assert asyncio.run(tracker.load()) == []


def test_signed_in_history_is_persisted_to_the_store():
    store = ExampleMarketplaceStore()
    store.histories["u-1"] = ["bike"]
    tracker = SearchHistoryTracker(store, MemoryLocalStorage(), user_id="u-1")

    async def scenario():
        await tracker.load()
        tracker.submit("lamp")
        await tracker.drain()

    asyncio.run(scenario())
    assert store.histories["u-1"] == ["lamp", "bike"]
    assert store.search_log[0][:3] == ("u-1", "lamp", None)


def test_persistence_failures_do_not_reach_the_caller():
    store = BrokenHistoryStore()
    tracker = SearchHistoryTracker(store, MemoryLocalStorage(), user_id="u-1")

    async def scenario():
        tracker.submit("lamp")
        await tracker.drain()

    asyncio.run(scenario())
    assert tracker.history.terms == ["lamp"]


def test_blank_submission_is_not_recorded():
    store = ExampleMarketplaceStore()
    tracker = SearchHistoryTracker(store, MemoryLocalStorage())

    async def scenario():
        return tracker.submit("   ")

    assert asyncio.run(scenario()) is None
    assert store.search_log == []


class FullLocalStorage(MemoryLocalStorage):
    def set_item(self, key, value):
        raise OSError("quota exceeded")


class ExplodingLogStore(ExampleMarketplaceStore):
    async def log_search(self, user_id, term, radius_miles):
        raise RuntimeError("unexpected driver failure")


def test_local_storage_write_failure_keeps_history_in_memory():
    tracker = SearchHistoryTracker(ExampleMarketplaceStore(), FullLocalStorage())

    async def scenario():
        tracker.submit("car")
        await tracker.drain()

    asyncio.run(scenario())
    assert tracker.history.terms == ["car"]


def test_unexpected_persistence_errors_stay_inside_the_task():
    store = ExplodingLogStore()
    tracker = SearchHistoryTracker(store, MemoryLocalStorage(), user_id="u-1")

    async def scenario():
        task = tracker.submit("lamp")
        await tracker.drain()
        return task

    task = asyncio.run(scenario())
    assert task.exception() is None
    assert store.histories["u-1"] == ["lamp"]
