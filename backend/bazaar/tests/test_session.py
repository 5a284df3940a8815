import asyncio
import random

from bazaar.connectors.example_marketplace import ExampleMarketplaceStore
from bazaar.core.cache import MemorySnapshotCache
from bazaar.core.local_storage import MemoryLocalStorage
from bazaar.schemas.listing import GeoPoint
from bazaar.services.feed import MarketplaceFeed
from bazaar.services.search_history import SearchHistoryTracker
from bazaar.services.session import FeedSession


def _session(store):
    feed = MarketplaceFeed(
        store=store,
        cache=MemorySnapshotCache(ttl_seconds=300),
        storage_base_url="https://files.example.com",
        rng=random.Random(0),
    )
    tracker = SearchHistoryTracker(store, MemoryLocalStorage())
    return FeedSession(feed, tracker, debounce_seconds=0.01)


def test_scrolling_reveals_pages_until_end_of_list():
    rows = [{"id": f"r-{i}", "name": f"Lamp {i}"} for i in range(14)]
    session = _session(ExampleMarketplaceStore(collections={"retail": rows}))

    async def scenario():
        await session.start()
        assert len(session.visible) == 6
        assert not session.end_of_list
        assert session.sentinel_visible() == 12
        assert session.sentinel_visible() == 14
        assert session.end_of_list

    asyncio.run(scenario())


def test_filter_change_resets_the_cursor():
    rows = [{"id": f"r-{i}", "name": f"Lamp {i}", "price": i * 10} for i in range(14)]
    session = _session(ExampleMarketplaceStore(collections={"retail": rows}))

    async def scenario():
        await session.start()
        session.sentinel_visible()
        session.update(sort="price_high")
        assert session.cursor.visible == 6
        assert session.visible[0].id == "r-13"

    asyncio.run(scenario())


def test_typing_is_debounced_and_not_recorded():
    store = ExampleMarketplaceStore()
    session = _session(store)

    async def scenario():
        await session.start()
        session.type_query("c")
        session.type_query("ca")
        session.type_query("car")
        assert session.query.text == ""
        await asyncio.sleep(0.05)

    asyncio.run(scenario())
    assert session.query.text == "car"
    assert [l.key for l in session.results] == ["vehicle:v-1"]
    assert session.history.history.terms == []
    assert store.search_log == []


def test_submit_records_history_with_radius():
    store = ExampleMarketplaceStore()
    session = _session(store)

    async def scenario():
        await session.start()
        session.update(center=GeoPoint(lat=40.7440, lon=-74.0324), radius_miles=25)
        session.submit_query("Road bike")
        await session.history.drain()

    asyncio.run(scenario())
    assert session.history.history.terms == ["road bike"]
    assert [entry[1:3] for entry in store.search_log] == [("road bike", 25)]


def test_submit_without_location_logs_unlimited_radius():
    store = ExampleMarketplaceStore()
    session = _session(store)

    async def scenario():
        await session.start()
        session.submit_query("bike")
        await session.history.drain()

    asyncio.run(scenario())
    assert store.search_log[0][2] is None


def test_refresh_picks_up_new_rows():
    store = ExampleMarketplaceStore()
    session = _session(store)

    async def scenario():
        await session.start()
        store.collections["individual"].append({"id": "i-2", "title": "Desk"})
        await session.refresh()

    asyncio.run(scenario())
    assert len(session.results) == 5


class FullLocalStorage(MemoryLocalStorage):
    def set_item(self, key, value):
        raise OSError("quota exceeded")


def test_submit_survives_local_storage_failure():
    store = ExampleMarketplaceStore()
    session = _session(store)
    session.history = SearchHistoryTracker(store, FullLocalStorage())

    async def scenario():
        await session.start()
        session.submit_query("car")
        await session.history.drain()

    asyncio.run(scenario())
    assert session.history.history.terms == ["car"]
    assert [l.key for l in session.results] == ["vehicle:v-1"]


def test_submit_applies_pending_keystrokes_first():
    store = ExampleMarketplaceStore()
    session = _session(store)

    async def scenario():
        await session.start()
        session.type_query("car")
        session.submit_query()
        assert not session.debouncer.pending
        await session.history.drain()
        await asyncio.sleep(0.05)

    asyncio.run(scenario())
    assert session.query.text == "car"
    assert session.history.history.terms == ["car"]
    assert [entry[1] for entry in store.search_log] == ["car"]
