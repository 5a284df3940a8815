import asyncio
import random

from redis.exceptions import ConnectionError as RedisConnectionError

from bazaar.connectors.example_marketplace import ExampleMarketplaceStore
from bazaar.core.cache import MemorySnapshotCache, RedisSnapshotCache
from bazaar.core.errors import StoreError
from bazaar.schemas.listing import FeedQuery, GeoPoint
from bazaar.services.feed import MarketplaceFeed

BASE = "https://files.example.com/storage"
HOBOKEN = GeoPoint(lat=40.7440, lon=-74.0324, label="Hoboken, NJ")


class FailingCollectionStore(ExampleMarketplaceStore):
    async def fetch_collection(self, source):
        if source == "real_estate":
            raise StoreError("real estate table unavailable")
        return await super().fetch_collection(source)


class FailingBusinessStore(ExampleMarketplaceStore):
    async def fetch_businesses(self, ids):
        raise StoreError("business table unavailable")


def _feed(store=None, cache=None):
    return MarketplaceFeed(
        store=store or ExampleMarketplaceStore(),
        cache=cache or MemorySnapshotCache(ttl_seconds=300),
        storage_base_url=BASE,
        rng=random.Random(1),
    )


def test_refresh_merges_and_enriches_all_sources():
    store = ExampleMarketplaceStore()
    snapshot = asyncio.run(_feed(store).load())

    assert not snapshot.failed
    assert sorted(l.key for l in snapshot.listings) == [
        "individual:i-1",
        "real_estate:h-1",
        "retail:r-1",
        "vehicle:v-1",
    ]
    coat = snapshot.find("retail:r-1")
    assert coat.business_verified is True
    assert coat.business_plan == "premium"
    assert coat.location == "Hoboken, NJ"
    sedan = snapshot.find("vehicle:v-1")
    assert sedan.business_plan == "starter"
    assert sedan.location == "Newark, NJ"
    assert store.business_requests == [["b-1", "b-2"]]


def test_car_search_near_hoboken_returns_only_the_vehicle():
    feed = _feed()

    async def scenario():
        await feed.load()
        return feed.search(FeedQuery(text="car", center=HOBOKEN, radius_miles=25))

    results = asyncio.run(scenario())
    assert [l.key for l in results] == ["vehicle:v-1"]


def test_empty_query_returns_every_listing():
    feed = _feed()

    async def scenario():
        await feed.load()
        return feed.search(FeedQuery())

    assert len(asyncio.run(scenario())) == 4


def test_history_boosts_matching_listings():
    feed = _feed()

    async def scenario():
        await feed.load()
        return feed.search(FeedQuery(), history=["road bike"])

    assert asyncio.run(scenario())[0].key == "individual:i-1"


def test_price_filter_applies_after_search():
    feed = _feed()

    async def scenario():
        await feed.load()
        return feed.search(FeedQuery(min_price="100", max_price="$1,000"))

    assert [l.key for l in asyncio.run(scenario())] == ["individual:i-1"]


def test_collection_failure_marks_snapshot_failed_and_skips_cache():
    cache = MemorySnapshotCache(ttl_seconds=300)
    feed = _feed(FailingCollectionStore(), cache)

    async def scenario():
        snapshot = await feed.load()
        return snapshot, await cache.get(feed.cache_key)

    snapshot, cached = asyncio.run(scenario())
    assert snapshot.failed
    assert snapshot.listings == ()
    assert cached is None
    assert feed.search(FeedQuery()) == []


def test_business_failure_keeps_listings_with_defaults():
    snapshot = asyncio.run(_feed(FailingBusinessStore()).load())

    assert not snapshot.failed
    assert len(snapshot.listings) == 4
    coat = snapshot.find("retail:r-1")
    assert coat.business_plan is None
    assert coat.business_verified is False
    assert coat.location == "Hoboken, NJ"


def test_cached_snapshot_is_served_until_invalidated():
    store = ExampleMarketplaceStore()
    feed = _feed(store)

    async def scenario():
        await feed.load()
        store.collections["retail"].append({"id": "r-2", "name": "Scarf"})
        cached = await feed.load()
        refreshed = await feed.refresh(invalidate=True)
        return cached, refreshed

    cached, refreshed = asyncio.run(scenario())
    assert cached.from_cache
    assert cached.find("retail:r-2") is None
    assert not refreshed.from_cache
    assert refreshed.find("retail:r-2") is not None


def test_no_business_lookup_without_business_listings():
    store = ExampleMarketplaceStore(collections={"individual": [{"id": "i-1", "title": "Lamp"}]})
    snapshot = asyncio.run(_feed(store).load())

    assert [l.key for l in snapshot.listings] == ["individual:i-1"]
    assert store.business_requests == []


class DownRedis:
    async def get(self, key):
        raise RedisConnectionError("redis down")

    async def set(self, key, value, ex=None):
        raise RedisConnectionError("redis down")

    async def delete(self, key):
        raise RedisConnectionError("redis down")


class GenerationStore(ExampleMarketplaceStore):
    """Each build sees one generation; a build that interleaves with another mixes them."""

    def __init__(self):
        super().__init__(collections={}, businesses=[])
        self.generation = 0

    async def fetch_collection(self, source):
        if source == "retail":
            self.generation += 1
        await asyncio.sleep(0)
        await asyncio.sleep(0)
        return [{"id": f"{source}-g{self.generation}", "title": "Lamp"}]


def test_malformed_business_rows_do_not_break_refresh():
    store = ExampleMarketplaceStore(
        businesses=[
            {"id": "b-1", "is_verified": None, "plan": "premium"},
            {"id": "b-2", "is_verified": True, "plan": "growth", "lat": "north"},
        ]
    )
    snapshot = asyncio.run(_feed(store).load())

    assert not snapshot.failed
    coat = snapshot.find("retail:r-1")
    assert coat.business_verified is False
    assert coat.business_plan == "premium"
    sedan = snapshot.find("vehicle:v-1")
    assert sedan.business_verified is False
    assert sedan.business_plan is None
    assert sedan.location == "Newark, NJ"


def test_unreachable_redis_falls_back_to_a_fresh_build():
    feed = _feed(cache=RedisSnapshotCache(DownRedis(), ttl_seconds=300))

    async def scenario():
        loaded = await feed.load()
        refreshed = await feed.refresh(invalidate=True)
        return loaded, refreshed

    loaded, refreshed = asyncio.run(scenario())
    assert not loaded.failed
    assert not loaded.from_cache
    assert len(loaded.listings) == 4
    assert len(refreshed.listings) == 4


def test_overlapping_refreshes_never_mix_snapshots():
    store = GenerationStore()
    feed = _feed(store)

    async def scenario():
        finished = []
        observed = []

        async def reader():
            while not finished:
                observed.append({l.id.rsplit("-g", 1)[1] for l in feed.search(FeedQuery())})
                await asyncio.sleep(0)

        reading = asyncio.ensure_future(reader())
        first, second = await asyncio.gather(feed.refresh(), feed.refresh())
        finished.append(True)
        await reading
        return first, second, observed

    first, second, observed = asyncio.run(scenario())
    assert {l.id for l in first.listings} == {"retail-g1", "vehicle-g1", "real_estate-g1", "individual-g1"}
    assert {l.id for l in second.listings} == {"retail-g2", "vehicle-g2", "real_estate-g2", "individual-g2"}
    assert feed.snapshot is second
    assert observed
    assert all(len(generations) <= 1 for generations in observed)
