"""
Tests for the concert-list cache, with Redis replaced by an in-memory double.
"""

import json
from unittest.mock import AsyncMock

import pytest
from httpx import AsyncClient
from redis.exceptions import ConnectionError as RedisConnectionError

from concert_tickets.services import cache_service
from tests.helpers import create_concert, reserve


class InMemoryRedis:
    """The handful of string commands the cache uses, TTLs recorded but not enforced."""

    def __init__(self):
        self.store = {}
        self.ttls = {}

    async def get(self, key):
        return self.store.get(key)

    async def setex(self, key, ttl, value):
        self.store[key] = value
        self.ttls[key] = ttl

    async def incr(self, key):
        self.store[key] = str(int(self.store.get(key, "0")) + 1)
        return int(self.store[key])

    @property
    def generation(self) -> int:
        return int(self.store.get(cache_service.CONCERT_LIST_GENERATION_KEY, "0"))


@pytest.fixture
def fake_redis(monkeypatch):
    """Switch caching on and hand the cache service an in-memory client."""
    fake = InMemoryRedis()
    monkeypatch.setattr(cache_service.settings, "REDIS_ENABLED", True)
    monkeypatch.setattr(cache_service, "_redis_client", fake)
    return fake


@pytest.mark.asyncio
async def test_list_miss_populates_cache(client: AsyncClient, fake_redis):
    concert = await create_concert(client)
    key = f"{cache_service.CONCERT_LIST_PREFIX}{fake_redis.generation}"
    assert key not in fake_redis.store

    response = await client.get("/api/concerts")
    assert response.status_code == 200
    assert response.json() == [concert]

    assert json.loads(fake_redis.store[key]) == [concert]
    assert fake_redis.ttls[key] == cache_service.settings.REDIS_CACHE_TTL


@pytest.mark.asyncio
async def test_list_hit_skips_database(client: AsyncClient, fake_redis):
    cached = [{
        "id": 7,
        "name": "Cached Show",
        "description": "From Redis",
        "total_seats": 3,
        "available_seats": 1,
    }]
    fake_redis.store[f"{cache_service.CONCERT_LIST_PREFIX}0"] = json.dumps(cached)

    response = await client.get("/api/concerts")
    assert response.status_code == 200
    assert response.json() == cached


@pytest.mark.asyncio
async def test_mutations_invalidate_list(client: AsyncClient, fake_redis, test_user):
    concert = await create_concert(client)
    assert fake_redis.generation == 1

    await client.put(f"/api/concerts/{concert['id']}", json={"name": "Renamed"})
    assert fake_redis.generation == 2

    reservation = (await reserve(client, test_user["id"], concert["id"])).json()
    assert fake_redis.generation == 3

    await client.put(f"/api/reservations/{reservation['id']}", json={"status": "cancelled"})
    await client.delete(f"/api/reservations/{reservation['id']}")
    await client.delete(f"/api/concerts/{concert['id']}")
    assert fake_redis.generation == 6


@pytest.mark.asyncio
async def test_list_after_mutation_sees_new_seat_count(client: AsyncClient, fake_redis, test_user):
    concert = await create_concert(client)
    assert (await client.get("/api/concerts")).json()[0]["available_seats"] == 5

    await reserve(client, test_user["id"], concert["id"])
    assert (await client.get("/api/concerts")).json()[0]["available_seats"] == 4


@pytest.mark.asyncio
async def test_list_read_overlapping_invalidation_is_not_served(fake_redis):
    """A list read before a mutation is stored, but never under the current key."""
    cached, generation = await cache_service.get_cached_concerts()
    assert cached is None

    await cache_service.invalidate_concert_cache()
    await cache_service.set_cached_concerts([{"id": 1, "available_seats": 5}], generation)

    cached, _ = await cache_service.get_cached_concerts()
    assert cached is None


@pytest.mark.asyncio
async def test_failed_mutation_leaves_cache_alone(client: AsyncClient, fake_redis):
    response = await client.put("/api/concerts/99999", json={"name": "Ghost"})
    assert response.status_code == 404
    assert fake_redis.generation == 0


@pytest.mark.asyncio
async def test_redis_errors_fall_back_to_database(client: AsyncClient, monkeypatch):
    failing = AsyncMock()
    failing.get.side_effect = RedisConnectionError("gone")
    failing.setex.side_effect = RedisConnectionError("gone")
    failing.incr.side_effect = RedisConnectionError("gone")
    monkeypatch.setattr(cache_service.settings, "REDIS_ENABLED", True)
    monkeypatch.setattr(cache_service, "_redis_client", failing)

    concert = await create_concert(client)

    response = await client.get("/api/concerts")
    assert response.status_code == 200
    assert response.json() == [concert]
    failing.setex.assert_not_awaited()


@pytest.mark.asyncio
async def test_cache_disabled_by_default():
    assert await cache_service.get_redis() is None
    assert await cache_service.get_cache_stats() == {"status": "disabled"}
