import pytest

from app.core.config import settings
from app.services import cache
from app.services.cache import RedisCache


class FakeRedis:
    def __init__(self):
        self.store = {}

    async def get(self, key):
        return self.store.get(key)

    async def setex(self, key, ttl, value):
        self.store[key] = value

    async def scan_iter(self, match):
        prefix = match.rstrip("*")
        for key in list(self.store):
            if key.startswith(prefix):
                yield key

    async def delete(self, *keys):
        for key in keys:
            self.store.pop(key, None)


@pytest.fixture
def fake_redis(monkeypatch):
    fake = FakeRedis()
    monkeypatch.setattr(settings, "ENABLE_REDIS", True)
    monkeypatch.setattr(cache, "get_redis", lambda: fake)
    return fake


async def test_set_get_and_clear_namespace(fake_redis):
    videos = RedisCache("approved_videos")
    articles = RedisCache("approved_articles")
    await videos.set("all", [{"id": 1}])
    await articles.set("all", [{"id": 2}])

    assert await videos.get("all") == [{"id": 1}]
    assert "mindcare:approved_videos:all" in fake_redis.store

    await videos.clear()
    assert await videos.get("all") is None
    assert await articles.get("all") == [{"id": 2}]


async def test_disabled_cache_is_a_no_op(monkeypatch):
    monkeypatch.setattr(settings, "ENABLE_REDIS", False)

    def explode():
        raise AssertionError("redis must not be touched")

    monkeypatch.setattr(cache, "get_redis", explode)
    c = RedisCache("approved_videos")
    await c.set("all", [1])
    assert await c.get("all") is None
    await c.clear()


async def test_redis_errors_degrade_to_miss(monkeypatch):
    monkeypatch.setattr(settings, "ENABLE_REDIS", True)

    class Broken:
        async def get(self, key):
            raise ConnectionError("redis down")

    monkeypatch.setattr(cache, "get_redis", lambda: Broken())
    assert await RedisCache("approved_videos").get("all") is None
