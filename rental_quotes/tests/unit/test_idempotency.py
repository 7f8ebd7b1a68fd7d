import pytest
from rental_quotes.utils.idempotency import get_idempotent, set_idempotent
from rental_quotes.core import redis as redis_module


@pytest.mark.asyncio
async def test_idemp_flow(fake_redis):
    key = "pytest-idemp"
    assert await get_idempotent(key) is None
    await set_idempotent(key, {"ok": True})
    found = await get_idempotent(key)
    assert found == {"ok": True}
    assert f"idemp:{key}" in fake_redis.store


@pytest.mark.asyncio
async def test_idemp_without_redis_is_noop():
    assert redis_module.get_redis() is None
    await set_idempotent("no-redis", {"ok": True})
    assert await get_idempotent("no-redis") is None


@pytest.mark.asyncio
async def test_idemp_empty_key(fake_redis):
    await set_idempotent("", {"ok": True})
    assert await get_idempotent("") is None
    assert fake_redis.store == {}
