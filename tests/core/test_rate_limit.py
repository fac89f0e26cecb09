"""
Tests for admin rate limiting.
"""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from admissions.core import rate_limit
from admissions.core.rate_limit import (
    RateLimitExceeded,
    check_rate_limit,
    enforce_admin_rate_limit,
)

RATE_LIMIT = "admissions.core.rate_limit"


@pytest.fixture
def memory_only():
    """No Redis connection and an empty in-memory window."""
    with (
        patch(f"{RATE_LIMIT}.get_redis", return_value=None),
        patch.dict(rate_limit._memory_store, clear=True),
    ):
        yield rate_limit._memory_store


def _redis_client(current_count: int) -> MagicMock:
    pipe = MagicMock()
    pipe.execute = AsyncMock(return_value=[0, current_count, 1, True])
    client = MagicMock()
    client.pipeline.return_value = pipe
    return client


@pytest.mark.asyncio
async def test_memory_fallback_allows_up_to_limit(memory_only):
    results = [await check_rate_limit("admin:delete:1", 3, 60) for _ in range(4)]

    assert results == [True, True, True, False]


@pytest.mark.asyncio
async def test_memory_keys_are_independent(memory_only):
    assert await check_rate_limit("admin:delete:1", 1, 60)
    assert not await check_rate_limit("admin:delete:1", 1, 60)
    assert await check_rate_limit("admin:delete:2", 1, 60)


@pytest.mark.asyncio
async def test_enforce_raises_429_after_limit(memory_only, admin):
    await enforce_admin_rate_limit(admin, "delete_application", 2, 60)
    await enforce_admin_rate_limit(admin, "delete_application", 2, 60)

    with pytest.raises(RateLimitExceeded) as exc_info:
        await enforce_admin_rate_limit(admin, "delete_application", 2, 60)

    assert exc_info.value.status_code == 429
    assert exc_info.value.detail["error"] == "RATE_LIMIT_EXCEEDED"
    assert exc_info.value.headers["Retry-After"] == "60"


@pytest.mark.asyncio
async def test_limit_is_per_action(memory_only, admin):
    await enforce_admin_rate_limit(admin, "update_status", 1, 60)
    await enforce_admin_rate_limit(admin, "update_evaluation", 1, 60)


@pytest.mark.asyncio
async def test_redis_window_used_when_connected():
    with patch(f"{RATE_LIMIT}.get_redis", return_value=_redis_client(current_count=5)):
        assert not await check_rate_limit("admin:update_status:1", 5, 60)

    with patch(f"{RATE_LIMIT}.get_redis", return_value=_redis_client(current_count=4)):
        assert await check_rate_limit("admin:update_status:1", 5, 60)


@pytest.mark.asyncio
async def test_redis_failure_falls_back_to_memory(memory_only):
    client = _redis_client(current_count=0)
    client.pipeline.return_value.execute = AsyncMock(side_effect=ConnectionError("down"))

    with patch(f"{RATE_LIMIT}.get_redis", return_value=client):
        assert await check_rate_limit("admin:delete:1", 1, 60)
        assert not await check_rate_limit("admin:delete:1", 1, 60)

    assert "admin:delete:1" in memory_only
