"""
Tests for the ARQ connection settings.
"""
from unittest.mock import AsyncMock, patch

import pytest

from app.core.config import settings
from app.db import redis as redis_module
from app.db.redis import close_arq_pool, get_arq_pool, get_arq_redis_settings
from app.worker import WorkerSettings


@pytest.fixture
async def fresh_pool():
    redis_module._arq_pool = None
    yield
    await close_arq_pool()


class TestRetryBudgets:

    def test_worker_waits_for_redis(self):
        assert WorkerSettings.redis_settings.conn_retries == 5
        assert WorkerSettings.redis_settings.conn_timeout == 10

    async def test_enqueue_pool_fails_fast(self, fresh_pool):
        create_pool = AsyncMock(return_value=AsyncMock())
        with patch("app.db.redis.create_pool", create_pool):
            await get_arq_pool()

        redis_settings = create_pool.await_args.args[0]
        assert redis_settings.conn_retries == settings.ARQ_ENQUEUE_CONN_RETRIES == 0
        assert redis_settings.conn_timeout == settings.ARQ_ENQUEUE_CONN_TIMEOUT
        assert redis_settings.conn_retry_delay == 0

    async def test_pool_is_reused(self, fresh_pool):
        create_pool = AsyncMock(return_value=AsyncMock())
        with patch("app.db.redis.create_pool", create_pool):
            first = await get_arq_pool()
            second = await get_arq_pool()

        assert first is second
        create_pool.assert_awaited_once()

    def test_defaults_parse_redis_url(self):
        redis_settings = get_arq_redis_settings()
        assert redis_settings.conn_retries == 5
        assert redis_settings.conn_retry_delay == 1
