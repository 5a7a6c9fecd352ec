"""Startup wiring: which backing services the app connects to."""

from unittest.mock import AsyncMock

import pytest
from fastapi import FastAPI

from questline import main, redis_client
from questline.config import Settings


def _patch_lifespan(monkeypatch, settings: Settings) -> AsyncMock:
    init_redis = AsyncMock()
    monkeypatch.setattr(main, "get_settings", lambda: settings)
    monkeypatch.setattr(main, "init_db", AsyncMock())
    monkeypatch.setattr(main, "close_db", AsyncMock())
    monkeypatch.setattr(main, "init_redis", init_redis)
    monkeypatch.setattr(main, "close_redis", AsyncMock())
    return init_redis


@pytest.mark.asyncio
async def test_redis_connected_for_rate_limiting_without_events(monkeypatch) -> None:
    settings = Settings(publish_events=False, rate_limit_enabled=True, seed_badges_on_startup=False)
    init_redis = _patch_lifespan(monkeypatch, settings)

    async with main.lifespan(FastAPI()):
        pass

    init_redis.assert_awaited_once_with(settings.redis_url, settings.redis_max_connections)


@pytest.mark.asyncio
async def test_redis_skipped_when_nothing_needs_it(monkeypatch) -> None:
    settings = Settings(publish_events=False, rate_limit_enabled=False, seed_badges_on_startup=False)
    init_redis = _patch_lifespan(monkeypatch, settings)

    async with main.lifespan(FastAPI()):
        pass

    init_redis.assert_not_awaited()


def test_event_client_respects_publish_flag(monkeypatch) -> None:
    sentinel = object()
    monkeypatch.setattr(redis_client, "_client", sentinel)

    monkeypatch.setattr(redis_client, "get_settings", lambda: Settings(publish_events=False))
    assert redis_client.get_event_client() is None
    assert redis_client.get_redis_optional() is sentinel

    monkeypatch.setattr(redis_client, "get_settings", lambda: Settings(publish_events=True))
    assert redis_client.get_event_client() is sentinel
