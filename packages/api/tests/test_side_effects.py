# This project was developed with assistance from AI tools.
"""Tests for the background side-effect queue."""

import logging
from unittest.mock import AsyncMock

import pytest

from registry_api.core.config import Settings
from registry_api.services import side_effects as side_effects_mod
from registry_api.services.side_effects import SideEffectQueue


@pytest.mark.asyncio
async def test_success_runs_once():
    queue = SideEffectQueue(max_attempts=3, base_delay=0)
    effect = AsyncMock(return_value=None)

    task = queue.enqueue("ok", effect)
    await queue.drain()

    assert task.result() is True
    effect.assert_awaited_once()
    assert queue.pending == 0


@pytest.mark.asyncio
async def test_retries_until_success():
    queue = SideEffectQueue(max_attempts=3, base_delay=0)
    effect = AsyncMock(side_effect=[RuntimeError("flaky"), None])

    task = queue.enqueue("flaky", effect)
    await queue.drain()

    assert task.result() is True
    assert effect.await_count == 2


@pytest.mark.asyncio
async def test_gives_up_after_max_attempts(caplog):
    caplog.set_level(logging.WARNING, logger="registry_api.services.side_effects")
    queue = SideEffectQueue(max_attempts=3, base_delay=0)
    effect = AsyncMock(side_effect=RuntimeError("down"))

    task = queue.enqueue("doomed", effect)
    await queue.drain()

    assert task.result() is False
    assert effect.await_count == 3
    assert "Side effect doomed failed after 3 attempts" in caplog.text


def test_rejects_non_positive_attempts():
    with pytest.raises(ValueError):
        SideEffectQueue(max_attempts=0)


def test_singleton_requires_init(monkeypatch):
    monkeypatch.setattr(side_effects_mod, "_queue", None)
    with pytest.raises(RuntimeError):
        side_effects_mod.get_side_effect_queue()

    queue = side_effects_mod.init_side_effect_queue(
        Settings(SIDE_EFFECT_MAX_ATTEMPTS=5, SIDE_EFFECT_RETRY_DELAY_SECONDS=0.5)
    )
    assert side_effects_mod.get_side_effect_queue() is queue
