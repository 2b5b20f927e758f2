"""Pytest configuration and shared fixtures."""
import asyncio

import pytest

from anima.backend import ScriptedChatBackend
from anima.config import EngineConfig
from anima.reveal import ManualClock
from anima.session import ConversationSessionManager, ConversationStatus


@pytest.fixture
def manual_clock():
    """Return a clock that only moves when advanced."""
    return ManualClock()


@pytest.fixture
def fast_config():
    """Engine config with millisecond-scale timings."""
    return EngineConfig(
        typing_speed_ms=1,
        tick_interval_ms=1,
        continue_delay_ms=0,
        dots_interval_ms=1,
        error_grace_ms=20,
    )


@pytest.fixture
async def make_manager(fast_config):
    """Build session managers and close them after the test."""
    managers: list[ConversationSessionManager] = []

    def _make(backend, config=None, context_key="user-1", **kwargs):
        manager = ConversationSessionManager(
            backend,
            config=config or fast_config,
            context_key=context_key,
            **kwargs,
        )
        managers.append(manager)
        return manager

    yield _make

    for manager in managers:
        await manager.close()


@pytest.fixture
def scripted_backend():
    """Return a factory for scripted backends."""
    def _make(*script, **kwargs):
        return ScriptedChatBackend(script=list(script), **kwargs)
    return _make


async def wait_for_status(manager, status: ConversationStatus, timeout: float = 2.0) -> None:
    """Poll until the manager reaches ``status``."""
    async def _poll():
        while manager.status is not status:
            await asyncio.sleep(0.001)
    await asyncio.wait_for(_poll(), timeout)


async def finish(manager, timeout: float = 5.0) -> None:
    """Wait for the current turn to settle."""
    await asyncio.wait_for(manager.wait_idle(), timeout)
