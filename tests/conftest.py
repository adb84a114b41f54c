"""Shared fixtures for modbridge tests."""

from __future__ import annotations

import pytest
import pytest_asyncio

from modbridge.device.session import DeviceChannel
from modbridge.manager import ModManager
from modbridge.notifications import Notification
from tests.fakes import GAME_VERSION, FakeAgent, FakeDeviceSession, make_mod


@pytest_asyncio.fixture
async def session() -> FakeDeviceSession:
    """Create a fake device session bound to the test's event loop."""
    return FakeDeviceSession()


@pytest.fixture
def channel(session: FakeDeviceSession) -> DeviceChannel:
    """Create a channel over the fake session."""
    return DeviceChannel(session)


@pytest.fixture
def agent() -> FakeAgent:
    """Create a fake agent with two disabled mods."""
    return FakeAgent([make_mod("a-mod"), make_mod("b-mod")])


@pytest.fixture
def events() -> list[Notification]:
    """Collect emitted events."""
    return []


@pytest_asyncio.fixture
async def manager(
    channel: DeviceChannel,
    agent: FakeAgent,
    events: list[Notification],
) -> ModManager:
    """Create a manager wired to the fakes."""
    manager = ModManager(
        channel,
        agent,
        game_version=GAME_VERSION,
        status=await agent.get_mod_status(),
    )
    manager.set_on_event(events.append)
    return manager
