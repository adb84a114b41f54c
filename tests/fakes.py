"""In-memory stand-ins for the device session and the mod agent.

These let the sync core run against a scripted device without adb.
"""

from __future__ import annotations

import asyncio
from collections import deque
from collections.abc import Mapping
from pathlib import Path

from modbridge.core.models import AppInfo, Mod, ModStatus
from modbridge.sync.types import ImportResult

GAME_VERSION = "1.29.0"


def make_mod(
    mod_id: str,
    version: str = "1.0.0",
    game_version: str | None = GAME_VERSION,
    is_enabled: bool = False,
) -> Mod:
    """Build a mod with sensible defaults."""
    return Mod(id=mod_id, version=version, game_version=game_version, is_enabled=is_enabled)


class FakeStream:
    """Scripted device stream.

    Chunks are fed into a queue; ``None`` marks end-of-data. Killing the
    stream appends ``tail`` followed by end-of-data, the way a real process
    flushes its last output before exiting.
    """

    def __init__(self, chunks: list[bytes] | None = None, tail: list[bytes] | None = None) -> None:
        self._queue: asyncio.Queue[bytes | Exception | None] = asyncio.Queue()
        self.tail = list(tail or [])
        self.kill_calls = 0
        for chunk in chunks or []:
            self.feed(chunk)

    def feed(self, chunk: bytes) -> None:
        self._queue.put_nowait(chunk)

    def fail(self, error: Exception) -> None:
        self._queue.put_nowait(error)

    def end(self) -> None:
        self._queue.put_nowait(None)

    async def read_next_chunk(self) -> bytes | None:
        item = await self._queue.get()
        if isinstance(item, Exception):
            raise item
        return item

    async def kill(self) -> None:
        self.kill_calls += 1
        for chunk in self.tail:
            self.feed(chunk)
        self.end()


class FakeDeviceSession:
    """Records every command and hands out queued streams on spawn.

    Must be constructed inside a running event loop.
    """

    def __init__(self) -> None:
        self.disconnected: asyncio.Future[None] = asyncio.get_running_loop().create_future()
        self.executed: list[str] = []
        self.spawned: list[tuple[str, bytes | None]] = []
        self.pushed: list[tuple[Path, str]] = []
        self.streams: deque[FakeStream] = deque()
        self.execute_error: Exception | None = None
        self.outputs: dict[str, str] = {}

    def add_stream(self, stream: FakeStream) -> FakeStream:
        self.streams.append(stream)
        return stream

    async def execute(self, command: str) -> str:
        self.executed.append(command)
        if self.execute_error is not None:
            raise self.execute_error
        return self.outputs.get(command, "")

    async def spawn(self, command: str, stdin: bytes | None = None) -> FakeStream:
        self.spawned.append((command, stdin))
        if self.streams:
            return self.streams.popleft()
        stream = FakeStream()
        stream.end()
        return stream

    async def push(self, local_path: Path, remote_path: str) -> None:
        self.pushed.append((local_path, remote_path))

    def disconnect(self) -> None:
        if not self.disconnected.done():
            self.disconnected.set_result(None)


class FakeAgent:
    """Mod agent that keeps its mod list in memory.

    Ids in ``refuse`` never change state on ``set_mods_enabled``, which
    simulates a conflicting change rejected by the device.
    """

    def __init__(self, mods: list[Mod] | None = None, game_version: str = GAME_VERSION) -> None:
        self.mods: dict[str, Mod] = {mod.id: mod for mod in mods or []}
        self.game_version = game_version
        self.refuse: set[str] = set()
        self.set_calls: list[dict[str, bool]] = []
        self.imported: list[Path | str] = []
        self.import_results: dict[Path | str, ImportResult | Exception] = {}
        self.error: Exception | None = None
        self.player_data_exists = True

    def _check(self) -> None:
        if self.error is not None:
            raise self.error

    def _import(self, key: Path | str) -> ImportResult:
        self.imported.append(key)
        result = self.import_results[key]
        if isinstance(result, Exception):
            raise result
        return result

    async def import_file(self, path: Path) -> ImportResult:
        return self._import(path)

    async def import_url(self, url: str) -> ImportResult:
        return self._import(url)

    async def set_mods_enabled(self, statuses: Mapping[str, bool]) -> list[Mod]:
        self._check()
        self.set_calls.append(dict(statuses))
        for mod_id, enabled in statuses.items():
            if mod_id in self.mods and mod_id not in self.refuse:
                self.mods[mod_id] = self.mods[mod_id].model_copy(update={"is_enabled": enabled})
        return list(self.mods.values())

    async def remove_mod(self, mod_id: str) -> list[Mod]:
        self._check()
        self.mods.pop(mod_id, None)
        return list(self.mods.values())

    async def quick_fix(self, wipe_existing_mods: bool) -> ModStatus:
        self._check()
        if wipe_existing_mods:
            self.mods = {mod_id: mod for mod_id, mod in self.mods.items() if mod.is_core}
        return await self.get_mod_status()

    async def fix_player_data(self) -> bool:
        self._check()
        return self.player_data_exists

    async def get_mod_status(self) -> ModStatus:
        self._check()
        return ModStatus(
            installed_mods=list(self.mods.values()),
            app_info=AppInfo(version=self.game_version),
        )
