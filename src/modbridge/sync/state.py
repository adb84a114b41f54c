"""Holder for the device-confirmed mod status.

The held ModStatus is only ever replaced by a snapshot the device just
reported; it is never merged or patched.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from modbridge.core.models import ModStatus

if TYPE_CHECKING:
    from collections.abc import Callable

    from modbridge.core.models import Mod

logger = logging.getLogger(__name__)


class ModState:
    """Owns the latest ModStatus and notifies a listener on replacement."""

    def __init__(self, status: ModStatus | None = None) -> None:
        if status is None:
            status = ModStatus()
        self._status = status.with_mods(status.installed_mods)
        self._on_change: Callable[[ModStatus], None] | None = None

    @property
    def status(self) -> ModStatus:
        """Get the current snapshot."""
        return self._status

    @property
    def mods(self) -> list[Mod]:
        """Get the installed mods, sorted by id."""
        return self._status.installed_mods

    def set_on_change(self, callback: Callable[[ModStatus], None]) -> None:
        """Set callback invoked after every replacement."""
        self._on_change = callback

    def replace(self, status: ModStatus) -> None:
        """Replace the whole snapshot."""
        self._status = status.with_mods(status.installed_mods)
        self._notify()

    def replace_mods(self, mods: list[Mod]) -> None:
        """Replace the mod list, keeping the app info."""
        self._status = self._status.with_mods(mods)
        self._notify()

    def _notify(self) -> None:
        logger.debug("Mod status replaced (%d mods)", len(self._status.installed_mods))
        if self._on_change:
            self._on_change(self._status)
