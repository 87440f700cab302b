"""Logical-name lookup for the physical controls screens put on display."""

from __future__ import annotations

import logging
import weakref
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterator, List, Optional, Tuple

from .geometry import Rect, world_bounds

logger = logging.getLogger(__name__)


def screen_name(screen: Any) -> Optional[str]:
    """Best-effort logical name for a screen object."""
    if screen is None:
        return None
    if isinstance(screen, str):
        return screen
    for attribute in ("key", "name"):
        value = getattr(screen, attribute, None)
        if isinstance(value, str) and value:
            return value
    return type(screen).__name__


def is_live(control: Any) -> bool:
    """A control is live while it is attached to a screen that is still up.

    Controls that carry no ``screen`` attribute at all cannot report being
    detached; they stay live until their owning screen is purged.
    """
    if control is None:
        return False
    if not hasattr(control, "screen"):
        return True
    screen = control.screen
    if screen is None:
        return False
    return bool(getattr(screen, "is_live", True))


@dataclass
class _Entry:
    ref: Callable[[], Any]
    screen: Optional[str]


class ControlRegistry:
    """Maps logical control names to controls without owning them.

    Entries hold weak references; an entry whose control has been collected,
    detached from its screen, or whose screen reports ``is_live = False`` is
    treated as absent and dropped the next time anyone looks at it.
    """

    def __init__(self) -> None:
        self._entries: Dict[str, _Entry] = {}
        self.on_register: Optional[Callable[[str], None]] = None

    def register(self, name: str, control: Any, screen: Optional[str] = None) -> None:
        if not name:
            raise ValueError("control name must be a non-empty string")
        try:
            ref: Callable[[], Any] = weakref.ref(control)
        except TypeError:
            # Objects without __weakref__ slots are held strongly.
            ref = _StrongRef(control)
        owner = screen or screen_name(getattr(control, "screen", None))
        self._entries[name] = _Entry(ref=ref, screen=owner)
        logger.debug("Registered control %s on %s", name, owner)
        if self.on_register is not None:
            self.on_register(name)

    def unregister(self, name: str) -> bool:
        return self._entries.pop(name, None) is not None

    def resolve(self, name: Optional[str]) -> Optional[Any]:
        if not name:
            return None
        entry = self._entries.get(name)
        if entry is None:
            return None
        control = entry.ref()
        if not is_live(control):
            logger.debug("Dropping stale control %s", name)
            del self._entries[name]
            return None
        return control

    def screen_of(self, name: str) -> Optional[str]:
        if self.resolve(name) is None:
            return None
        return self._entries[name].screen

    def bounds_of(self, name: Optional[str]) -> Optional[Rect]:
        control = self.resolve(name)
        if control is None:
            return None
        try:
            return world_bounds(control)
        except (TypeError, ValueError):
            logger.debug("Could not measure control %s", name, exc_info=True)
            return None

    def items(self) -> Iterator[Tuple[str, Any]]:
        """Yield ``(name, control)`` for every live entry, purging the rest."""
        for name in list(self._entries):
            control = self.resolve(name)
            if control is not None:
                yield name, control

    def live_items(self) -> Dict[str, Optional[str]]:
        """Snapshot of live controls as ``{name: owning screen}``."""
        return {name: self._entries[name].screen for name, _ in self.items()}

    def purge_screen(self, screen: Any) -> List[str]:
        owner = screen_name(screen)
        removed = [name for name, entry in self._entries.items() if entry.screen == owner]
        for name in removed:
            del self._entries[name]
        return removed

    def clear(self) -> None:
        self._entries.clear()

    def names(self) -> List[str]:
        return [name for name, _ in self.items()]

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and self.resolve(name) is not None

    def __len__(self) -> int:
        return len(self.names())


class _StrongRef:
    __slots__ = ("_target",)

    def __init__(self, target: Any) -> None:
        self._target = target

    def __call__(self) -> Any:
        return self._target


__all__ = ["ControlRegistry", "is_live", "screen_name"]
