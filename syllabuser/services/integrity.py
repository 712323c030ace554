"""Input restrictions during an exam.

This is best-effort deterrence only. The client reports the events it saw and
suppresses the ones this guard flags; nothing here can stop a determined
student from using another device or the browser's own tools.
"""

import logging
from dataclasses import dataclass

logger = logging.getLogger(__name__)

BLOCKED_SHORTCUT_KEYS = frozenset({"c", "v", "u", "s", "p"})


@dataclass(frozen=True)
class InputEvent:
    type: str
    key: str | None = None
    ctrl_key: bool = False
    meta_key: bool = False


class IntegrityGuard:
    """Flags the context menu and copy/paste/view-source/save/print shortcuts."""

    def __init__(self, session_id: str | None = None):
        self.session_id = session_id
        self._active = True
        self._blocked = 0

    @property
    def active(self) -> bool:
        return self._active

    @property
    def blocked_count(self) -> int:
        return self._blocked

    @staticmethod
    def is_restricted(event: InputEvent) -> bool:
        if event.type == "contextmenu":
            return True
        if event.type != "keydown" or not event.key:
            return False
        return (event.ctrl_key or event.meta_key) and event.key.lower() in BLOCKED_SHORTCUT_KEYS

    def inspect(self, event: InputEvent) -> bool:
        """Return True when the event must be suppressed."""
        if not self._active or not self.is_restricted(event):
            return False
        self._blocked += 1
        logger.info(
            f"Blocked {event.type} input in exam session",
            extra={"session_id": self.session_id, "key": event.key, "blocked_count": self._blocked},
        )
        return True

    def release(self) -> None:
        self._active = False
