"""Leading-edge debouncing of raw change notifications."""

import logging
from typing import Dict

logger = logging.getLogger(__name__)


class Debouncer:
    """Collapse bursts of notifications for a path into their first member.

    The quiet window is measured from the last *accepted* notification for a
    path, not from the last one seen, so a sustained stream of writes yields
    one event per window. Paths are tracked independently and entries are
    never removed.
    """

    def __init__(self, quiet_window: float):
        if quiet_window < 0:
            raise ValueError("quiet window must not be negative")
        self.quiet_window = quiet_window
        self.last_accepted: Dict[str, float] = {}

    def accept(self, path: str, now: float) -> bool:
        """Return True if a notification for *path* at *now* should be emitted."""
        last = self.last_accepted.get(path)
        if last is not None and now - last < self.quiet_window:
            logger.debug(f"Debounced {path} ({now - last:.3f}s since last accepted)")
            return False

        self.last_accepted[path] = now
        return True

    def __len__(self) -> int:
        return len(self.last_accepted)
