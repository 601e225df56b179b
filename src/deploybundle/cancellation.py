"""Thread-safe cooperative cancellation.

Long walks over large trees check a token between batches of directory
entries; a caller on another thread cancels it.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, field

from deploybundle.errors import CancellationError


@dataclass
class CancellationToken:
    """A token that can be checked for cancellation.

    Backed by a ``threading.Event`` so it can be cancelled from any thread.
    """

    _event: threading.Event = field(default_factory=threading.Event, repr=False)
    _reason: str = ""

    @property
    def is_cancelled(self) -> bool:
        return self._event.is_set()

    @property
    def reason(self) -> str:
        return self._reason

    def cancel(self, reason: str = "cancelled") -> None:
        """Signal cancellation."""
        self._reason = reason
        self._event.set()

    def check(self) -> None:
        """Raise CancellationError if cancelled."""
        if self.is_cancelled:
            raise CancellationError(self._reason or "Operation cancelled")
