import logging
from typing import Any, Callable, Dict, Mapping, Optional

from quizarena.services.clock import utcnow
from quizarena.services.timer import remaining_ms

logger = logging.getLogger(__name__)

PLACEHOLDER = '--:--'


def format_remaining(ms: Optional[int]) -> str:
    """Render remaining ms as MM:SS, or the placeholder when no timer is armed."""
    if ms is None:
        return PLACEHOLDER
    seconds = max(0, int(ms)) // 1000
    return f"{seconds // 60:02d}:{seconds % 60:02d}"


class Countdown:
    """Local countdown mirroring the server's remaining-time rule.

    Reaching zero while unpaused fires ``on_expired`` once. The signal is
    local only; it is not checked against the server.
    """

    def __init__(self, on_expired: Optional[Callable[[], None]] = None, clock=utcnow):
        self.on_expired = on_expired
        self.clock = clock
        self.snapshot: Dict[str, Any] = {}
        self._expired = False

    def update(self, snapshot: Mapping[str, Any]) -> None:
        self.snapshot = dict(snapshot)
        remaining = self.remaining()
        # A new or extended timer re-arms the expiry signal
        if remaining is None or remaining > 0:
            self._expired = False

    def remaining(self, now=None) -> Optional[int]:
        if not self.snapshot:
            return None
        return remaining_ms(self.snapshot, now or self.clock())

    def display(self, now=None) -> str:
        return format_remaining(self.remaining(now))

    @property
    def expired(self) -> bool:
        return self._expired

    def tick(self, now=None) -> Optional[int]:
        remaining = self.remaining(now)
        if remaining == 0 and not self.snapshot.get('isPaused') and not self._expired:
            self._expired = True
            logger.info('[countdown] time expired')
            if self.on_expired:
                self.on_expired()
        return remaining
