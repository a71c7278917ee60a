# CSRF state store — single-use, time-bounded OAuth state tokens.
# Created: 2026-10-18
#
# In-memory only. A state is removed the first time it is inspected,
# whether or not it was still fresh. Abandoned states are removed by a
# periodic sweep so the map cannot grow without bound.

from __future__ import annotations

import asyncio
import logging
import secrets
import threading
import time
from collections.abc import Callable

from mailoauth.oauth2.models import OAuthState, StateValidation

logger = logging.getLogger(__name__)

STATE_TTL = 3600.0  # seconds
SWEEP_INTERVAL = 3600.0  # seconds


class StateStore:
    """Thread-safe store of pending OAuth states.

    Args:
        ttl: Seconds a state remains valid after issue.
        sweep_interval: Seconds between background sweeps once started.
        clock: Returns the current time in seconds. Injectable for tests.
    """

    def __init__(
        self,
        ttl: float = STATE_TTL,
        sweep_interval: float = SWEEP_INTERVAL,
        clock: Callable[[], float] = time.time,
    ):
        self.ttl = ttl
        self.sweep_interval = sweep_interval
        self._clock = clock
        self._states: dict[str, OAuthState] = {}
        self._lock = threading.Lock()
        self._sweep_task: asyncio.Task | None = None

    def generate_state(self, provider: str) -> str:
        """Issue a new state token bound to *provider*."""
        state = secrets.token_urlsafe(32)
        entry = OAuthState(state=state, provider=provider, created_at=self._clock())
        with self._lock:
            self._states[state] = entry
        logger.debug("Issued OAuth state for %s", provider)
        return state

    def validate_state(self, state: str) -> StateValidation:
        """Consume *state*. Valid at most once; always removed once looked up."""
        if not state:
            return StateValidation(valid=False)

        with self._lock:
            entry = self._states.pop(state, None)

        if entry is None:
            logger.debug("OAuth state not found (unknown or already used)")
            return StateValidation(valid=False)

        if self._clock() - entry.created_at > self.ttl:
            logger.debug("OAuth state for %s expired", entry.provider)
            return StateValidation(valid=False)

        return StateValidation(valid=True, provider=entry.provider)

    def sweep(self) -> int:
        """Remove every state older than the TTL. Returns count removed."""
        now = self._clock()
        with self._lock:
            expired = [k for k, v in self._states.items() if now - v.created_at > self.ttl]
            for k in expired:
                del self._states[k]
        if expired:
            logger.debug("Swept %d expired OAuth states", len(expired))
        return len(expired)

    def __len__(self) -> int:
        with self._lock:
            return len(self._states)

    # -- background sweep --------------------------------------------------

    @property
    def running(self) -> bool:
        return self._sweep_task is not None and not self._sweep_task.done()

    def start(self) -> None:
        """Start the periodic sweep on the running event loop."""
        if self.running:
            return
        self._sweep_task = asyncio.create_task(self._sweep_loop())
        logger.info("OAuth state sweeper started (every %.0fs)", self.sweep_interval)

    async def stop(self) -> None:
        if self._sweep_task is None:
            return
        self._sweep_task.cancel()
        try:
            await self._sweep_task
        except asyncio.CancelledError:
            pass
        self._sweep_task = None
        logger.info("OAuth state sweeper stopped")

    async def _sweep_loop(self) -> None:
        while True:
            await asyncio.sleep(self.sweep_interval)
            try:
                self.sweep()
            except Exception:
                logger.warning("OAuth state sweep failed", exc_info=True)
