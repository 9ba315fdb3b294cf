"""Debounced view-state synchroniser.

Selection changes arrive in bursts (scrolling through a dropdown, typing).
Each :meth:`ViewStateSynchronizer.schedule` call restarts a quiet-period
timer; only when the timer runs out is the latest patch written, as a single
merge request. Superseded patches are dropped, not queued.

State machine::

    IDLE --schedule--> PENDING(patch, deadline)
    PENDING --schedule--> PENDING(new patch, new deadline)   (old timer cancelled)
    PENDING --deadline--> IDLE                               (one write issued)

Writes already issued are never cancelled, and a new write does not wait for
an earlier one; the backend is treated as last-write-wins.
"""

import asyncio
from enum import Enum
from typing import Optional, Set

from letterpress.backend.base import BackendResult, PersistenceBackend
from letterpress.utils.logging import get_logger

from .models import ViewStatePatch

logger = get_logger(__name__)

DEFAULT_QUIET_PERIOD_MS = 300


class SyncState(Enum):
    IDLE = "idle"
    PENDING = "pending"


class ViewStateSynchronizer:
    """Coalesces view-state patches into one backend write per quiet period."""

    def __init__(
        self,
        backend: PersistenceBackend,
        quiet_period_ms: int = DEFAULT_QUIET_PERIOD_MS,
    ):
        self.backend = backend
        self.quiet_period = max(quiet_period_ms, 0) / 1000
        self._handle: Optional[asyncio.TimerHandle] = None
        self._patch: Optional[ViewStatePatch] = None
        self._deadline: Optional[float] = None
        self._in_flight: Set[asyncio.Task] = set()
        self.writes_issued = 0

    @property
    def state(self) -> SyncState:
        return SyncState.PENDING if self._handle is not None else SyncState.IDLE

    @property
    def deadline(self) -> Optional[float]:
        """Loop time at which the pending patch will be written."""
        return self._deadline

    def schedule(self, patch: ViewStatePatch) -> None:
        """Replace any pending patch with ``patch`` and restart the timer.

        Must be called from a running event loop.
        """
        loop = asyncio.get_running_loop()
        self._cancel_timer()

        self._patch = dict(patch)
        self._deadline = loop.time() + self.quiet_period
        self._handle = loop.call_at(self._deadline, self._fire)
        logger.debug(f"View state write scheduled for fields {sorted(self._patch)}")

    def cancel(self) -> None:
        """Drop the pending patch without writing it."""
        self._cancel_timer()
        self._patch = None

    async def flush(self) -> bool:
        """Write the pending patch now. Returns False if nothing was pending."""
        if self.state is SyncState.IDLE or self._patch is None:
            return False

        patch = self._take_patch()
        return await self._track(patch)

    async def aclose(self) -> None:
        """Flush any pending patch and wait for writes already issued."""
        await self.flush()
        if self._in_flight:
            await asyncio.gather(*list(self._in_flight))

    def _cancel_timer(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
        self._handle = None
        self._deadline = None

    def _take_patch(self) -> ViewStatePatch:
        patch = self._patch or {}
        self._cancel_timer()
        self._patch = None
        return patch

    def _fire(self) -> None:
        self._handle = None
        patch = self._take_patch()
        self._track(patch)

    def _track(self, patch: ViewStatePatch) -> asyncio.Task:
        task = asyncio.get_running_loop().create_task(self._write(patch))
        self._in_flight.add(task)
        task.add_done_callback(self._in_flight.discard)
        return task

    async def _write(self, patch: ViewStatePatch) -> bool:
        self.writes_issued += 1
        try:
            result = await self.backend.update_view_state(patch)
        except Exception as e:
            logger.exception(f"Backend raised while updating view state: {e}")
            result = BackendResult.failure(str(e))

        if not result.ok:
            # Values stay correct in memory; the next change retries.
            logger.warning(f"Failed to update view state: {result.error}")
            return False

        return True
