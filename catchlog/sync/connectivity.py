"""
Connectivity Monitor - polls network reachability in the background.

The monitor starts in UNKNOWN and resolves to ONLINE/OFFLINE on its first
probe. When it sees the network come back while catches are waiting, it
waits for the debounce delay and then fires the sync trigger once, so a
flapping connection does not start a pass on every probe.
"""

import asyncio
import contextlib
import logging
from enum import Enum
from typing import Any, Awaitable, Callable, Optional

from .. import config
from ..storage.record_store import LocalRecordStore

logger = logging.getLogger(__name__)

ProbeFn = Callable[[], Awaitable[bool]]
SyncTrigger = Callable[[], Awaitable[Any]]


class ConnectivityState(str, Enum):
    UNKNOWN = "unknown"
    OFFLINE = "offline"
    ONLINE = "online"


async def tcp_probe(
    host: str = config.PROBE_HOST,
    port: int = config.PROBE_PORT,
    timeout: float = config.PROBE_TIMEOUT_S,
) -> bool:
    """Reachability check: can we open a TCP connection to the backend host?"""
    try:
        _, writer = await asyncio.wait_for(asyncio.open_connection(host, port), timeout)
    except (OSError, asyncio.TimeoutError):
        return False
    writer.close()
    with contextlib.suppress(OSError):
        await writer.wait_closed()
    return True


class ConnectivityMonitor:
    """Background monitor for network reachability and pending sync work."""

    def __init__(
        self,
        record_store: LocalRecordStore,
        probe: Optional[ProbeFn] = None,
        sync_trigger: Optional[SyncTrigger] = None,
        poll_interval: float = config.CONNECTIVITY_POLL_INTERVAL_S,
        debounce: float = config.SYNC_DEBOUNCE_S,
    ):
        self.record_store = record_store
        self._probe = probe or tcp_probe
        self._sync_trigger = sync_trigger
        self.poll_interval = poll_interval
        self.debounce = debounce

        self.state = ConnectivityState.UNKNOWN
        self.pending_count = 0

        self._callbacks: list[Callable[[ConnectivityState, ConnectivityState], None]] = []
        self._running = False
        self._poll_task: Optional[asyncio.Task] = None
        self._probe_task: Optional[asyncio.Task] = None
        self._debounce_task: Optional[asyncio.Task] = None
        self._sync_task: Optional[asyncio.Task] = None

    @property
    def online(self) -> bool:
        return self.state == ConnectivityState.ONLINE

    def set_sync_trigger(self, trigger: SyncTrigger) -> None:
        self._sync_trigger = trigger

    def on_change(self, callback: Callable[[ConnectivityState, ConnectivityState], None]) -> None:
        """Register a callback fired with (previous, current) on every transition."""
        self._callbacks.append(callback)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self) -> None:
        """Start the polling loop on the running event loop."""
        if self._running:
            return
        self._running = True
        self._poll_task = asyncio.create_task(self._poll_loop())
        logger.info(f"ConnectivityMonitor started (interval={self.poll_interval:.0f}s)")

    async def stop(self) -> None:
        """Stop polling. A sync pass already running is allowed to finish."""
        self._running = False
        if self._probe_task and not self._probe_task.done():
            await self._probe_task
        for task in (self._poll_task, self._debounce_task):
            if task and not task.done():
                task.cancel()
                with contextlib.suppress(asyncio.CancelledError):
                    await task
        self._poll_task = None
        self._debounce_task = None

        if self._sync_task and not self._sync_task.done():
            await self._sync_task
        logger.info("ConnectivityMonitor stopped")

    async def _poll_loop(self) -> None:
        while self._running:
            await self.probe()
            await asyncio.sleep(self.poll_interval)

    # ------------------------------------------------------------------
    # Probing
    # ------------------------------------------------------------------

    async def probe(self) -> ConnectivityState:
        """Check reachability now. Concurrent callers share one in-flight probe."""
        if self._probe_task is None or self._probe_task.done():
            self._probe_task = asyncio.create_task(self._run_probe())
        return await asyncio.shield(self._probe_task)

    async def _run_probe(self) -> ConnectivityState:
        try:
            reachable = await self._probe()
        except Exception as e:
            logger.warning(f"Connectivity probe failed: {e}")
            reachable = False

        new_state = ConnectivityState.ONLINE if reachable else ConnectivityState.OFFLINE
        await self._apply(new_state)
        return new_state

    async def _apply(self, new_state: ConnectivityState) -> None:
        previous_state = self.state
        previous_count = self.pending_count
        self.state = new_state

        if new_state == ConnectivityState.ONLINE:
            self.pending_count = await self.record_store.count_pending()
        else:
            self.pending_count = 0
            self._cancel_debounce()

        if previous_state != new_state:
            logger.info(f"Connectivity changed: {previous_state.value} -> {new_state.value}")
            for callback in self._callbacks:
                try:
                    callback(previous_state, new_state)
                except Exception as e:
                    logger.error(f"Connectivity callback error: {e}")

        changed = previous_state != new_state or previous_count != self.pending_count
        if self.online and self.pending_count > 0 and changed:
            self._schedule_sync()

    # ------------------------------------------------------------------
    # Debounced sync trigger
    # ------------------------------------------------------------------

    def _schedule_sync(self) -> None:
        if self._sync_trigger is None:
            return
        if self._debounce_task and not self._debounce_task.done():
            return
        self._debounce_task = asyncio.create_task(self._debounce_then_sync())

    def _cancel_debounce(self) -> None:
        if self._debounce_task and not self._debounce_task.done():
            self._debounce_task.cancel()
            logger.debug("Pending sync trigger cancelled (went offline)")

    async def _debounce_then_sync(self) -> None:
        await asyncio.sleep(self.debounce)
        if not self.online:
            return
        if self._sync_task and not self._sync_task.done():
            return
        self.pending_count = await self.record_store.count_pending()
        if self.pending_count == 0:
            return
        logger.info(f"Connection restored with {self.pending_count} pending catches, syncing")
        self._sync_task = asyncio.create_task(self._run_trigger())

    async def _run_trigger(self) -> None:
        try:
            await self._sync_trigger()
        except Exception as e:
            logger.error(f"Connectivity-triggered sync failed: {e}", exc_info=True)
        if self.online:
            self.pending_count = await self.record_store.count_pending()
