"""Event fan-out - polls contract log filters and delivers events to observers.

Filters are registered once per ``(contract, event)`` key and observers are
de-duplicated, so repeated subscription never delivers an event twice.
"""

from __future__ import annotations

import asyncio
import contextlib
import inspect
import logging
from collections.abc import Callable
from typing import Any

from ecochain_simulator.ledger.contracts import ContractName
from ecochain_simulator.models import LedgerEvent

__all__ = ["EventFanout", "EventObserver", "to_ledger_event"]

logger = logging.getLogger("ecochain_simulator.ledger.events")

EventObserver = Callable[[LedgerEvent], Any]


def to_ledger_event(contract: ContractName, event_name: str, entry: Any) -> LedgerEvent:
    """Convert a web3 log entry into a :class:`LedgerEvent`."""
    tx_hash = entry.get("transactionHash")
    if isinstance(tx_hash, (bytes, bytearray)):
        tx_hash = "0x" + bytes(tx_hash).hex()
    return LedgerEvent(
        contract=contract.value,
        event=entry.get("event") or event_name,
        args=dict(entry.get("args") or {}),
        transaction_hash=tx_hash,
        block_number=entry.get("blockNumber"),
    )


class EventFanout:
    """Owns the registered log filters and the background polling task.

    Parameters:
        poll_interval_s: Seconds between polls of all registered filters.
    """

    def __init__(self, poll_interval_s: float = 2.0) -> None:
        self.poll_interval_s = poll_interval_s
        self._filters: dict[tuple[ContractName, str], Any] = {}
        self._observers: list[EventObserver] = []
        self._lock = asyncio.Lock()
        self._task: asyncio.Task[None] | None = None

    @property
    def registered(self) -> list[tuple[ContractName, str]]:
        return list(self._filters)

    @property
    def observers(self) -> list[EventObserver]:
        return list(self._observers)

    @property
    def polling(self) -> bool:
        return self._task is not None and not self._task.done()

    def add_observer(self, observer: EventObserver) -> bool:
        """Attach *observer*; returns ``False`` if it was already attached."""
        if observer in self._observers:
            return False
        self._observers.append(observer)
        return True

    async def register(self, contract: ContractName, handle: Any, event_name: str) -> bool:
        """Create a log filter for one event unless the key is already registered."""
        key = (contract, event_name)
        async with self._lock:
            if key in self._filters:
                logger.debug("Listener for %s.%s already registered", contract.value, event_name)
                return False
            event = getattr(handle.events, event_name)
            self._filters[key] = await event.create_filter(from_block="latest")
        logger.info("Listening for %s.%s", contract.display_name, event_name)
        return True

    def start(self) -> None:
        """Start the polling task if it is not already running."""
        if self.polling:
            return
        self._task = asyncio.get_running_loop().create_task(self._poll_loop(), name="ledger-events")

    async def poll_once(self) -> int:
        """Fetch new entries from every filter and dispatch them.

        Returns the number of events delivered.
        """
        delivered = 0
        for (contract, event_name), log_filter in list(self._filters.items()):
            try:
                entries = await log_filter.get_new_entries()
            except Exception as exc:
                logger.warning("Polling %s.%s failed: %s", contract.value, event_name, exc)
                continue
            for entry in entries:
                await self._dispatch(to_ledger_event(contract, event_name, entry))
                delivered += 1
        return delivered

    async def close(self) -> None:
        """Stop polling and forget all filters and observers."""
        if self._task is not None and not self._task.done():
            self._task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._task
        self._task = None
        self._filters.clear()
        self._observers.clear()

    # -- internal --

    async def _poll_loop(self) -> None:
        while True:
            await asyncio.sleep(self.poll_interval_s)
            await self.poll_once()

    async def _dispatch(self, event: LedgerEvent) -> None:
        for observer in list(self._observers):
            try:
                result = observer(event)
                if inspect.isawaitable(result):
                    await result
            except Exception:
                logger.exception("Event observer %r failed on %s", observer, event.event)
