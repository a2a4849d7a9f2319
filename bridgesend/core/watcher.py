"""Destination-chain completion tracking."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Callable, Optional, Set, Tuple

from bridgesend.core.models import DestinationReceipt, TransferRecord
from bridgesend.core.utils import get_logger

LOGGER = get_logger("bridgesend.watcher")

WatchKey = Tuple[str, str, str, str]
CompletionCallback = Callable[[TransferRecord], None]


@dataclass(eq=False)
class WatcherSubscription:
    """One-shot listener for the destination receipt of a single transfer."""

    key: WatchKey
    record: TransferRecord
    on_complete: Optional[CompletionCallback] = None
    task: Optional["asyncio.Task[None]"] = None
    released: bool = False
    fired: bool = False

    @property
    def tx_hash(self) -> str:
        return self.key[0]

    def release(self) -> None:
        """Stop listening; an event already in flight is ignored."""
        self.released = True
        if self.task is not None and not self.task.done():
            self.task.cancel()


class DestinationWatcher:
    def __init__(self, history, completion_watch) -> None:
        self._history = history
        self._completion_watch = completion_watch
        self._tasks: Set["asyncio.Task[None]"] = set()

    def install(
        self,
        record: TransferRecord,
        token_symbol: str,
        source_slug: str,
        dest_slug: str,
        on_complete: Optional[CompletionCallback] = None,
    ) -> WatcherSubscription:
        """Start watching for the destination receipt of ``record``."""
        subscription = WatcherSubscription(
            key=(record.hash, token_symbol, source_slug, dest_slug),
            record=record,
            on_complete=on_complete,
        )
        task = asyncio.get_running_loop().create_task(self._run(subscription))
        subscription.task = task
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        LOGGER.info("Watching %s %s from %s to %s", record.hash, token_symbol, source_slug, dest_slug)
        return subscription

    async def _run(self, subscription: WatcherSubscription) -> None:
        try:
            receipt = await self._completion_watch.watch(*subscription.key)
        except asyncio.CancelledError:
            raise
        except Exception:
            LOGGER.exception("Destination watch for %s failed", subscription.tx_hash)
            return
        LOGGER.debug("Destination receipt for %s: %s", subscription.tx_hash, receipt)
        self.apply(subscription, receipt)

    def apply(self, subscription: WatcherSubscription, receipt: DestinationReceipt) -> bool:
        """Write the destination hash onto the record unless it is already set."""
        if subscription.released:
            LOGGER.debug("Ignoring receipt for released watch on %s", subscription.tx_hash)
            return False
        if subscription.fired:
            return False
        subscription.fired = True

        record = subscription.record
        if record.dest_tx_hash:
            return False
        changed = self._history.update_transaction(
            record,
            dest_tx_hash=receipt.transaction_hash,
            pending_destination_confirmation=False,
        )
        if changed:
            LOGGER.info("Transfer %s arrived in destination tx %s", record.hash, receipt.transaction_hash)
            if subscription.on_complete is not None:
                subscription.on_complete(record)
        return changed

    @property
    def active(self) -> int:
        return len(self._tasks)

    async def drain(self) -> None:
        """Wait for every live subscription to finish."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)


__all__ = ["DestinationWatcher", "WatcherSubscription"]
