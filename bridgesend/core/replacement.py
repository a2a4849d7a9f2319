"""Follow a transfer when its source transaction is replaced."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from bridgesend.core.errors import ReplacementCycle
from bridgesend.core.models import (
    NetworkDescriptor,
    RawTransaction,
    TokenDescriptor,
    TransferRecord,
    WaitResult,
)
from bridgesend.core.records import handle_transaction
from bridgesend.core.utils import get_logger
from bridgesend.core.watcher import CompletionCallback, DestinationWatcher, WatcherSubscription

LOGGER = get_logger("bridgesend.replacement")


@dataclass(frozen=True)
class Reconciled:
    record: TransferRecord
    subscription: WatcherSubscription


class ReplacementReconciler:
    """Moves the destination watch over to a replacement transaction."""

    def __init__(self, history, watcher: DestinationWatcher) -> None:
        self._history = history
        self._watcher = watcher

    def reconcile(
        self,
        original_tx: RawTransaction,
        original_record: TransferRecord,
        result: Optional[WaitResult],
        *,
        source_token: TokenDescriptor,
        from_network: NetworkDescriptor,
        to_network: NetworkDescriptor,
        previous_subscription: Optional[WatcherSubscription] = None,
        on_complete: Optional[CompletionCallback] = None,
    ) -> Optional[Reconciled]:
        if result is None or result.replacement_tx is None:
            return None

        replacement = result.replacement_tx
        if replacement.hash in self._history.lineage(original_record.hash):
            raise ReplacementCycle(f"Replacement {replacement.hash} already in lineage of {original_record.hash}")

        handled = handle_transaction(
            replacement,
            from_network,
            to_network,
            source_token,
            self._history,
            replaced_from=original_tx.hash,
        )
        subscription = self._watcher.install(
            handled.record,
            source_token.symbol,
            from_network.slug,
            to_network.slug,
            on_complete=on_complete,
        )
        if previous_subscription is not None:
            previous_subscription.release()

        LOGGER.info("Transfer %s replaced by %s", original_tx.hash, replacement.hash)
        return Reconciled(record=handled.record, subscription=subscription)


__all__ = ["Reconciled", "ReplacementReconciler"]
