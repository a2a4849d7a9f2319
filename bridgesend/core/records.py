"""Turn submitted transactions into transfer records."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from bridgesend.core.models import NetworkDescriptor, RawTransaction, TokenDescriptor, TransferRecord


@dataclass(frozen=True)
class TransactionHandled:
    transaction: RawTransaction
    record: TransferRecord


def create_transfer_record(
    tx: RawTransaction,
    from_network: NetworkDescriptor,
    to_network: NetworkDescriptor,
    source_token: TokenDescriptor,
    *,
    replaced_from: Optional[str] = None,
) -> TransferRecord:
    return TransferRecord(
        hash=tx.hash,
        network_name=from_network.slug,
        dest_network_name=to_network.slug,
        token=source_token.symbol,
        replaced_from=replaced_from,
    )


def handle_transaction(
    tx: RawTransaction,
    from_network: NetworkDescriptor,
    to_network: NetworkDescriptor,
    source_token: TokenDescriptor,
    history,
    *,
    replaced_from: Optional[str] = None,
) -> TransactionHandled:
    """Build the record for ``tx`` and register it with ``history``."""
    record = create_transfer_record(tx, from_network, to_network, source_token, replaced_from=replaced_from)
    stored = history.add_transaction(record)
    return TransactionHandled(transaction=tx, record=stored)


__all__ = ["TransactionHandled", "create_transfer_record", "handle_transaction"]
