"""Boundaries to the collaborators the send flow drives."""

from __future__ import annotations

from typing import Any, Awaitable, List, Optional, Protocol

from bridgesend.core.models import (
    ConfirmationRequest,
    DestinationReceipt,
    RawTransaction,
    SendOptions,
    TokenDescriptor,
    TransferRecord,
    WaitResult,
)


class WalletProvider(Protocol):
    async def get_signer(self) -> Optional[Any]:
        ...

    async def check_connected_network_id(self, network_id: int) -> bool:
        ...

    async def get_address(self) -> str:
        ...


class BridgeExecutor(Protocol):
    async def send(self, amount: int, source: str, destination: str, options: SendOptions) -> RawTransaction:
        ...


class ExecutorFactory(Protocol):
    def __call__(self, token: TokenDescriptor, signer: Any) -> BridgeExecutor:
        ...


class ConfirmationGate(Protocol):
    """Shows ``request`` to the user and runs ``request.on_confirm`` on approval.

    Returns ``None`` (or raises an error mentioning "cancelled") when the user
    dismisses the dialog.
    """

    async def show(self, request: ConfirmationRequest) -> Optional[RawTransaction]:
        ...


class HistoryStore(Protocol):
    def add_transaction(self, record: TransferRecord) -> TransferRecord:
        ...

    def update_transaction(self, record: TransferRecord, **changes: Any) -> bool:
        ...

    def get(self, tx_hash: str) -> Optional[TransferRecord]:
        ...

    def lineage(self, tx_hash: str) -> List[str]:
        ...

    def clear(self) -> None:
        ...


class CompletionWatch(Protocol):
    def watch(
        self, tx_hash: str, token_symbol: str, source_slug: str, dest_slug: str
    ) -> Awaitable[DestinationReceipt]:
        ...


class TransactionWaiter(Protocol):
    async def wait_for_transaction(
        self, tx: RawTransaction, *, network_name: str, dest_network_name: str, token: TokenDescriptor
    ) -> WaitResult:
        ...


__all__ = [
    "BridgeExecutor",
    "CompletionWatch",
    "ConfirmationGate",
    "ExecutorFactory",
    "HistoryStore",
    "TransactionWaiter",
    "WalletProvider",
]
