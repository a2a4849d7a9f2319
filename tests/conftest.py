"""Shared fakes for the send flow collaborators."""

import asyncio
from typing import Any, Dict, List, Optional

import pytest

from bridgesend.core.history import TransferHistory
from bridgesend.core.models import (
    DestinationReceipt,
    NetworkDescriptor,
    RawTransaction,
    TokenDescriptor,
    TransferIntent,
    WaitResult,
)
from bridgesend.core.send import SendOrchestrator

ETHEREUM = NetworkDescriptor(network_id=1, slug="ethereum", name="Ethereum", is_root=True)
OPTIMISM = NetworkDescriptor(network_id=10, slug="optimism", name="Optimism")
ARBITRUM = NetworkDescriptor(network_id=42161, slug="arbitrum", name="Arbitrum")
USDC = TokenDescriptor(symbol="USDC", decimals=6)

WALLET_ADDRESS = "0x" + "11" * 20
CUSTOM_RECIPIENT = "0x" + "22" * 20
DEADLINE = 1_700_000_000


def make_intent(**overrides: Any) -> TransferIntent:
    values: Dict[str, Any] = dict(
        from_network=ETHEREUM,
        to_network=OPTIMISM,
        source_token=USDC,
        from_token_amount="1",
        deadline=lambda: DEADLINE,
        amount_out_min=100,
        total_fee=5,
    )
    values.update(overrides)
    return TransferIntent(**values)


class FakeWallet:
    """Answers network checks from a script; the last answer repeats."""

    def __init__(self, connected=(True,), signer: Any = "signer", address: str = WALLET_ADDRESS):
        self._connected = list(connected)
        self.signer = signer
        self.address = address
        self.checks: List[int] = []

    async def check_connected_network_id(self, network_id: int) -> bool:
        self.checks.append(network_id)
        if len(self._connected) > 1:
            return self._connected.pop(0)
        return self._connected[0]

    async def get_signer(self):
        if isinstance(self.signer, Exception):
            raise self.signer
        return self.signer

    async def get_address(self) -> str:
        return self.address


class FakeExecutor:
    def __init__(self, tx_hash: str = "0xaaa", error: Optional[Exception] = None):
        self.tx_hash = tx_hash
        self.error = error
        self.calls: List[Dict[str, Any]] = []

    async def send(self, amount, source, destination, options) -> RawTransaction:
        self.calls.append({"amount": amount, "source": source, "destination": destination, "options": options})
        if self.error is not None:
            raise self.error
        return RawTransaction(hash=self.tx_hash, network_name=source, sender=WALLET_ADDRESS, nonce=7)


class FakeGate:
    def __init__(self, approve: bool = True, error: Optional[Exception] = None, on_show=None):
        self.approve = approve
        self.error = error
        self.on_show = on_show
        self.requests: List[Any] = []

    async def show(self, request):
        self.requests.append(request)
        if self.on_show is not None:
            self.on_show(request)
        if self.error is not None:
            raise self.error
        if not self.approve:
            return None
        return await request.on_confirm()


class FakeCompletionWatch:
    """One future per transaction hash, resolved by ``complete``."""

    def __init__(self):
        self.calls: List[tuple] = []
        self._futures: Dict[str, "asyncio.Future[DestinationReceipt]"] = {}

    def _future(self, tx_hash: str) -> "asyncio.Future[DestinationReceipt]":
        if tx_hash not in self._futures:
            self._futures[tx_hash] = asyncio.get_running_loop().create_future()
        return self._futures[tx_hash]

    def watch(self, tx_hash, token_symbol, source_slug, dest_slug):
        self.calls.append((tx_hash, token_symbol, source_slug, dest_slug))
        return self._future(tx_hash)

    def complete(self, tx_hash: str, dest_hash: str) -> None:
        future = self._future(tx_hash)
        if not future.done():
            future.set_result(DestinationReceipt(transaction_hash=dest_hash))


class FakeWaiter:
    def __init__(self, results: Optional[List[WaitResult]] = None):
        self.results = list(results or [])
        self.calls: List[RawTransaction] = []

    async def wait_for_transaction(self, tx, *, network_name, dest_network_name, token) -> WaitResult:
        self.calls.append(tx)
        if self.results:
            return self.results.pop(0)
        return WaitResult(receipt={"status": 1, "transactionHash": tx.hash})


@pytest.fixture
def history():
    return TransferHistory()


@pytest.fixture
def wallet():
    return FakeWallet()


@pytest.fixture
def executor():
    return FakeExecutor()


@pytest.fixture
def gate():
    return FakeGate()


@pytest.fixture
def completion():
    return FakeCompletionWatch()


@pytest.fixture
def waiter():
    return FakeWaiter()


@pytest.fixture
def orchestrator(wallet, executor, gate, history, completion, waiter):
    return SendOrchestrator(
        wallet=wallet,
        executor_factory=lambda token, signer: executor,
        gate=gate,
        history=history,
        completion_watch=completion,
        waiter=waiter,
    )
