"""Top-level send flow: validate, confirm, submit and track a transfer."""

from __future__ import annotations

import asyncio
import enum
from dataclasses import dataclass, field
from functools import partial
from typing import Any, List, Optional, Set

from bridgesend.core.errors import (
    InvalidRecipient,
    MissingNetwork,
    NoSigner,
    NoToken,
    ReplacementCycle,
    WrongNetwork,
    format_error,
    is_cancellation,
)
from bridgesend.core.fees import DEFAULT_FEE_ID
from bridgesend.core.interfaces import (
    CompletionWatch,
    ConfirmationGate,
    ExecutorFactory,
    HistoryStore,
    TransactionWaiter,
    WalletProvider,
)
from bridgesend.core.models import RawTransaction, SendContext, TransferIntent, TransferRecord
from bridgesend.core.paths import TransferPath, select_path
from bridgesend.core.records import handle_transaction
from bridgesend.core.replacement import ReplacementReconciler
from bridgesend.core.strategies import STRATEGIES
from bridgesend.core.tokens import amount_to_units
from bridgesend.core.utils import get_logger, is_valid_address
from bridgesend.core.watcher import DestinationWatcher, WatcherSubscription

LOGGER = get_logger("bridgesend.send")


class SendState(enum.Enum):
    IDLE = "idle"
    VALIDATING = "validating"
    AWAITING_CONFIRMATION = "awaiting_confirmation"
    SUBMITTING = "submitting"
    PENDING = "pending"
    REPLACED = "replaced"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass(eq=False)
class SendSession:
    """State of one send invocation, updated by its background listeners."""

    state: SendState = SendState.IDLE
    transitions: List[SendState] = field(default_factory=list)
    path: Optional[TransferPath] = None
    transaction: Optional[RawTransaction] = None
    record: Optional[TransferRecord] = None
    subscription: Optional[WatcherSubscription] = None
    lineage: List[TransferRecord] = field(default_factory=list)
    error: Optional[str] = None
    exception: Optional[BaseException] = None
    cancelled: bool = False
    sending: bool = False

    def transition(self, state: SendState) -> None:
        LOGGER.debug("send %s -> %s", self.state.value, state.value)
        self.state = state
        self.transitions.append(state)


class SendOrchestrator:
    """Drives a transfer from intent to destination receipt.

    ``send`` returns once the source transaction is submitted; destination
    tracking and replacement handling continue in background tasks that
    ``drain`` waits for.
    """

    def __init__(
        self,
        *,
        wallet: WalletProvider,
        executor_factory: ExecutorFactory,
        gate: ConfirmationGate,
        history: HistoryStore,
        completion_watch: CompletionWatch,
        waiter: TransactionWaiter,
        fee_id: str = DEFAULT_FEE_ID,
    ) -> None:
        self._wallet = wallet
        self._executor_factory = executor_factory
        self._gate = gate
        self._history = history
        self._waiter = waiter
        self._fee_id = fee_id
        self.watcher = DestinationWatcher(history, completion_watch)
        self.reconciler = ReplacementReconciler(history, self.watcher)
        self._live: Set[SendSession] = set()
        self._latest: Optional[SendSession] = None
        self._background: Set["asyncio.Task[None]"] = set()

    @property
    def sending(self) -> bool:
        """True while any invocation is between validation and submission."""
        return any(session.sending for session in self._live)

    @property
    def error(self) -> Optional[str]:
        """Error of the most recently started send."""
        return self._latest.error if self._latest is not None else None

    @property
    def current_transfer(self) -> Optional[TransferRecord]:
        """Record the most recently started send is tracking."""
        return self._latest.record if self._latest is not None else None

    async def send(self, intent: TransferIntent) -> SendSession:
        session = SendSession()
        self._live.add(session)
        self._latest = session
        try:
            await self._send(intent, session)
        except Exception as exc:
            session.transition(SendState.FAILED)
            session.exception = exc
            if is_cancellation(exc):
                session.cancelled = True
                LOGGER.info("Send cancelled: %s", exc)
            else:
                session.error = format_error(exc, intent.from_network)
                LOGGER.error("Send failed: %s", exc)
        finally:
            session.sending = False
            self._live.discard(session)
        return session

    async def _send(self, intent: TransferIntent, session: SendSession) -> None:
        session.transition(SendState.VALIDATING)
        from_network, to_network = intent.from_network, intent.to_network
        if from_network is None or to_network is None:
            raise MissingNetwork("A network is undefined")

        if not await self._wallet.check_connected_network_id(from_network.network_id):
            raise WrongNetwork("wrong network connected")
        if intent.custom_recipient and not is_valid_address(intent.custom_recipient):
            raise InvalidRecipient("Custom recipient address is invalid")
        signer = await self._resolve_signer()
        source_token = intent.source_token
        if source_token is None:
            raise NoToken("No from token selected")

        session.sending = True
        recipient = intent.custom_recipient or await self._wallet.get_address()
        LOGGER.debug("recipient: %s", recipient)

        ctx = SendContext(
            intent=intent,
            from_network=from_network,
            to_network=to_network,
            source_token=source_token,
            amount=amount_to_units(intent.from_token_amount, source_token.decimals),
            signer=signer,
            recipient=recipient,
            wallet=self._wallet,
            executor=self._executor_factory(source_token, signer),
            fee_id=self._fee_id,
        )

        session.path = select_path(from_network, to_network)
        strategy = STRATEGIES[session.path]
        session.transition(SendState.AWAITING_CONFIRMATION)
        tx = await strategy(ctx, self._gate, on_submit=partial(session.transition, SendState.SUBMITTING))

        handled = handle_transaction(tx, from_network, to_network, source_token, self._history)
        LOGGER.info("%s tx: %s", session.path.value, handled.record.hash)
        session.transaction = tx
        session.record = handled.record
        session.lineage.append(handled.record)
        session.subscription = self.watcher.install(
            handled.record,
            source_token.symbol,
            from_network.slug,
            to_network.slug,
            on_complete=partial(self._on_complete, session),
        )
        session.transition(SendState.PENDING)
        self._spawn(self._track(ctx, session))

    async def _resolve_signer(self) -> Any:
        try:
            signer = await self._wallet.get_signer()
        except Exception as exc:
            raise NoSigner(f"Cannot send: {exc}") from exc
        if signer is None:
            raise NoSigner("Cannot send: signer does not exist.")
        return signer

    def _on_complete(self, session: SendSession, record: TransferRecord) -> None:
        if session.record is record:
            session.transition(SendState.COMPLETED)

    def _spawn(self, coro) -> None:
        task = asyncio.get_running_loop().create_task(coro)
        self._background.add(task)
        task.add_done_callback(self._background.discard)

    async def _track(self, ctx: SendContext, session: SendSession) -> None:
        """Wait for the source transaction, following any replacements."""
        while True:
            tx, record = session.transaction, session.record
            try:
                result = await self._waiter.wait_for_transaction(
                    tx,
                    network_name=ctx.from_network.slug,
                    dest_network_name=ctx.to_network.slug,
                    token=ctx.source_token,
                )
            except asyncio.CancelledError:
                raise
            except Exception:
                LOGGER.exception("Waiting for %s failed", tx.hash)
                return

            if result.reverted:
                LOGGER.error("Transfer %s reverted on %s", tx.hash, ctx.from_network.slug)
                if session.subscription is not None:
                    session.subscription.release()
                self._history.update_transaction(record, pending=False, pending_destination_confirmation=False)
                session.error = f"Transaction reverted on {ctx.from_network.name}"
                session.transition(SendState.FAILED)
                return
            if not result.replaced:
                self._history.update_transaction(record, pending=False)
                return

            try:
                reconciled = self.reconciler.reconcile(
                    tx,
                    record,
                    result,
                    source_token=ctx.source_token,
                    from_network=ctx.from_network,
                    to_network=ctx.to_network,
                    previous_subscription=session.subscription,
                    on_complete=partial(self._on_complete, session),
                )
            except ReplacementCycle:
                LOGGER.exception("Ignoring replacement of %s", tx.hash)
                return

            session.transition(SendState.REPLACED)
            self._history.update_transaction(record, pending=False)
            session.transaction = result.replacement_tx
            session.record = reconciled.record
            session.subscription = reconciled.subscription
            session.lineage.append(reconciled.record)
            session.transition(SendState.PENDING)

    async def drain(self) -> None:
        """Wait for all background tracking started by ``send``."""
        while self._background or self.watcher.active:
            if self._background:
                await asyncio.gather(*list(self._background), return_exceptions=True)
            await self.watcher.drain()


__all__ = ["SendOrchestrator", "SendSession", "SendState"]
