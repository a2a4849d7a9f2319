"""Per-path builders that confirm and submit a transfer."""

from __future__ import annotations

from typing import Any, Awaitable, Callable, Dict, Optional

from bridgesend.core.errors import (
    ExecutorFailure,
    FeeExceedsAmount,
    InvalidRecipient,
    MissingParameter,
    SendError,
    UserCancelled,
    WrongNetwork,
)
from bridgesend.core.fees import compute_min_output, with_disambiguating_id
from bridgesend.core.models import ConfirmationRequest, RawTransaction, SendContext, SendOptions
from bridgesend.core.paths import TransferPath
from bridgesend.core.utils import get_logger, is_valid_address

LOGGER = get_logger("bridgesend.strategies")

SubmitHook = Optional[Callable[[], None]]


def _input_props(ctx: SendContext) -> Dict[str, Any]:
    intent = ctx.intent
    return {
        "custom_recipient": intent.custom_recipient,
        "source": {
            "amount": intent.from_token_amount,
            "token": ctx.source_token,
            "network": ctx.from_network,
        },
        "dest": {"network": ctx.to_network},
        "estimated_received": intent.estimated_received,
    }


async def ensure_ready_to_submit(ctx: SendContext) -> None:
    """Re-check wallet network and recipient right before submission."""
    if not await ctx.wallet.check_connected_network_id(ctx.from_network.network_id):
        raise WrongNetwork("wrong network connected")
    custom_recipient = ctx.intent.custom_recipient
    if custom_recipient and not is_valid_address(custom_recipient):
        raise InvalidRecipient("Custom recipient address is invalid")


def _check_fee_within_amount(ctx: SendContext, total_fee: int) -> None:
    if total_fee > ctx.amount:
        raise FeeExceedsAmount("Amount must be greater than bonder fee")


async def _execute(ctx: SendContext, source: str, options: SendOptions) -> RawTransaction:
    LOGGER.info(
        "Submitting %s %s from %s to %s (amountOutMin=%s destinationAmountOutMin=%s)",
        ctx.amount,
        ctx.source_token.symbol,
        source,
        ctx.to_network.slug,
        options.amount_out_min,
        options.destination_amount_out_min,
    )
    try:
        return await ctx.executor.send(ctx.amount, source, ctx.to_network.slug, options)
    except SendError:
        raise
    except Exception as exc:
        raise ExecutorFailure(str(exc) or exc.__class__.__name__) from exc


async def _confirm(
    ctx: SendContext,
    gate,
    submit: Callable[[], Awaitable[RawTransaction]],
    on_submit: SubmitHook,
) -> RawTransaction:
    async def on_confirm() -> RawTransaction:
        if on_submit is not None:
            on_submit()
        return await submit()

    request = ConfirmationRequest(kind="send", input_props=_input_props(ctx), on_confirm=on_confirm)
    tx = await gate.show(request)
    if tx is None:
        raise UserCancelled("Transfer cancelled by user")
    return tx


async def send_root_to_intermediary(ctx: SendContext, gate, on_submit: SubmitHook = None) -> RawTransaction:
    """Root network to a non-root network; the relayer fee comes out of the bound."""

    async def submit() -> RawTransaction:
        if ctx.intent.amount_out_min is None:
            raise MissingParameter("amountOutMin is required")
        await ensure_ready_to_submit(ctx)

        fee = ctx.intent.total_fee if ctx.intent.total_fee is not None else 0
        relayer_fee = with_disambiguating_id(fee, ctx.fee_id)
        options = SendOptions(
            deadline=ctx.intent.deadline(),
            relayer_fee=relayer_fee,
            recipient=ctx.recipient,
            amount_out_min=compute_min_output(ctx.intent.amount_out_min, relayer_fee),
        )
        return await _execute(ctx, ctx.from_network.slug, options)

    return await _confirm(ctx, gate, submit, on_submit)


async def send_intermediary_to_root(ctx: SendContext, gate, on_submit: SubmitHook = None) -> RawTransaction:
    """Non-root network to the root network; settles in a single hop."""

    async def submit() -> RawTransaction:
        intent = ctx.intent
        if intent.amount_out_min is None:
            raise MissingParameter("amountOutMin is required")
        if intent.total_fee is None:
            raise MissingParameter("totalFee is required")
        _check_fee_within_amount(ctx, intent.total_fee)
        await ensure_ready_to_submit(ctx)

        bonder_fee = with_disambiguating_id(intent.total_fee, ctx.fee_id)
        options = SendOptions(
            recipient=ctx.recipient,
            bonder_fee=bonder_fee,
            amount_out_min=compute_min_output(intent.amount_out_min, bonder_fee),
            deadline=intent.deadline(),
            destination_amount_out_min=0,
            destination_deadline=0,
        )
        return await _execute(ctx, ctx.from_network.slug, options)

    return await _confirm(ctx, gate, submit, on_submit)


async def send_intermediary_to_intermediary(ctx: SendContext, gate, on_submit: SubmitHook = None) -> RawTransaction:
    """Non-root to non-root; the first hop settles on the root network."""

    async def submit() -> RawTransaction:
        intent = ctx.intent
        if intent.total_fee is None:
            raise MissingParameter("totalFee is required")
        if intent.amount_out_min is None:
            raise MissingParameter("amountOutMin is required")
        _check_fee_within_amount(ctx, intent.total_fee)
        await ensure_ready_to_submit(ctx)

        bonder_fee = with_disambiguating_id(intent.total_fee, ctx.fee_id)
        intermediary_min = compute_min_output(intent.intermediary_amount_out_min, bonder_fee)
        destination_min = compute_min_output(intent.amount_out_min, bonder_fee)
        options = SendOptions(
            recipient=ctx.recipient,
            bonder_fee=bonder_fee,
            amount_out_min=intermediary_min,
            deadline=intent.deadline(),
            destination_amount_out_min=destination_min,
            destination_deadline=intent.deadline(),
        )
        return await _execute(ctx, ctx.from_network.slug, options)

    return await _confirm(ctx, gate, submit, on_submit)


STRATEGIES = {
    TransferPath.ROOT_TO_INTERMEDIARY: send_root_to_intermediary,
    TransferPath.INTERMEDIARY_TO_ROOT: send_intermediary_to_root,
    TransferPath.INTERMEDIARY_TO_INTERMEDIARY: send_intermediary_to_intermediary,
}


__all__ = [
    "STRATEGIES",
    "ensure_ready_to_submit",
    "send_intermediary_to_intermediary",
    "send_intermediary_to_root",
    "send_root_to_intermediary",
]
