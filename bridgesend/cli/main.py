"""CLI entrypoint for sending and tracking cross-chain transfers."""

from __future__ import annotations

import argparse
import asyncio
import os
import sys
from pathlib import Path
from typing import Callable, List, Optional

from dotenv import load_dotenv
from web3 import Web3

from bridgesend.config import ConfigError, SenderConfig, load_config
from bridgesend.core.blocks import get_block_number_from_date
from bridgesend.core.executor import web3_executor_factory
from bridgesend.core.history import TransferHistory
from bridgesend.core.models import (
    ConfirmationRequest,
    NetworkDescriptor,
    RawTransaction,
    TokenDescriptor,
    TransferIntent,
)
from bridgesend.core.send import SendOrchestrator, SendSession
from bridgesend.core.status import TransferStatusWatch
from bridgesend.core.tokens import amount_to_units
from bridgesend.core.utils import get_logger, make_deadline
from bridgesend.core.waiter import ReceiptWaiter
from bridgesend.core.wallet import Web3Wallet

LOGGER = get_logger("bridgesend.cli")

DEFAULT_HISTORY_PATH = Path("transfers.json")

load_dotenv()


class ConsoleConfirmationGate:
    """Asks for confirmation on the terminal before running ``on_confirm``."""

    def __init__(self, *, auto_confirm: bool = False, prompt: Callable[[str], str] = input) -> None:
        self.auto_confirm = auto_confirm
        self._prompt = prompt

    async def show(self, request: ConfirmationRequest) -> Optional[RawTransaction]:
        props = request.input_props
        source = props["source"]
        print(
            f"Send {source['amount']} {source['token'].symbol} "
            f"from {source['network'].name} to {props['dest']['network'].name}"
        )
        if props.get("custom_recipient"):
            print(f"Recipient: {props['custom_recipient']}")
        if props.get("estimated_received"):
            print(f"Estimated received: {props['estimated_received']}")

        if not self.auto_confirm:
            answer = await asyncio.to_thread(self._prompt, "Confirm transfer? [y/N] ")
            if answer.strip().lower() not in ("y", "yes"):
                return None
        return await request.on_confirm()


def build_orchestrator(
    config: SenderConfig,
    *,
    web3: Web3,
    private_key: str,
    history: TransferHistory,
    auto_confirm: bool = False,
) -> SendOrchestrator:
    defaults = config.defaults
    return SendOrchestrator(
        wallet=Web3Wallet.from_key(web3, private_key),
        executor_factory=web3_executor_factory(config, web3),
        gate=ConsoleConfirmationGate(auto_confirm=auto_confirm),
        history=history,
        completion_watch=TransferStatusWatch(
            config.api_urls.transfer_status,
            timeout=defaults.api_timeout,
            poll_interval=defaults.poll_interval,
            max_attempts=defaults.status_max_attempts,
        ),
        waiter=ReceiptWaiter(
            web3,
            poll_interval=defaults.poll_interval,
            timeout=defaults.receipt_timeout,
            scan_blocks=defaults.replacement_scan_blocks,
        ),
        fee_id=defaults.fee_id,
    )


def build_intent(config: SenderConfig, args: argparse.Namespace) -> TransferIntent:
    token_config = config.token(args.token)
    token = TokenDescriptor.from_token_config(token_config)

    def units(value: Optional[str]) -> Optional[int]:
        return None if value is None else amount_to_units(value, token.decimals)

    return TransferIntent(
        from_network=NetworkDescriptor.from_chain_config(config.chain(args.from_chain)),
        to_network=NetworkDescriptor.from_chain_config(config.chain(args.to_chain)),
        source_token=token,
        from_token_amount=args.amount,
        deadline=make_deadline(config.defaults.deadline_minutes),
        amount_out_min=units(args.amount_out_min),
        intermediary_amount_out_min=units(args.intermediary_amount_out_min) or 0,
        total_fee=units(args.total_fee),
        custom_recipient=args.recipient,
        estimated_received=args.estimated_received,
    )


async def _run_send(orchestrator: SendOrchestrator, intent: TransferIntent, *, wait: bool) -> SendSession:
    session = await orchestrator.send(intent)
    if wait and session.record is not None:
        LOGGER.info("Waiting for transfer %s to complete", session.record.hash)
        await orchestrator.drain()
    return session


def _cmd_send(config: SenderConfig, args: argparse.Namespace) -> int:
    private_key = (os.getenv("PRIVATE_KEY") or "").strip()
    if not private_key:
        print("❌ Error: PRIVATE_KEY environment variable not set")
        return 1

    from_chain = config.chain(args.from_chain)
    web3 = Web3(Web3.HTTPProvider(args.rpc_url or from_chain.ensure_rpc_url()))
    orchestrator = build_orchestrator(
        config,
        web3=web3,
        private_key=private_key,
        history=TransferHistory(Path(args.history)),
        auto_confirm=args.yes,
    )
    session = asyncio.run(_run_send(orchestrator, build_intent(config, args), wait=not args.no_wait))

    if session.cancelled:
        print("Transfer cancelled")
        return 0
    if session.error:
        print(f"❌ Error: {session.error}")
        return 1

    record = session.record
    print(f"Source transaction: {record.hash}")
    if record.replaced_from:
        print(f"Replaced: {record.replaced_from}")
    if record.dest_tx_hash:
        print(f"Destination transaction: {record.dest_tx_hash}")
    return 0


def _cmd_history(args: argparse.Namespace) -> int:
    history = TransferHistory(Path(args.history))
    if args.clear:
        history.clear()
        print("History cleared")
        return 0

    for record in history.transactions:
        if record.pending_destination_confirmation:
            status = "pending"
        elif record.dest_tx_hash:
            status = f"received {record.dest_tx_hash}"
        else:
            status = "reverted"
        line = f"{record.hash} {record.token} {record.network_name} -> {record.dest_network_name} {status}"
        if record.replaced_from:
            line += f" (replaces {record.replaced_from})"
        print(line)
    return 0


def _cmd_block_at(config: SenderConfig, args: argparse.Namespace) -> int:
    chain = config.chain(args.network)
    block = get_block_number_from_date(
        chain,
        args.timestamp,
        explorer=config.api_urls.explorers.get(chain.slug),
        api_timeout=config.defaults.api_timeout,
    )
    print(block)
    return 0


def _parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Send and track cross-chain bridge transfers")
    parser.add_argument("--config", type=Path, default=None, help="Path to config.json")
    parser.add_argument("--history", default=str(DEFAULT_HISTORY_PATH), help="Transfer history file")
    commands = parser.add_subparsers(dest="command", required=True)

    send = commands.add_parser("send", help="Send a transfer")
    send.add_argument("--from", dest="from_chain", required=True, help="Source chain slug")
    send.add_argument("--to", dest="to_chain", required=True, help="Destination chain slug")
    send.add_argument("--token", required=True, help="Token symbol")
    send.add_argument("--amount", required=True, help="Amount in token units, e.g. 1.5")
    send.add_argument("--amount-out-min", help="Minimum received on the destination")
    send.add_argument("--intermediary-amount-out-min", help="Minimum received on the first hop")
    send.add_argument("--total-fee", help="Bonder or relayer fee in token units")
    send.add_argument("--recipient", help="Custom recipient address")
    send.add_argument("--estimated-received", help="Shown in the confirmation prompt")
    send.add_argument("--rpc-url", help="Override the source chain RPC URL")
    send.add_argument("--yes", action="store_true", help="Skip the confirmation prompt")
    send.add_argument("--no-wait", action="store_true", help="Return once the transaction is submitted")

    history = commands.add_parser("history", help="List recorded transfers")
    history.add_argument("--clear", action="store_true", help="Remove all recorded transfers")

    block_at = commands.add_parser("block-at", help="Find the block mined at or before a timestamp")
    block_at.add_argument("--network", required=True, help="Chain slug")
    block_at.add_argument("--timestamp", type=int, required=True, help="Unix timestamp")
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> None:
    args = _parse_args(argv)
    try:
        if args.command == "history":
            code = _cmd_history(args)
        else:
            config = load_config(args.config)
            if args.command == "send":
                code = _cmd_send(config, args)
            else:
                code = _cmd_block_at(config, args)
    except ConfigError as exc:
        print(f"❌ Config error: {exc}")
        code = 1
    except Exception as exc:
        print(f"\n❌ Error: {exc}")
        code = 1
    if code:
        sys.exit(code)


if __name__ == "__main__":  # pragma: no cover - CLI entry
    main()
