"""Wait for a submitted transaction, detecting replacements by sender nonce."""

from __future__ import annotations

import asyncio
import time
from typing import Any, Awaitable, Callable, Dict, Optional

from web3 import Web3
from web3.exceptions import TransactionNotFound

from bridgesend.core.models import RawTransaction, TokenDescriptor, WaitResult
from bridgesend.core.utils import get_logger, hex_hash

LOGGER = get_logger("bridgesend.waiter")


class ReceiptWaiter:
    """Polls for a receipt; if the sender nonce moves on without one, looks for the replacement.

    A replacement is a transaction from the same sender with the same nonce
    but a different hash, found in the last ``scan_blocks`` blocks.
    """

    def __init__(
        self,
        web3: Web3,
        *,
        poll_interval: float = 5.0,
        timeout: float = 600.0,
        scan_blocks: int = 20,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.web3 = web3
        self.poll_interval = poll_interval
        self.timeout = timeout
        self.scan_blocks = scan_blocks
        self._sleep = sleep
        self._clock = clock

    async def wait_for_transaction(
        self,
        tx: RawTransaction,
        *,
        network_name: str,
        dest_network_name: str,
        token: TokenDescriptor,
    ) -> WaitResult:
        LOGGER.info("Awaiting confirmation of %s %s on %s -> %s", token.symbol, tx.hash, network_name, dest_network_name)
        started = self._clock()
        while True:
            receipt = await asyncio.to_thread(self._receipt, tx.hash)
            if receipt is not None:
                if receipt.get("status") == 0:
                    LOGGER.error("Transaction %s reverted in block %s", tx.hash, receipt.get("blockNumber"))
                else:
                    LOGGER.info("Transaction %s confirmed in block %s", tx.hash, receipt.get("blockNumber"))
                return WaitResult(receipt=receipt)

            if tx.sender is not None and tx.nonce is not None:
                replacement = await asyncio.to_thread(self._find_replacement, tx)
                if replacement is not None:
                    LOGGER.info("Transaction %s was replaced by %s", tx.hash, replacement.hash)
                    return WaitResult(replacement_tx=replacement)

            if self._clock() - started > self.timeout:
                raise TimeoutError(f"Transaction {tx.hash} not confirmed after {self.timeout:.0f}s")
            await self._sleep(self.poll_interval)

    def _receipt(self, tx_hash: str) -> Optional[Dict[str, Any]]:
        try:
            receipt = self.web3.eth.get_transaction_receipt(tx_hash)
        except TransactionNotFound:
            return None
        return dict(receipt) if receipt is not None else None

    def _find_replacement(self, tx: RawTransaction) -> Optional[RawTransaction]:
        confirmed_nonce = self.web3.eth.get_transaction_count(Web3.to_checksum_address(tx.sender))
        if confirmed_nonce <= tx.nonce:
            return None

        latest = self.web3.eth.block_number
        sender = tx.sender.lower()
        for number in range(latest, max(latest - self.scan_blocks, -1), -1):
            block = self.web3.eth.get_block(number, full_transactions=True)
            for candidate in block["transactions"]:
                if str(candidate["from"]).lower() != sender or candidate["nonce"] != tx.nonce:
                    continue
                candidate_hash = hex_hash(candidate["hash"])
                if candidate_hash.lower() == tx.hash.lower():
                    # mined after the receipt check; picked up on the next poll
                    return None
                return RawTransaction(
                    hash=candidate_hash,
                    network_name=tx.network_name,
                    sender=tx.sender,
                    nonce=tx.nonce,
                )
        return None


__all__ = ["ReceiptWaiter"]
