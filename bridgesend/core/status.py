"""Completion watch polling a transfer-status HTTP API."""

from __future__ import annotations

import asyncio
from typing import Any, Awaitable, Callable, Dict, Mapping, Optional

import requests

from bridgesend.core.models import DestinationReceipt
from bridgesend.core.tokens import canonical_token_symbol
from bridgesend.core.utils import get_logger

LOGGER = get_logger("bridgesend.status")


def _extract_status(payload: Any) -> Optional[Mapping[str, Any]]:
    if isinstance(payload, list):
        payload = payload[0] if payload else None
    if isinstance(payload, Mapping) and isinstance(payload.get("data"), (Mapping, list)):
        return _extract_status(payload["data"])
    return payload if isinstance(payload, Mapping) else None


class TransferStatusWatch:
    """Resolves once the transfer-status API reports a destination transaction."""

    def __init__(
        self,
        url: str,
        *,
        timeout: int = 10,
        poll_interval: float = 5.0,
        max_attempts: int = 360,
        session: Optional[requests.Session] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self.url = url
        self.timeout = timeout
        self.poll_interval = poll_interval
        self.max_attempts = max_attempts
        self.session = session or requests.Session()
        self._sleep = sleep

    async def watch(self, tx_hash: str, token_symbol: str, source_slug: str, dest_slug: str) -> DestinationReceipt:
        params = {
            "transactionHash": tx_hash,
            "token": canonical_token_symbol(token_symbol),
            "sourceChainSlug": source_slug,
            "destinationChainSlug": dest_slug,
        }
        for attempt in range(1, self.max_attempts + 1):
            try:
                status = await asyncio.to_thread(self._fetch, params)
            except (requests.RequestException, ValueError) as exc:
                LOGGER.warning("Transfer status for %s unavailable (attempt %s): %s", tx_hash, attempt, exc)
                status = None

            dest_hash = self._destination_hash(status)
            if dest_hash:
                return DestinationReceipt(transaction_hash=dest_hash)
            if attempt < self.max_attempts:
                await self._sleep(self.poll_interval)

        raise TimeoutError(f"No destination transaction for {tx_hash} after {self.max_attempts} attempts")

    def _fetch(self, params: Dict[str, str]) -> Optional[Mapping[str, Any]]:
        response = self.session.get(self.url, params=params, timeout=self.timeout)
        response.raise_for_status()
        return _extract_status(response.json())

    @staticmethod
    def _destination_hash(status: Optional[Mapping[str, Any]]) -> Optional[str]:
        if not status or status.get("error"):
            return None
        if not (status.get("bonded") or status.get("received")):
            return None
        return status.get("bondTransactionHash") or status.get("destinationTransactionHash")


__all__ = ["TransferStatusWatch"]
