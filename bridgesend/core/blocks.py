"""Block number lookup by timestamp."""

from __future__ import annotations

from typing import Callable, Optional

import requests
from web3 import Web3
from web3.exceptions import Web3Exception

from bridgesend.config import ChainConfig, ExplorerConfig
from bridgesend.core.utils import get_logger

LOGGER = get_logger("bridgesend.blocks")

MAX_LOOKUP_ATTEMPTS = 5


def get_block_number_from_date(
    chain: ChainConfig,
    timestamp: int,
    *,
    explorer: Optional[ExplorerConfig] = None,
    api_timeout: int = 10,
    web3_factory: Callable[[str], Web3] = lambda url: Web3(Web3.HTTPProvider(url)),
) -> int:
    """Return the last block of ``chain`` mined at or before ``timestamp``."""
    if explorer is not None and explorer.api_key:
        return get_block_number_from_explorer(chain.slug, timestamp, explorer, api_timeout=api_timeout)

    web3 = web3_factory(chain.ensure_rpc_url())
    for attempt in range(1, MAX_LOOKUP_ATTEMPTS + 1):
        try:
            return find_block_before(web3, timestamp)
        except (ConnectionError, ValueError, requests.RequestException, Web3Exception) as exc:
            LOGGER.warning("Block lookup on %s failed, retrying %s: %s", chain.slug, attempt, exc)
    raise LookupError(f"could not retrieve block number for timestamp {timestamp} on {chain.slug}")


def get_block_number_from_explorer(
    slug: str,
    timestamp: int,
    explorer: ExplorerConfig,
    *,
    api_timeout: int = 10,
) -> int:
    if not explorer.api_key:
        raise ValueError(f"Please add an etherscan api key for {slug}")
    params = {
        "module": "block",
        "action": "getblocknobytime",
        "timestamp": str(timestamp),
        "closest": "before",
        "apikey": explorer.api_key,
    }
    try:
        response = requests.get(f"{explorer.api_url}/api", params=params, timeout=api_timeout)
        response.raise_for_status()
    except requests.RequestException as exc:
        raise ConnectionError(f"Failed to fetch block number from {explorer.api_url}: {exc}") from exc

    payload = response.json()
    if payload.get("status") != "1":
        raise LookupError(f"could not retrieve block number for timestamp {timestamp}: {payload}")
    return int(payload["result"])


def find_block_before(web3: Web3, timestamp: int) -> int:
    """Binary search for the highest block whose timestamp is <= ``timestamp``."""
    latest = web3.eth.get_block("latest")
    if latest["timestamp"] <= timestamp:
        return int(latest["number"])
    if web3.eth.get_block(0)["timestamp"] > timestamp:
        raise LookupError(f"timestamp {timestamp} predates the genesis block")

    low, high = 0, int(latest["number"])
    while low < high:
        mid = (low + high + 1) // 2
        if web3.eth.get_block(mid)["timestamp"] <= timestamp:
            low = mid
        else:
            high = mid - 1
    return low


__all__ = ["find_block_before", "get_block_number_from_date", "get_block_number_from_explorer"]
