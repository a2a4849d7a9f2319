"""Utility helpers shared across bridgesend core modules."""

from __future__ import annotations

import logging
import time
from typing import Callable, Optional

from web3 import Web3


def get_logger(name: str = "bridgesend") -> logging.Logger:
    """Return a configured logger that prints to stdout."""
    logger = logging.getLogger(name)
    if not logger.handlers:
        handler = logging.StreamHandler()
        formatter = logging.Formatter("%(asctime)s | %(levelname)s | %(name)s | %(message)s")
        handler.setFormatter(formatter)
        logger.addHandler(handler)
        logger.setLevel(logging.INFO)
    return logger


def ensure_web3_connected(web3: Web3, *, expected_chain_id: Optional[int] = None) -> None:
    """Validate that ``web3`` is connected and optionally matches the expected chain id."""
    if not web3.is_connected():
        raise ConnectionError("Failed to connect to the configured RPC endpoint")
    if expected_chain_id is not None and web3.eth.chain_id != expected_chain_id:
        raise ValueError(f"RPC chain ID mismatch: expected {expected_chain_id}, got {web3.eth.chain_id}")


def is_valid_address(value: str) -> bool:
    """Return True for a hex address; mixed-case input must carry a valid EIP-55 checksum."""
    if not isinstance(value, str):
        return False
    return Web3.is_address(value)


def make_deadline(minutes: int, *, clock: Callable[[], float] = time.time) -> Callable[[], int]:
    """Return a generator of unix deadlines ``minutes`` after each call."""

    def deadline() -> int:
        return int(clock()) + minutes * 60

    return deadline


def hex_hash(value) -> str:
    """Normalise a transaction hash (bytes or str) to a ``0x`` hex string."""
    if isinstance(value, (bytes, bytearray)):
        text = value.hex()
    else:
        text = str(value)
    return text if text.startswith("0x") else f"0x{text}"


__all__ = [
    "ensure_web3_connected",
    "get_logger",
    "hex_hash",
    "is_valid_address",
    "make_deadline",
]
