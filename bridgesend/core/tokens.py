"""Token amount parsing, symbol normalisation and ERC20 reads."""

from __future__ import annotations

import re
from decimal import Decimal, InvalidOperation, ROUND_DOWN
from typing import Dict, Tuple

from web3 import Web3
from web3.contract import Contract

from bridgesend.core.utils import ensure_web3_connected

ERC20_ABI = [
    {
        "constant": True,
        "inputs": [{"name": "_owner", "type": "address"}],
        "name": "balanceOf",
        "outputs": [{"name": "balance", "type": "uint256"}],
        "type": "function",
    },
    {
        "constant": True,
        "inputs": [{"name": "_owner", "type": "address"}, {"name": "_spender", "type": "address"}],
        "name": "allowance",
        "outputs": [{"name": "", "type": "uint256"}],
        "type": "function",
    },
]

# h-tokens, wrapped and bridged variants all settle as the canonical asset
_CANONICAL_RE = re.compile(r"^h?W?X?(ETH|MATIC|USDC|USDT|DAI|WBTC|HOP|SNX|sUSD|rETH)")


def canonical_token_symbol(symbol: str) -> str:
    """Strip the ``h``, ``W`` and ``X`` prefixes from a known token symbol."""
    return _CANONICAL_RE.sub(r"\1", symbol)


def amount_to_units(amount: str, decimals: int) -> int:
    """Convert a human readable amount into base units, rounding down."""
    if amount is None or str(amount).strip() == "":
        return 0
    try:
        value = Decimal(str(amount).strip())
    except InvalidOperation as exc:
        raise ValueError(f"Invalid token amount: {amount!r}") from exc
    if not value.is_finite() or value < 0:
        raise ValueError(f"Invalid token amount: {amount!r}")
    return int((value * (Decimal(10) ** decimals)).quantize(Decimal("1"), rounding=ROUND_DOWN))


def get_contract(web3: Web3, token_address: str) -> Contract:
    """Return a cached ERC20 contract instance for ``token_address``."""
    ensure_web3_connected(web3)
    return _get_or_create_contract(web3, token_address)


_CONTRACT_CACHE: Dict[Tuple[int, str], Contract] = {}


def _get_or_create_contract(web3: Web3, token_address: str) -> Contract:
    checksum_address = Web3.to_checksum_address(token_address)
    key = (id(web3), checksum_address)
    contract = _CONTRACT_CACHE.get(key)
    if contract is None:
        contract = web3.eth.contract(address=checksum_address, abi=ERC20_ABI)
        _CONTRACT_CACHE[key] = contract
    return contract


def allowance_of(web3: Web3, token_address: str, owner: str, spender: str) -> int:
    """Fetch the ERC20 allowance."""
    contract = get_contract(web3, token_address)
    return contract.functions.allowance(
        Web3.to_checksum_address(owner),
        Web3.to_checksum_address(spender),
    ).call()


__all__ = [
    "ERC20_ABI",
    "allowance_of",
    "amount_to_units",
    "canonical_token_symbol",
    "get_contract",
]
