"""Tests for token helpers."""

from unittest.mock import MagicMock

import pytest

from bridgesend.core import tokens
from bridgesend.core.tokens import allowance_of, amount_to_units, canonical_token_symbol


@pytest.mark.parametrize(
    "symbol, expected",
    [
        ("hETH", "ETH"),
        ("WETH", "ETH"),
        ("WMATIC", "MATIC"),
        ("XDAI", "DAI"),
        ("hUSDC", "USDC"),
        ("USDC", "USDC"),
        ("sUSD", "sUSD"),
        ("hsUSD", "sUSD"),
        ("FOO", "FOO"),
    ],
)
def test_canonical_token_symbol(symbol, expected):
    assert canonical_token_symbol(symbol) == expected


@pytest.mark.parametrize(
    "amount, decimals, expected",
    [
        ("1", 6, 1_000_000),
        ("1.5", 18, 1_500_000_000_000_000_000),
        ("0.1234567", 6, 123_456),
        (" 2 ", 0, 2),
        ("", 6, 0),
    ],
)
def test_amount_to_units(amount, decimals, expected):
    assert amount_to_units(amount, decimals) == expected


@pytest.mark.parametrize("amount", ["abc", "-1", "NaN", "Infinity"])
def test_amount_to_units_rejects_invalid(amount):
    with pytest.raises(ValueError):
        amount_to_units(amount, 6)


def test_allowance_of_reads_contract():
    web3 = MagicMock()
    web3.is_connected.return_value = True
    contract = web3.eth.contract.return_value
    contract.functions.allowance.return_value.call.return_value = 42
    tokens._CONTRACT_CACHE.clear()

    owner = "0x" + "11" * 20
    spender = "0x" + "22" * 20
    assert allowance_of(web3, "0x" + "33" * 20, owner, spender) == 42
    contract.functions.allowance.assert_called_once()
