"""Tests for ReceiptWaiter."""

from unittest.mock import AsyncMock, MagicMock

import pytest
from web3.exceptions import TransactionNotFound

from bridgesend.core.models import RawTransaction
from bridgesend.core.waiter import ReceiptWaiter

from conftest import USDC

SENDER = "0x" + "11" * 20


def make_tx(tx_hash="0xaaa", nonce=7):
    return RawTransaction(hash=tx_hash, network_name="optimism", sender=SENDER, nonce=nonce)


def make_waiter(web3, timeout=100.0):
    clock = MagicMock(side_effect=[float(tick) for tick in range(1000)])
    return ReceiptWaiter(web3, poll_interval=1, timeout=timeout, scan_blocks=3, sleep=AsyncMock(), clock=clock)


async def wait(waiter, tx):
    return await waiter.wait_for_transaction(tx, network_name="optimism", dest_network_name="arbitrum", token=USDC)


@pytest.mark.asyncio
async def test_returns_receipt_when_mined():
    web3 = MagicMock()
    web3.eth.get_transaction_receipt.side_effect = [
        TransactionNotFound("pending"),
        {"status": 1, "blockNumber": 12},
    ]
    web3.eth.get_transaction_count.return_value = 7

    result = await wait(make_waiter(web3), make_tx())

    assert not result.replaced
    assert result.receipt["blockNumber"] == 12


@pytest.mark.asyncio
async def test_detects_replacement_by_nonce():
    web3 = MagicMock()
    web3.eth.get_transaction_receipt.side_effect = TransactionNotFound("dropped")
    web3.eth.get_transaction_count.return_value = 8
    web3.eth.block_number = 100
    web3.eth.get_block.side_effect = [
        {"transactions": [{"from": "0x" + "99" * 20, "nonce": 7, "hash": "0xother"}]},
        {"transactions": [{"from": SENDER.upper().replace("0X", "0x"), "nonce": 7, "hash": bytes.fromhex("bb" * 32)}]},
    ]

    result = await wait(make_waiter(web3), make_tx())

    assert result.replaced
    assert result.replacement_tx.hash == "0x" + "bb" * 32
    assert result.replacement_tx.nonce == 7
    assert result.replacement_tx.network_name == "optimism"


@pytest.mark.asyncio
async def test_same_hash_in_block_is_not_a_replacement():
    web3 = MagicMock()
    web3.eth.get_transaction_receipt.side_effect = [TransactionNotFound("race"), {"status": 1, "blockNumber": 5}]
    web3.eth.get_transaction_count.return_value = 8
    web3.eth.block_number = 5
    web3.eth.get_block.return_value = {"transactions": [{"from": SENDER, "nonce": 7, "hash": "0xaaa"}]}

    result = await wait(make_waiter(web3), make_tx())

    assert not result.replaced


@pytest.mark.asyncio
async def test_times_out():
    web3 = MagicMock()
    web3.eth.get_transaction_receipt.side_effect = TransactionNotFound("pending")
    web3.eth.get_transaction_count.return_value = 7

    with pytest.raises(TimeoutError):
        await wait(make_waiter(web3, timeout=3), make_tx())
