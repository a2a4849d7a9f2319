"""Tests for transfer record creation."""

from bridgesend.core.history import TransferHistory
from bridgesend.core.models import RawTransaction
from bridgesend.core.records import create_transfer_record, handle_transaction

from conftest import ETHEREUM, OPTIMISM, USDC


def test_create_transfer_record():
    tx = RawTransaction(hash="0xaaa", network_name="ethereum")

    record = create_transfer_record(tx, ETHEREUM, OPTIMISM, USDC)

    assert record.hash == "0xaaa"
    assert record.network_name == "ethereum"
    assert record.dest_network_name == "optimism"
    assert record.token == "USDC"
    assert record.pending is True
    assert record.pending_destination_confirmation is True
    assert record.dest_tx_hash is None
    assert record.replaced_from is None
    assert record.timestamp > 0


def test_handle_transaction_registers_record():
    history = TransferHistory()
    tx = RawTransaction(hash="0xbbb", network_name="ethereum")

    handled = handle_transaction(tx, ETHEREUM, OPTIMISM, USDC, history, replaced_from="0xaaa")

    assert handled.transaction is tx
    assert history.get("0xbbb") is handled.record
    assert handled.record.replaced_from == "0xaaa"


def test_handle_transaction_returns_stored_record_for_known_hash():
    history = TransferHistory()
    tx = RawTransaction(hash="0xaaa", network_name="ethereum")
    first = handle_transaction(tx, ETHEREUM, OPTIMISM, USDC, history)
    history.update_transaction(first.record, dest_tx_hash="0xdest")

    again = handle_transaction(tx, ETHEREUM, OPTIMISM, USDC, history)

    assert again.record is first.record
    assert again.record.dest_tx_hash == "0xdest"
