"""Tests for the local-key wallet."""

from unittest.mock import MagicMock, PropertyMock

import pytest

from bridgesend.core.errors import WrongNetwork
from bridgesend.core.wallet import Web3Wallet

PRIVATE_KEY = "0x" + "01" * 32


def make_web3(chain_id=1):
    web3 = MagicMock()
    web3.eth.chain_id = chain_id
    return web3


@pytest.mark.asyncio
async def test_from_key_loads_signer():
    wallet = Web3Wallet.from_key(make_web3(), PRIVATE_KEY)

    signer = await wallet.get_signer()
    assert signer is wallet.account
    assert await wallet.get_address() == signer.address


@pytest.mark.asyncio
async def test_connected_network_matches():
    wallet = Web3Wallet.from_key(make_web3(chain_id=10), PRIVATE_KEY)

    assert await wallet.check_connected_network_id(10) is True
    assert await wallet.check_connected_network_id(1) is False


@pytest.mark.asyncio
async def test_unreadable_network_is_wrong_network():
    web3 = MagicMock()
    type(web3.eth).chain_id = PropertyMock(side_effect=ConnectionError("rpc down"))
    wallet = Web3Wallet(web3, None)

    with pytest.raises(WrongNetwork, match="rpc down"):
        await wallet.check_connected_network_id(1)


@pytest.mark.asyncio
async def test_no_account():
    wallet = Web3Wallet(make_web3(), None)

    assert await wallet.get_signer() is None
    with pytest.raises(ValueError):
        await wallet.get_address()
