"""Wallet backed by a local key and a web3 provider."""

from __future__ import annotations

import asyncio
from typing import Optional

from eth_account import Account
from eth_account.signers.local import LocalAccount
from web3 import Web3

from bridgesend.core.errors import WrongNetwork
from bridgesend.core.utils import get_logger

LOGGER = get_logger("bridgesend.wallet")


class Web3Wallet:
    """Signs with ``account`` on whatever chain ``web3`` is connected to."""

    def __init__(self, web3: Web3, account: Optional[LocalAccount]) -> None:
        self.web3 = web3
        self.account = account

    @classmethod
    def from_key(cls, web3: Web3, private_key: str) -> "Web3Wallet":
        account = Account.from_key(private_key)
        LOGGER.info("Loaded signer %s", account.address)
        return cls(web3, account)

    async def get_signer(self) -> Optional[LocalAccount]:
        return self.account

    async def check_connected_network_id(self, network_id: int) -> bool:
        try:
            connected = await asyncio.to_thread(lambda: self.web3.eth.chain_id)
        except Exception as exc:
            raise WrongNetwork(f"Could not read connected network: {exc}") from exc
        if connected != network_id:
            LOGGER.warning("Connected to chain %s, expected %s", connected, network_id)
            return False
        return True

    async def get_address(self) -> str:
        if self.account is None:
            raise ValueError("No account loaded")
        return self.account.address


__all__ = ["Web3Wallet"]
