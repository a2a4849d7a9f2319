"""Bridge executor that encodes, signs and broadcasts bridge calls with web3."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Any, Callable, Dict

from eth_account.signers.local import LocalAccount
from web3 import Web3
from web3.contract.contract import ContractFunction
from web3.exceptions import ContractLogicError

from bridgesend.config import ConfigError, SenderConfig, TokenConfig
from bridgesend.contracts import L1_BRIDGE_ABI, L2_AMM_WRAPPER_ABI, load_contract_abi
from bridgesend.core.models import RawTransaction, SendOptions, TokenDescriptor
from bridgesend.core.tokens import allowance_of
from bridgesend.core.utils import ensure_web3_connected, get_logger, hex_hash

LOGGER = get_logger("bridgesend.executor")

ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"
FALLBACK_GAS = 500_000


@dataclass(frozen=True)
class GasParameters:
    """EIP-1559 gas parameters."""

    gas: int
    gas_price: int
    max_priority_fee: int
    max_fee: int
    estimated_cost: int


class Web3BridgeExecutor:
    """Sends ``token`` across the bridge from the chain ``web3`` is connected to."""

    def __init__(self, *, config: SenderConfig, web3: Web3, account: LocalAccount, token: TokenConfig) -> None:
        self.config = config
        self.web3 = web3
        self.account = account
        self.token = token

    async def send(self, amount: int, source: str, destination: str, options: SendOptions) -> RawTransaction:
        return await asyncio.to_thread(self._send_sync, amount, source, destination, options)

    def _send_sync(self, amount: int, source: str, destination: str, options: SendOptions) -> RawTransaction:
        source_chain = self.config.chain(source)
        destination_chain = self.config.chain(destination)
        ensure_web3_connected(self.web3, expected_chain_id=source_chain.network_id)

        bridge_address = self.token.bridge_address(source)
        if not self.token.is_native:
            self._ensure_allowance(source, bridge_address, amount)

        function = self._bridge_function(
            bridge_address,
            is_root=source_chain.is_root,
            destination_chain_id=destination_chain.network_id,
            amount=amount,
            options=options,
        )
        value = amount if self.token.is_native else 0

        try:
            gas = self.estimate_gas(function, value)
        except ValueError as exc:
            LOGGER.warning("Gas estimation failed: %s", exc)
            gas = self._fallback_gas()
        self._log_gas(gas)

        tx = function.build_transaction(
            {
                "from": self.account.address,
                "gas": int(gas.gas * 1.1),  # add a 10% buffer
                "maxFeePerGas": gas.max_fee,
                "maxPriorityFeePerGas": gas.max_priority_fee,
                "nonce": self.web3.eth.get_transaction_count(self.account.address),
                "chainId": source_chain.network_id,
                "value": value,
            }
        )
        signed = self.account.sign_transaction(tx)
        LOGGER.info("Broadcasting %s transfer to %s", self.token.symbol, destination)
        tx_hash = hex_hash(self.web3.eth.send_raw_transaction(signed.raw_transaction))
        LOGGER.info("Transaction hash: %s", tx_hash)
        return RawTransaction(hash=tx_hash, network_name=source, sender=self.account.address, nonce=tx["nonce"])

    def _ensure_allowance(self, source: str, spender: str, amount: int) -> None:
        token_address = self.token.addresses.get(source)
        if token_address is None:
            raise ConfigError(f"No {self.token.symbol} address configured on {source}")
        allowance = allowance_of(self.web3, token_address, self.account.address, spender)
        if allowance < amount:
            raise ValueError(
                f"Allowance for {self.token.symbol} is insufficient (allowance={allowance} required={amount})"
            )

    def _bridge_function(
        self,
        bridge_address: str,
        *,
        is_root: bool,
        destination_chain_id: int,
        amount: int,
        options: SendOptions,
    ) -> ContractFunction:
        recipient = Web3.to_checksum_address(options.recipient or self.account.address)
        if is_root:
            contract = self.web3.eth.contract(address=bridge_address, abi=load_contract_abi(L1_BRIDGE_ABI))
            relayer_fee = options.relayer_fee.value if options.relayer_fee else 0
            return contract.functions.sendToL2(
                destination_chain_id,
                recipient,
                amount,
                options.amount_out_min,
                options.deadline,
                ZERO_ADDRESS,
                relayer_fee,
            )

        contract = self.web3.eth.contract(address=bridge_address, abi=load_contract_abi(L2_AMM_WRAPPER_ABI))
        bonder_fee = options.bonder_fee.value if options.bonder_fee else 0
        return contract.functions.swapAndSend(
            destination_chain_id,
            recipient,
            amount,
            bonder_fee,
            options.amount_out_min,
            options.deadline,
            options.destination_amount_out_min,
            options.destination_deadline,
        )

    def estimate_gas(self, function: ContractFunction, value: int) -> GasParameters:
        try:
            gas_estimate = function.estimate_gas({"from": self.account.address, "value": value})
        except ContractLogicError as exc:
            raise ValueError(f"Contract would revert: {exc}") from exc

        gas_price = self.web3.eth.gas_price
        max_priority_fee = getattr(self.web3.eth, "max_priority_fee", gas_price)
        return GasParameters(
            gas=gas_estimate,
            gas_price=gas_price,
            max_priority_fee=max_priority_fee,
            max_fee=gas_price + max_priority_fee,
            estimated_cost=gas_estimate * gas_price,
        )

    def _fallback_gas(self) -> GasParameters:
        gas_price = self.web3.eth.gas_price
        max_priority_fee = getattr(self.web3.eth, "max_priority_fee", gas_price)
        return GasParameters(
            gas=FALLBACK_GAS,
            gas_price=gas_price,
            max_priority_fee=max_priority_fee,
            max_fee=gas_price + max_priority_fee,
            estimated_cost=FALLBACK_GAS * gas_price,
        )

    @staticmethod
    def _log_gas(gas: GasParameters) -> None:
        LOGGER.info(
            "gas=%s maxFee=%.2f gwei priority=%.2f gwei estimatedCost=%.6f ETH",
            gas.gas,
            gas.max_fee / 10**9,
            gas.max_priority_fee / 10**9,
            gas.estimated_cost / 10**18,
        )


def web3_executor_factory(config: SenderConfig, web3: Web3) -> Callable[[TokenDescriptor, Any], Web3BridgeExecutor]:
    """Return a factory connecting the configured bridge of a token to a signer."""
    cache: Dict[str, Web3BridgeExecutor] = {}

    def factory(token: TokenDescriptor, signer: Any) -> Web3BridgeExecutor:
        key = f"{token.symbol}:{signer.address}"
        if key not in cache:
            cache[key] = Web3BridgeExecutor(config=config, web3=web3, account=signer, token=config.token(token.symbol))
        return cache[key]

    return factory


__all__ = ["GasParameters", "Web3BridgeExecutor", "web3_executor_factory"]
