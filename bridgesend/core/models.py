"""Data model for transfers moving through the send flow."""

from __future__ import annotations

import time
from dataclasses import asdict, dataclass, field, fields
from typing import Any, Awaitable, Callable, Dict, Mapping, Optional

from bridgesend.core.fees import TaggedFee


@dataclass(frozen=True)
class NetworkDescriptor:
    """Identifies a chain the transfer starts or ends on."""

    network_id: int
    slug: str
    name: str
    is_root: bool = False

    @classmethod
    def from_chain_config(cls, chain: Any) -> "NetworkDescriptor":
        return cls(network_id=chain.network_id, slug=chain.slug, name=chain.name, is_root=chain.is_root)


@dataclass(frozen=True)
class TokenDescriptor:
    symbol: str
    decimals: int
    is_native: bool = False

    @classmethod
    def from_token_config(cls, token: Any) -> "TokenDescriptor":
        return cls(symbol=token.symbol, decimals=token.decimals, is_native=token.is_native)


@dataclass(frozen=True)
class TransferIntent:
    """What the user asked to send. Lives for a single send invocation."""

    from_network: Optional[NetworkDescriptor]
    to_network: Optional[NetworkDescriptor]
    source_token: Optional[TokenDescriptor]
    from_token_amount: str
    deadline: Callable[[], int]
    amount_out_min: Optional[int] = None
    intermediary_amount_out_min: int = 0
    total_fee: Optional[int] = None
    custom_recipient: Optional[str] = None
    estimated_received: Optional[str] = None


@dataclass(frozen=True)
class RawTransaction:
    """A transaction as returned by the bridge executor."""

    hash: str
    network_name: str
    sender: Optional[str] = None
    nonce: Optional[int] = None


@dataclass(frozen=True)
class SendOptions:
    """Options bag passed to ``BridgeExecutor.send``."""

    recipient: Optional[str] = None
    deadline: int = 0
    bonder_fee: Optional[TaggedFee] = None
    relayer_fee: Optional[TaggedFee] = None
    amount_out_min: int = 0
    destination_amount_out_min: int = 0
    destination_deadline: int = 0


@dataclass(frozen=True)
class SendContext:
    """Everything a transfer strategy needs, resolved once per invocation."""

    intent: TransferIntent
    from_network: NetworkDescriptor
    to_network: NetworkDescriptor
    source_token: TokenDescriptor
    amount: int
    signer: Any
    recipient: str
    wallet: Any
    executor: Any
    fee_id: str


@dataclass(frozen=True)
class ConfirmationRequest:
    """Payload handed to the confirmation gate."""

    kind: str
    input_props: Mapping[str, Any]
    on_confirm: Callable[[], Awaitable[RawTransaction]]


@dataclass(frozen=True)
class DestinationReceipt:
    transaction_hash: str


@dataclass(frozen=True)
class WaitResult:
    """Outcome of waiting on a submitted transaction."""

    receipt: Optional[Mapping[str, Any]] = None
    replacement_tx: Optional[RawTransaction] = None

    @property
    def replaced(self) -> bool:
        return self.replacement_tx is not None

    @property
    def reverted(self) -> bool:
        return self.receipt is not None and self.receipt.get("status") == 0


def _now_ms() -> int:
    return int(time.time() * 1000)


@dataclass
class TransferRecord:
    """Durable record of a submitted transfer.

    ``dest_tx_hash`` and ``replaced_from`` are written at most once; the
    history store enforces it.
    """

    hash: str
    network_name: str
    dest_network_name: str
    token: str
    pending: bool = True
    dest_tx_hash: Optional[str] = None
    pending_destination_confirmation: bool = True
    replaced_from: Optional[str] = None
    timestamp: int = field(default_factory=_now_ms)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "TransferRecord":
        known = {f.name for f in fields(cls)}
        return cls(**{key: value for key, value in data.items() if key in known})


__all__ = [
    "ConfirmationRequest",
    "DestinationReceipt",
    "NetworkDescriptor",
    "RawTransaction",
    "SendContext",
    "SendOptions",
    "TokenDescriptor",
    "TransferIntent",
    "TransferRecord",
    "WaitResult",
]
