"""Core domain logic for bridgesend."""

from .errors import (
    ExecutorFailure,
    FeeExceedsAmount,
    InvalidRecipient,
    MissingNetwork,
    MissingParameter,
    NoSigner,
    NoToken,
    ReplacementCycle,
    SendError,
    UserCancelled,
    WrongNetwork,
)
from .fees import TaggedFee, compute_min_output, with_disambiguating_id
from .history import TransferHistory
from .models import (
    ConfirmationRequest,
    DestinationReceipt,
    NetworkDescriptor,
    RawTransaction,
    SendOptions,
    TokenDescriptor,
    TransferIntent,
    TransferRecord,
    WaitResult,
)
from .paths import TransferPath, select_path
from .send import SendOrchestrator, SendSession, SendState

__all__ = [
    "ConfirmationRequest",
    "DestinationReceipt",
    "ExecutorFailure",
    "FeeExceedsAmount",
    "InvalidRecipient",
    "MissingNetwork",
    "MissingParameter",
    "NetworkDescriptor",
    "NoSigner",
    "NoToken",
    "RawTransaction",
    "ReplacementCycle",
    "SendError",
    "SendOptions",
    "SendOrchestrator",
    "SendSession",
    "SendState",
    "TaggedFee",
    "TokenDescriptor",
    "TransferHistory",
    "TransferIntent",
    "TransferPath",
    "TransferRecord",
    "UserCancelled",
    "WaitResult",
    "WrongNetwork",
    "compute_min_output",
    "select_path",
    "with_disambiguating_id",
]
