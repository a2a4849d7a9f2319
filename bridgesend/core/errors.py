"""Error taxonomy for the send flow."""

from __future__ import annotations

import re
from typing import Any, Optional

_CANCELLED_RE = re.compile(r"cancelled", re.IGNORECASE)


class SendError(Exception):
    """Base class for failures raised while sending a transfer."""


class MissingNetwork(SendError):
    """A source or destination network is undefined."""


class WrongNetwork(SendError):
    """The wallet is connected to a different network than the source."""


class InvalidRecipient(SendError):
    """The custom recipient is not a valid address."""


class NoSigner(SendError):
    """No signer is available from the wallet."""


class NoToken(SendError):
    """No source token was selected."""


class MissingParameter(SendError):
    """A bound or fee required by the selected path is undefined."""


class FeeExceedsAmount(SendError):
    """The fee is larger than the amount it is subtracted from."""


class UserCancelled(SendError):
    """The user dismissed the confirmation dialog."""


class ExecutorFailure(SendError):
    """The bridge executor failed to submit the transaction."""


class ReplacementCycle(SendError):
    """A replacement would make the transfer lineage cyclic."""


def is_cancellation(exc: BaseException) -> bool:
    """Return True when ``exc`` signals a user cancellation."""
    return isinstance(exc, UserCancelled) or bool(_CANCELLED_RE.search(str(exc)))


def format_error(exc: BaseException, network: Optional[Any] = None) -> str:
    """Turn ``exc`` into a message suitable for display to the user."""
    message = str(exc) or exc.__class__.__name__
    lowered = message.lower()
    network_name = getattr(network, "name", None) or "the source network"

    if "insufficient funds" in lowered:
        return f"Insufficient funds on {network_name} to cover the transfer and gas"
    if "user rejected" in lowered or "user denied" in lowered:
        return "Transaction was rejected in the wallet"
    if isinstance(exc, SendError):
        return message
    # collapse multi-line provider errors to their first line
    return message.splitlines()[0].strip()


__all__ = [
    "ExecutorFailure",
    "FeeExceedsAmount",
    "InvalidRecipient",
    "MissingNetwork",
    "MissingParameter",
    "NoSigner",
    "NoToken",
    "ReplacementCycle",
    "SendError",
    "UserCancelled",
    "WrongNetwork",
    "format_error",
    "is_cancellation",
]
