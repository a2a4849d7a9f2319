"""Fee tagging and minimum-output arithmetic."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Union

from bridgesend.core.errors import FeeExceedsAmount, MissingParameter

DEFAULT_FEE_ID = "123456"


@dataclass(frozen=True)
class TaggedFee:
    """A fee whose trailing digits carry the sender's fee id.

    ``raw`` is the fee as quoted, ``value`` the amount actually sent on chain.
    """

    value: int
    raw: int
    fee_id: str

    def __int__(self) -> int:
        return self.value


def with_disambiguating_id(fee: Union[int, TaggedFee, None], fee_id: str = DEFAULT_FEE_ID) -> TaggedFee:
    """Stamp ``fee_id`` onto the low digits of ``fee``.

    Fees that are zero or shorter than the id are left as they are.
    """
    if fee is None:
        raise MissingParameter("Fee is required for this transfer path")
    if isinstance(fee, TaggedFee):
        return fee
    if fee < 0:
        raise ValueError(f"Fee must not be negative: {fee}")

    digits = str(fee)
    if fee == 0 or len(digits) <= len(fee_id):
        return TaggedFee(value=fee, raw=fee, fee_id=fee_id)
    stamped = int(digits[: -len(fee_id)] + fee_id)
    return TaggedFee(value=stamped, raw=fee, fee_id=fee_id)


def compute_min_output(bound: Optional[int], fee: TaggedFee) -> int:
    """Return ``bound - fee``; raises ``FeeExceedsAmount`` instead of going negative."""
    if not isinstance(fee, TaggedFee):
        raise TypeError("compute_min_output requires a TaggedFee; tag raw fees with with_disambiguating_id")
    if bound is None:
        raise MissingParameter("Minimum output bound is required for this transfer path")
    if fee.value > bound:
        raise FeeExceedsAmount(f"Fee {fee.value} exceeds minimum output bound {bound}")
    return bound - fee.value


__all__ = ["DEFAULT_FEE_ID", "TaggedFee", "compute_min_output", "with_disambiguating_id"]
