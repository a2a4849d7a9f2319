"""Transfer path selection."""

from __future__ import annotations

import enum


class TransferPath(enum.Enum):
    ROOT_TO_INTERMEDIARY = "root_to_intermediary"
    INTERMEDIARY_TO_ROOT = "intermediary_to_root"
    INTERMEDIARY_TO_INTERMEDIARY = "intermediary_to_intermediary"


def select_path(source, destination) -> TransferPath:
    """Pick the transfer path from the root flags of both networks."""
    if source.is_root:
        return TransferPath.ROOT_TO_INTERMEDIARY
    if destination.is_root:
        return TransferPath.INTERMEDIARY_TO_ROOT
    return TransferPath.INTERMEDIARY_TO_INTERMEDIARY


__all__ = ["TransferPath", "select_path"]
