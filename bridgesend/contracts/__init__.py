"""Bridge contract ABIs shipped with bridgesend."""

from importlib import resources
from typing import Any, List
import json

L1_BRIDGE_ABI = "l1_bridge_abi.json"
L2_AMM_WRAPPER_ABI = "l2_amm_wrapper_abi.json"


def load_contract_abi(filename: str) -> List[Any]:
    """Load an ABI JSON file from the contracts package."""
    with resources.files(__package__).joinpath(filename).open("r", encoding="utf-8") as fh:
        return json.load(fh)


__all__ = ["L1_BRIDGE_ABI", "L2_AMM_WRAPPER_ABI", "load_contract_abi"]
