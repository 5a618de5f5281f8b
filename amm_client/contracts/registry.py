"""
Bundled interface descriptions for the AMM and ERC-20 token contracts.
"""

import copy
import json
import os
from functools import lru_cache
from typing import Any, Dict, List

AMM_ABI_NAME = "AMM"
ERC20_ABI_NAME = "ERC20"


class AbiNotFoundError(LookupError):
    """Raised when a bundled ABI file is missing or unreadable."""
    pass


@lru_cache(maxsize=None)
def _read_abi(name: str) -> tuple:
    abi_path = os.path.join(os.path.dirname(__file__), "abi", f"{name}.json")
    try:
        with open(abi_path, "r") as f:
            return tuple(json.load(f))
    except (FileNotFoundError, json.JSONDecodeError) as e:
        raise AbiNotFoundError(f"Failed to load ABI '{name}': {e}") from e


def load_abi(name: str) -> List[Dict[str, Any]]:
    """
    Load a bundled ABI by name.

    Args:
        name: File stem under ``contracts/abi`` (e.g. 'AMM')

    Returns:
        Fresh list of ABI entries
    """
    return copy.deepcopy(list(_read_abi(name)))


def function_entries(abi: List[Dict[str, Any]]) -> Dict[str, Dict[str, Any]]:
    """Function ABI entries keyed by name."""
    return {entry["name"]: entry for entry in abi if entry.get("type") == "function"}


def event_entries(abi: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Event ABI entries in declaration order."""
    return [entry for entry in abi if entry.get("type") == "event"]
