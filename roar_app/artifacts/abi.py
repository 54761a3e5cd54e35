"""ABI signature and selector helpers."""

from typing import Any

from eth_utils import function_signature_to_4byte_selector
from eth_utils.abi import collapse_if_tuple


def function_signature(abi: dict[str, Any]) -> str:
    """Canonical signature of a function ABI entry, e.g. ``mint(address,uint256)``."""
    inputs = ",".join(collapse_if_tuple(param) for param in abi.get("inputs", []))
    return f"{abi['name']}({inputs})"


def function_selector(signature: str) -> str:
    """Hex 4-byte selector of a canonical signature."""
    return "0x" + function_signature_to_4byte_selector(signature).hex()


def input_types(inputs: list[dict[str, Any]]) -> list[str]:
    """ABI type strings of a parameter list, with tuples collapsed."""
    return [collapse_if_tuple(param) for param in inputs]
