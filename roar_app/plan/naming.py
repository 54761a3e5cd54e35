"""
Plan key classification and reference token handling.

Pure functions shared by the plan evaluator and the action resolver. A plan
key's first character decides what it declares: an upper-case letter marks a
contract deploy, the call prefix marks a function call, the transfer key marks
a plain value transfer, and anything else is a namespace.
"""

from enum import Enum
from typing import Any, Optional, Sequence

from eth_utils import is_address as _is_address

from ..errors import ReferenceResolutionError

CALL_PREFIX = "$"
CALL_TARGET = "$"
CALL_VALUE = "$val"
CALL_SIGNATURE = "$sig"
CALL_ARTIFACT = "$art"
CALL_ENCODE = "$encode"
CALL_TRANSFER = "$transfer"
CALL_FORCE_SUFFIX = "$"

# Sub-keys that look like calls but configure the enclosing declaration
CALL_IGNORES = frozenset({
    CALL_TARGET,
    CALL_VALUE,
    CALL_SIGNATURE,
    CALL_ARTIFACT,
    CALL_ENCODE,
    CALL_TRANSFER,
})

REFERENCE_PREFIX = "$"
REFERENCE_SEPARATOR = "."

INPUT_PREFIXES = ("_",)
INPUT_SUFFIXES = ("_",)

CHAIN_ID_KEY = "chainId"
DEPLOYER_KEY = "deployer"


class KeyKind(str, Enum):
    """What a plan key declares."""
    CONTRACT = "contract"
    CALL = "call"
    TRANSFER = "transfer"
    NAMESPACE = "namespace"


def is_contract_name(name: str) -> bool:
    """Check whether a key starts with an upper-case letter."""
    start = name[:1]
    # Two checks so digits and symbols are not upper-case
    return start == start.upper() and start != start.lower()


def is_call(name: str) -> bool:
    return name.startswith(CALL_PREFIX) and name not in CALL_IGNORES


def is_transfer(name: str) -> bool:
    return name == CALL_TRANSFER


def is_reference(value: Any) -> bool:
    return isinstance(value, str) and value.startswith(REFERENCE_PREFIX)


def is_address(value: Any) -> bool:
    """Check for a 20-byte hex address (checksum enforced on mixed case)."""
    return isinstance(value, str) and value.startswith("0x") and _is_address(value)


def classify(key: str) -> KeyKind:
    """Classify a plan key."""
    if is_contract_name(key):
        return KeyKind.CONTRACT
    if is_transfer(key):
        return KeyKind.TRANSFER
    if is_call(key):
        return KeyKind.CALL
    return KeyKind.NAMESPACE


def resolve_call_name(key: str) -> Optional[str]:
    """
    Extract the function name from a call key.

    The force suffix lets a call target functions whose names collide with
    reserved keys (``$transfer$`` calls ``transfer``). An empty name means an
    anonymous call that is resolved from its signature hint alone.
    """
    name = key[len(CALL_PREFIX):]
    if name.endswith(CALL_FORCE_SUFFIX):
        name = name[:-len(CALL_FORCE_SUFFIX)]
    return name or None


def resolve_reference(reference: str, chain_key: str) -> list[str]:
    """
    Resolve a reference token into an absolute plan path.

    Args:
        reference: Token such as ``$Chain.Token`` or self-relative ``$.Token``
        chain_key: Key of the chain the reference appears in

    Returns:
        Path segments from the plan root
    """
    if not is_reference(reference):
        raise ReferenceResolutionError(
            f'Invalid reference "{reference}": must start with "{REFERENCE_PREFIX}"',
            reference=reference
        )

    path = reference[len(REFERENCE_PREFIX):].split(REFERENCE_SEPARATOR)
    if not path[0]:
        path[0] = chain_key

    if not all(path):
        raise ReferenceResolutionError(
            f'Invalid reference "{reference}": empty path segment',
            reference=reference
        )

    return path


def serialize_reference(path: Sequence[str]) -> str:
    """Inverse of resolve_reference for absolute paths."""
    return REFERENCE_PREFIX + REFERENCE_SEPARATOR.join(path)


def resolve_input_name(name: Optional[str], index: int) -> str:
    """
    Map an ABI parameter name to the plan argument key it is matched against.

    Affixes such as the leading underscore of ``_owner`` are stripped
    repeatedly. Anonymous parameters are addressed by their position.
    """
    name = name or ""
    keep_resolving = True
    while keep_resolving:
        keep_resolving = False
        for prefix in INPUT_PREFIXES:
            if name.startswith(prefix):
                name = name[len(prefix):]
                keep_resolving = True
        for suffix in INPUT_SUFFIXES:
            if name.endswith(suffix):
                name = name[:-len(suffix)]
                keep_resolving = True

    if not name:
        return str(index)

    return name
