"""
Coercion of reserved plan sub-keys.

Reserved sub-keys ($, $val, $sig, $art, $encode) are evaluated like any other
argument and then popped out of the argument mapping and checked here.
"""

from typing import Callable, Optional, Sequence

from ..errors import PlanStructureError
from .models import (
    Address,
    CallTarget,
    DeployReference,
    EncodeTarget,
    TransferTarget,
    Value,
)
from .naming import is_address, is_contract_name, serialize_reference

SubpathGetter = Callable[[], Optional[list[str]]]


def as_args(value: Value, path: Sequence[str]) -> dict[str, Value]:
    """Arguments of a declaration must evaluate to a mapping."""
    if not isinstance(value, dict):
        raise PlanStructureError(
            f'Invalid arguments evaluated at "{serialize_reference(path)}": mapping expected',
            reference=serialize_reference(path)
        )
    return dict(value)


def _as_target_address(value: Optional[Value], path: Sequence[str]) -> Address:
    if value is None:
        raise PlanStructureError(
            f'Invalid target evaluated at "{serialize_reference(path)}": non-empty expected',
            reference=serialize_reference(path)
        )

    if not is_address(value) and not isinstance(value, DeployReference):
        raise PlanStructureError(
            f'Invalid target evaluated at "{serialize_reference(path)}": '
            'contract address or reference expected',
            reference=serialize_reference(path)
        )

    return value  # type: ignore[return-value]


def _as_target_name(
    value: Optional[Value],
    path: Sequence[str],
    get_subpath: SubpathGetter,
) -> str:
    if isinstance(value, DeployReference):
        return value.path[-1]

    subpath = get_subpath()
    if subpath is None:
        raise PlanStructureError(
            f'Invalid target evaluated at "{serialize_reference(path)}": non-empty reference expected',
            reference=serialize_reference(path)
        )

    name = subpath[-1]
    if not is_contract_name(name):
        raise PlanStructureError(
            f'Invalid target evaluated at "{serialize_reference(path)}": '
            f'reference must end in contract name, which "{name}" is not',
            reference=serialize_reference(path)
        )

    return name


def as_call_target(
    value: Optional[Value],
    path: Sequence[str],
    get_subpath: SubpathGetter,
) -> CallTarget:
    address = _as_target_address(value, path)
    name = _as_target_name(value, path, get_subpath)
    return CallTarget(name=name, address=address)


def as_transfer_target(value: Optional[Value], path: Sequence[str]) -> TransferTarget:
    return TransferTarget(address=_as_target_address(value, path))


def as_encode_target(path: Sequence[str], get_subpath: SubpathGetter) -> EncodeTarget:
    """Encode requests only need the target's contract name, taken from the raw reference."""
    return EncodeTarget(name=_as_target_name(None, path, get_subpath))


def as_payable_value(value: Optional[Value], path: Sequence[str]) -> Optional[int]:
    """
    Convert an evaluated payable value into wei.

    Returns:
        Positive integer amount, or None when absent or zero
    """
    if value is None:
        return None

    if not isinstance(value, str):
        raise PlanStructureError(
            f'Invalid payable value evaluated at "{serialize_reference(path)}": number or string expected',
            reference=serialize_reference(path)
        )

    try:
        payable_value = parse_integer(value)
    except ValueError:
        raise PlanStructureError(
            f'Invalid payable value evaluated at "{serialize_reference(path)}": not convertible to integer',
            reference=serialize_reference(path)
        ) from None

    if payable_value < 0:
        raise PlanStructureError(
            f'Invalid payable value evaluated at "{serialize_reference(path)}": non-negative integer expected',
            reference=serialize_reference(path)
        )

    return payable_value if payable_value > 0 else None


def as_signature(value: Optional[Value], path: Sequence[str]) -> Optional[str]:
    if value is None:
        return None

    if not isinstance(value, str):
        raise PlanStructureError(
            f'Invalid function signature evaluated at "{serialize_reference(path)}": string expected',
            reference=serialize_reference(path)
        )

    return value


def as_artifact(value: Optional[Value], path: Sequence[str]) -> Optional[str]:
    if value is None:
        return None

    if not isinstance(value, str):
        raise PlanStructureError(
            f'Invalid artifact path evaluated at "{serialize_reference(path)}": string expected',
            reference=serialize_reference(path)
        )

    return value


def parse_integer(value: str) -> int:
    """Parse a decimal or 0x-prefixed hex integer string."""
    text = value.strip()
    sign = 1
    if text.startswith("-"):
        sign, text = -1, text[1:]
    if text[:2].lower() == "0x":
        return sign * int(text[2:], 16)
    return sign * int(text, 10)
