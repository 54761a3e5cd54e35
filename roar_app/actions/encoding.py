"""
Transaction data encoding.

Evaluated plan values are plain strings, lists and mappings. Before ABI
encoding they are resolved (deploy references replaced by predicted
addresses, nested encode requests replaced by their data) and then coerced
against the ABI parameter they fill.
"""

import re
from dataclasses import dataclass
from typing import Any, Optional

import orjson
from eth_abi import encode as abi_encode
from eth_abi.exceptions import EncodingError
from eth_utils import decode_hex, is_hex, to_checksum_address

from ..artifacts.abi import function_selector, function_signature, input_types
from ..artifacts.models import ArtifactRegistry
from ..errors import ArgumentError, UnresolvedDeployError
from ..plan.models import CallEncodeRequest, DeployEncodeRequest, DeployReference, Value
from ..plan.naming import is_address, resolve_input_name, serialize_reference
from ..plan.special import parse_integer
from .lookup import resolve_artifact, resolve_function
from .models import DeployRegistry

ARRAY_TYPE_PATTERN = re.compile(r"^(?P<element>.+)\[(?P<length>\d*)\]$")

TRUE_VALUES = frozenset({"1", "true"})
FALSE_VALUES = frozenset({"0", "false"})


@dataclass(frozen=True)
class EncodeResult:
    """Encoded data together with what it was built from."""
    data: str
    args: list[Any]
    artifact: str
    signature: Optional[str] = None
    selector: Optional[str] = None


def coerce_value(value: Any, abi_type: str, components: list[dict[str, Any]], description: str) -> Any:
    """
    Convert a resolved plan value into the Python value eth_abi expects.

    Args:
        value: Resolved value (string, list or mapping)
        abi_type: ABI type string of the parameter, e.g. ``uint256[2]``
        components: Tuple components of the parameter, if any
        description: Prefix for error messages

    Returns:
        int, bool, checksummed address, bytes, str, list or tuple
    """
    array_match = ARRAY_TYPE_PATTERN.match(abi_type)
    if array_match:
        if not isinstance(value, list):
            raise ArgumentError(f'{description} expects a sequence for "{abi_type}"', argument=description)

        length = array_match.group("length")
        if length and len(value) != int(length):
            raise ArgumentError(
                f'{description} expects {length} elements for "{abi_type}", got {len(value)}',
                argument=description
            )

        element_type = array_match.group("element")
        return [
            coerce_value(element, element_type, components, f"{description}[{index}]")
            for index, element in enumerate(value)
        ]

    if abi_type == "tuple":
        return _coerce_tuple(value, components, description)

    if not isinstance(value, str):
        raise ArgumentError(f'{description} expects a scalar for "{abi_type}"', argument=description)

    if abi_type.startswith(("uint", "int")):
        try:
            return parse_integer(value)
        except ValueError:
            raise ArgumentError(
                f'{description} value "{value}" is not convertible to "{abi_type}"',
                argument=description
            ) from None

    if abi_type == "bool":
        lowered = value.lower()
        if lowered in TRUE_VALUES:
            return True
        if lowered in FALSE_VALUES:
            return False
        raise ArgumentError(f'{description} value "{value}" is not a boolean', argument=description)

    if abi_type == "address":
        if not is_address(value):
            raise ArgumentError(f'{description} value "{value}" is not an address', argument=description)
        return to_checksum_address(value)

    if abi_type.startswith("bytes"):
        if not value.startswith("0x") or not is_hex(value):
            raise ArgumentError(f'{description} value "{value}" is not hex data', argument=description)
        return decode_hex(value)

    return value


def _coerce_tuple(value: Any, components: list[dict[str, Any]], description: str) -> tuple:
    if isinstance(value, list):
        if len(value) != len(components):
            raise ArgumentError(
                f'{description} expects {len(components)} tuple fields, got {len(value)}',
                argument=description
            )
        return tuple(
            coerce_value(element, component["type"], component.get("components", []), f"{description}[{index}]")
            for index, (element, component) in enumerate(zip(value, components))
        )

    if not isinstance(value, dict):
        raise ArgumentError(f'{description} expects a mapping or sequence for tuple', argument=description)

    names = [resolve_input_name(component.get("name"), index) for index, component in enumerate(components)]
    missing = [name for name in names if name not in value]
    if missing:
        raise ArgumentError(
            f'{description} tuple is missing fields ({", ".join(missing)})',
            argument=description
        )

    unused = sorted(set(value) - set(names))
    if unused:
        raise ArgumentError(
            f'{description} tuple has unused fields ({", ".join(unused)})',
            argument=description
        )

    return tuple(
        coerce_value(value[name], component["type"], component.get("components", []), f"{description}.{name}")
        for name, component in zip(names, components)
    )


def _jsonable(value: Any) -> Any:
    # orjson rejects integers wider than 64 bits
    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        return str(value)
    if isinstance(value, bytes):
        return "0x" + value.hex()
    if isinstance(value, (list, tuple)):
        return [_jsonable(element) for element in value]
    if isinstance(value, dict):
        return {key: _jsonable(element) for key, element in value.items()}
    return value


def render_arguments(args: list[Any]) -> str:
    """Compact JSON rendering of encoded arguments for logs and exports."""
    return orjson.dumps(_jsonable(args)).decode()


class ActionEncoder:
    """
    Encodes deploy and call data against one run's registries.

    Args:
        artifacts: Registry of loaded artifacts
        deploys: Reference token to predicted address, filled by deploy prediction
    """

    def __init__(self, artifacts: ArtifactRegistry, deploys: DeployRegistry):
        self.artifacts = artifacts
        self.deploys = deploys

    def resolve_value(self, value: Value, description: str) -> Any:
        """Replace deploy references and encode requests inside a value."""
        if isinstance(value, DeployReference):
            reference = serialize_reference(value.path)
            address = self.deploys.get(reference)
            if address is None:
                raise UnresolvedDeployError(
                    f'{description} failed to resolve deploy contract reference "{reference}"',
                    reference=reference
                )
            return address

        if isinstance(value, DeployEncodeRequest):
            return self.encode_deploy(
                name=value.target.name,
                args=value.args,
                artifact_hint=value.artifact,
                description=description,
            ).data

        if isinstance(value, CallEncodeRequest):
            return self.encode_call(
                name=None,
                target_name=value.target.name,
                args=value.args,
                signature_hint=value.signature,
                artifact_hint=value.artifact,
                description=description,
            ).data

        if isinstance(value, list):
            return [self.resolve_value(element, description) for element in value]

        if isinstance(value, dict):
            return {name: self.resolve_value(element, description) for name, element in value.items()}

        return value

    def resolve_arguments(
        self,
        args: dict[str, Value],
        inputs: list[dict[str, Any]],
        description: str,
    ) -> list[Any]:
        """
        Match plan arguments to ABI inputs by logical name and coerce them.

        Every input must be provided and every provided argument must be
        consumed by an input.
        """
        values = []
        consumed = set()
        for index, param in enumerate(inputs):
            name = resolve_input_name(param.get("name"), index)
            if name not in args:
                raise ArgumentError(
                    f'{description} does not provide argument "{name}" required by ABI inputs',
                    argument=name
                )

            consumed.add(name)
            value = self.resolve_value(args[name], description)
            values.append(coerce_value(
                value,
                param["type"],
                param.get("components", []),
                f'{description} argument "{name}"',
            ))

        unused = sorted(set(args) - consumed)
        if unused:
            raise ArgumentError(
                f'{description} detected unused arguments: ABI specifies {len(inputs)} inputs, '
                f'but {len(args)} arguments provided ({", ".join(unused)} not consumed)',
                argument=unused[0]
            )

        return values

    def _encode_args(self, inputs: list[dict[str, Any]], values: list[Any], description: str) -> str:
        try:
            return abi_encode(input_types(inputs), values).hex()
        except EncodingError as e:
            raise ArgumentError(f"{description} arguments failed to encode: {e}") from e

    def encode_deploy(
        self,
        name: str,
        args: dict[str, Value],
        artifact_hint: Optional[str],
        description: str,
    ) -> EncodeResult:
        """Build creation data: bytecode followed by encoded constructor arguments."""
        artifact = resolve_artifact(name, artifact_hint, self.artifacts, description)

        inputs = artifact.constructor.get("inputs", []) if artifact.constructor else []
        values = self.resolve_arguments(args, inputs, description)

        return EncodeResult(
            data=artifact.bytecode + self._encode_args(inputs, values, description),
            args=values,
            artifact=artifact.path,
        )

    def encode_call(
        self,
        name: Optional[str],
        target_name: str,
        args: dict[str, Value],
        signature_hint: Optional[str],
        artifact_hint: Optional[str],
        description: str,
    ) -> EncodeResult:
        """Build call data: function selector followed by encoded arguments."""
        artifact = resolve_artifact(target_name, artifact_hint, self.artifacts, description)
        func = resolve_function(name, target_name, signature_hint, artifact, description)

        inputs = func.get("inputs", [])
        values = self.resolve_arguments(args, inputs, description)

        signature = function_signature(func)
        selector = function_selector(signature)

        return EncodeResult(
            data=selector + self._encode_args(inputs, values, description),
            args=values,
            artifact=artifact.path,
            signature=signature,
            selector=selector,
        )
