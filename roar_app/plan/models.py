"""
Plan data models.

Immutable structures produced by the plan evaluator: argument values
(including deferred deploy references and encode requests) and the typed
steps found while walking a chain's plan subtree.
"""

from dataclasses import dataclass, field
from typing import Any, Optional, Union

PlanNode = Any  # str | int | float | bool | None | list[PlanNode] | dict[str, PlanNode]
Plan = dict[str, PlanNode]


@dataclass(frozen=True)
class DeployReference:
    """Pointer to a contract whose address is predicted, not written in the plan."""
    path: tuple[str, ...]


@dataclass(frozen=True)
class EncodeTarget:
    """Contract a nested encode request builds data for."""
    name: str


@dataclass(frozen=True)
class DeployEncodeRequest:
    """Deploy data (bytecode plus constructor arguments) used as a value."""
    target: EncodeTarget
    args: dict[str, "Value"]
    artifact: Optional[str] = None


@dataclass(frozen=True)
class CallEncodeRequest:
    """Call data of another contract's function used as a value."""
    target: EncodeTarget
    args: dict[str, "Value"]
    signature: Optional[str] = None
    artifact: Optional[str] = None


EncodeRequest = Union[DeployEncodeRequest, CallEncodeRequest]

Value = Union[
    str,
    DeployReference,
    DeployEncodeRequest,
    CallEncodeRequest,
    list["Value"],
    dict[str, "Value"],
]

Address = Union[str, DeployReference]


@dataclass(frozen=True)
class CallTarget:
    """Contract a call step is sent to."""
    name: str
    address: Address


@dataclass(frozen=True)
class TransferTarget:
    """Recipient of a plain value transfer."""
    address: Address


@dataclass(frozen=True)
class DeployStep:
    """Contract creation declared by an upper-case plan key."""
    name: str
    path: tuple[str, ...]
    args: dict[str, Value] = field(default_factory=dict)
    value: Optional[int] = None
    artifact: Optional[str] = None
    type: str = field(default="deploy", init=False)


@dataclass(frozen=True)
class CallStep:
    """Function call declared by a call-prefixed plan key."""
    name: Optional[str]
    target: CallTarget
    args: dict[str, Value] = field(default_factory=dict)
    value: Optional[int] = None
    signature: Optional[str] = None
    artifact: Optional[str] = None
    type: str = field(default="call", init=False)


@dataclass(frozen=True)
class TransferStep:
    """Plain value transfer declared by the transfer key."""
    target: TransferTarget
    value: Optional[int] = None
    type: str = field(default="transfer", init=False)


Step = Union[DeployStep, CallStep, TransferStep]
