"""
Action data models.

An Action pairs a human-readable resolution (what is being done and with
which arguments) with the transaction that does it.
"""

from dataclasses import asdict, dataclass, field
from typing import Any, Optional, Union

DeployRegistry = dict[str, str]


@dataclass(frozen=True)
class ActionTransaction:
    """Unsigned transaction fields fixed at resolution time."""
    nonce: int
    to: Optional[str] = None
    data: Optional[str] = None
    value: Optional[int] = None


@dataclass(frozen=True)
class DeployResolution:
    name: str
    reference: str
    artifact: str
    arguments: str
    address: str
    type: str = field(default="deploy", init=False)


@dataclass(frozen=True)
class CallResolution:
    name: str
    artifact: str
    function: str
    selector: str
    arguments: str
    type: str = field(default="call", init=False)


@dataclass(frozen=True)
class TransferResolution:
    type: str = field(default="transfer", init=False)


Resolution = Union[DeployResolution, CallResolution, TransferResolution]


@dataclass(frozen=True)
class Action:
    """One transaction of a chain, in nonce order."""
    resolution: Resolution
    transaction: ActionTransaction

    @property
    def nonce(self) -> int:
        return self.transaction.nonce

    def to_dict(self) -> dict[str, Any]:
        """Plain mapping for export, with unset transaction fields dropped."""
        transaction = {k: v for k, v in asdict(self.transaction).items() if v is not None}
        if "value" in transaction:
            transaction["value"] = str(transaction["value"])

        return {
            "resolution": asdict(self.resolution),
            "transaction": transaction,
        }
