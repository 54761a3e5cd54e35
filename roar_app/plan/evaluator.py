"""
Plan evaluation into ordered per-chain steps.

The evaluator walks a chain's plan subtree depth-first in insertion order.
Every contract, call and transfer key found becomes one Step, and the position
of a step in that order is the nonce slot it will use, so declaration order is
execution order. Argument trees are evaluated into Values, resolving
references against the whole plan; references to contracts without a literal
address become DeployReferences and are resolved after address prediction.
"""

from typing import Any, Optional, Sequence

import structlog

from ..errors import (
    NullValueError,
    PlanStructureError,
    ReferenceCycleError,
    ReferenceResolutionError,
)
from .models import (
    CallEncodeRequest,
    CallStep,
    DeployEncodeRequest,
    DeployReference,
    DeployStep,
    Plan,
    PlanNode,
    Step,
    TransferStep,
    Value,
)
from .naming import (
    CALL_ARTIFACT,
    CALL_ENCODE,
    CALL_SIGNATURE,
    CALL_TARGET,
    CALL_VALUE,
    KeyKind,
    classify,
    is_address,
    is_contract_name,
    is_reference,
    resolve_call_name,
    resolve_reference,
    serialize_reference,
)
from .special import (
    SubpathGetter,
    as_args,
    as_artifact,
    as_call_target,
    as_encode_target,
    as_payable_value,
    as_signature,
    as_transfer_target,
)

logger = structlog.get_logger(__name__)

_MISSING = object()


class PlanEvaluator:
    """
    Evaluates plan nodes in the context of one chain.

    The whole plan is kept for absolute reference resolution; the chain key
    fills in self-relative references such as ``$.Token``.
    """

    def __init__(self, plan: Plan, chain_key: str):
        self.plan = plan
        self.chain_key = chain_key
        self._active_references: list[str] = []

    def make_subpath_getter(self, node: PlanNode, key: str) -> SubpathGetter:
        """Build a lazy lookup of the raw reference stored under ``node[key]``."""
        def get_subpath() -> Optional[list[str]]:
            if not isinstance(node, dict):
                return None

            subnode = node.get(key)
            if not is_reference(subnode):
                return None

            return resolve_reference(subnode, self.chain_key)

        return get_subpath

    def evaluate_reference(self, reference: str) -> Value:
        """
        Resolve a reference token into a Value.

        Contract-named targets yield their literal address when the plan holds
        one and a DeployReference otherwise; the referenced contract may be
        declared later or on another chain.
        """
        path = resolve_reference(reference, self.chain_key)

        node: PlanNode = self.plan
        node_name = "$"
        for index, name in enumerate(path):
            node = self._descend(node, name, reference, node_name)
            if node is _MISSING:
                if index == len(path) - 1 and is_contract_name(name):
                    return DeployReference(tuple(path))
                raise ReferenceResolutionError(
                    f'Failed to resolve "{name}" node of "{reference}" reference',
                    reference=reference
                )
            node_name = name

        name = path[-1]
        if is_contract_name(name):
            if is_address(node):
                return node  # type: ignore[no-any-return]
            return DeployReference(tuple(path))

        absolute = serialize_reference(path)
        if absolute in self._active_references:
            cycle = self._active_references[self._active_references.index(absolute):] + [absolute]
            raise ReferenceCycleError(
                f'Reference cycle detected: {" -> ".join(cycle)}',
                reference=reference,
                cycle=cycle
            )

        self._active_references.append(absolute)
        try:
            return self.evaluate_node(node, path)
        finally:
            self._active_references.pop()

    @staticmethod
    def _descend(node: PlanNode, name: str, reference: str, node_name: str) -> Any:
        if isinstance(node, dict):
            return node.get(name, _MISSING)

        if isinstance(node, list):
            try:
                index = int(name)
            except ValueError:
                raise ReferenceResolutionError(
                    f'Failed to resolve "{name}" node of "{reference}" reference: '
                    f'"{node_name}" is a sequence, index expected',
                    reference=reference
                ) from None
            if index < 0 or index >= len(node):
                return _MISSING
            return node[index]

        raise ReferenceResolutionError(
            f'Failed to resolve "{node_name}" node of "{reference}" reference',
            reference=reference
        )

    def evaluate_node(self, node: PlanNode, path: Sequence[str]) -> Value:
        """
        Evaluate a plan node into a Value.

        Args:
            node: Raw plan node
            path: Absolute path of the node, used in error messages and for
                sequence element paths

        Returns:
            Evaluated value: scalars become strings, references are resolved,
            mappings carrying the encode marker become encode requests
        """
        if node is None:
            raise NullValueError(
                f'Unexpected null value at "{serialize_reference(path)}"',
                reference=serialize_reference(path)
            )

        if isinstance(node, str):
            if is_reference(node):
                return self.evaluate_reference(node)
            return node

        # bool first: it is an int subclass
        if isinstance(node, bool):
            return "1" if node else "0"

        if isinstance(node, (int, float)):
            return str(node)

        if isinstance(node, list):
            return [
                self.evaluate_node(subnode, [*path, str(index)])
                for index, subnode in enumerate(node)
            ]

        if isinstance(node, dict):
            if CALL_ENCODE in node:
                return self._evaluate_encode(node, path)

            return {
                str(name): self.evaluate_node(subnode, [*path, str(name)])
                for name, subnode in node.items()
            }

        raise PlanStructureError(
            f'Unsupported value of type "{type(node).__name__}" at "{serialize_reference(path)}"',
            reference=serialize_reference(path)
        )

    def _evaluate_encode(self, node: dict[str, PlanNode], path: Sequence[str]) -> Value:
        # Drop the marker so evaluation does not recurse into it
        eval_node = {name: subnode for name, subnode in node.items() if name != CALL_ENCODE}
        get_subpath = self.make_subpath_getter(node, CALL_ENCODE)

        args = as_args(self.evaluate_node(eval_node, path), path)
        target = as_encode_target([*path, CALL_ENCODE], get_subpath)
        artifact = as_artifact(args.pop(CALL_ARTIFACT, None), [*path, CALL_ARTIFACT])

        if CALL_SIGNATURE in node:
            signature = as_signature(args.pop(CALL_SIGNATURE, None), [*path, CALL_SIGNATURE])
            return CallEncodeRequest(target=target, args=args, signature=signature, artifact=artifact)

        return DeployEncodeRequest(target=target, args=args, artifact=artifact)

    def evaluate_steps(self, chain_plan: PlanNode) -> list[Step]:
        """Walk the chain subtree and collect its steps in declaration order."""
        steps: list[Step] = []
        self._visit(chain_plan, [self.chain_key], steps)
        return steps

    def _visit(self, node: PlanNode, path: list[str], steps: list[Step]) -> None:
        if isinstance(node, dict):
            entries = [(str(name), subnode) for name, subnode in node.items()]
        elif isinstance(node, list):
            entries = [(str(index), subnode) for index, subnode in enumerate(node)]
        else:
            return

        for name, subnode in entries:
            subpath = [*path, name]
            kind = classify(name)

            if kind is KeyKind.CONTRACT:
                self._visit_contract(name, subnode, subpath, steps)
            elif kind is KeyKind.CALL:
                self._visit_call(resolve_call_name(name), subnode, subpath, steps)
            elif kind is KeyKind.TRANSFER:
                self._visit_transfer(subnode, subpath, steps)
            else:
                self._visit(subnode, subpath, steps)

    def _visit_contract(self, name: str, node: PlanNode, path: list[str], steps: list[Step]) -> None:
        # Existing contract: usable wherever referenced, nothing to deploy
        if is_address(node):
            return

        args = as_args(self.evaluate_node(node, path), path)
        value = as_payable_value(args.pop(CALL_VALUE, None), [*path, CALL_VALUE])
        artifact = as_artifact(args.pop(CALL_ARTIFACT, None), [*path, CALL_ARTIFACT])

        steps.append(DeployStep(
            name=name,
            path=tuple(path),
            args=args,
            value=value,
            artifact=artifact,
        ))

    def _visit_call(self, name: Optional[str], node: PlanNode, path: list[str], steps: list[Step]) -> None:
        get_subpath = self.make_subpath_getter(node, CALL_TARGET)

        args = as_args(self.evaluate_node(node, path), path)
        target = as_call_target(args.pop(CALL_TARGET, None), [*path, CALL_TARGET], get_subpath)
        value = as_payable_value(args.pop(CALL_VALUE, None), [*path, CALL_VALUE])
        signature = as_signature(args.pop(CALL_SIGNATURE, None), [*path, CALL_SIGNATURE])
        artifact = as_artifact(args.pop(CALL_ARTIFACT, None), [*path, CALL_ARTIFACT])

        steps.append(CallStep(
            name=name,
            target=target,
            args=args,
            value=value,
            signature=signature,
            artifact=artifact,
        ))

    def _visit_transfer(self, node: PlanNode, path: list[str], steps: list[Step]) -> None:
        args = as_args(self.evaluate_node(node, path), path)
        target = as_transfer_target(args.pop(CALL_TARGET, None), [*path, CALL_TARGET])
        value = as_payable_value(args.pop(CALL_VALUE, None), [*path, CALL_VALUE])

        if args:
            raise PlanStructureError(
                f'Unused arguments detected at "{serialize_reference(path)}": '
                f'transfer only accepts target and value, but {len(args)} extra arguments provided '
                f'({", ".join(sorted(args))})',
                reference=serialize_reference(path)
            )

        steps.append(TransferStep(target=target, value=value))


def resolve_chain_steps(plan: Plan, chain_plans: dict[str, PlanNode]) -> dict[str, list[Step]]:
    """
    Evaluate every chain's subtree into its ordered step list.

    Args:
        plan: Whole plan, for absolute references
        chain_plans: Chain key to chain subtree, in plan order

    Returns:
        Chain key to steps, preserving chain order
    """
    chain_steps: dict[str, list[Step]] = {}
    for chain_key, chain_plan in chain_plans.items():
        steps = PlanEvaluator(plan, chain_key).evaluate_steps(chain_plan)
        chain_steps[chain_key] = steps

        logger.info(
            "Chain steps evaluated",
            chain=chain_key,
            deploys=sum(1 for s in steps if s.type == "deploy"),
            calls=sum(1 for s in steps if s.type == "call"),
            transfers=sum(1 for s in steps if s.type == "transfer"),
        )
    return chain_steps
