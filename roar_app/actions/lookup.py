"""
Artifact and function lookup with disambiguation hints.

A contract name usually maps to a single artifact and a function name to a
single overload. When it does not, the plan supplies a hint ($art for the
artifact path, $sig for the signature) that is matched against the candidates
in a few forgiving shapes.
"""

from typing import Any, Optional

from ..artifacts.models import Artifact, ArtifactRegistry
from ..errors import ArtifactResolutionError, FunctionResolutionError
from ..plan.naming import CALL_ARTIFACT, CALL_SIGNATURE


def _join(candidates: set[str]) -> str:
    return ", ".join(sorted(candidates))


def artifact_hint_patterns(name: str, hint: str) -> list[str]:
    """Artifact paths a hint may stand for, most specific first."""
    return [
        hint,
        f"{hint}/{name}.sol/{name}.json",
        f"{hint}.sol/{name}.json",
        f"{hint}/{name}.json",
        f"{hint}.json",
    ]


def signature_hint_patterns(name: str, hint: str) -> list[str]:
    """Signatures a hint may stand for: full, parameter list, bare types."""
    return [
        hint,
        name + hint,
        f"{name}({hint})",
    ]


def resolve_artifact(
    name: str,
    hint: Optional[str],
    registry: ArtifactRegistry,
    description: str,
) -> Artifact:
    """
    Find the artifact of a contract.

    Args:
        name: Contract name, or an artifact path key
        hint: Optional artifact path hint
        registry: Artifacts of the run
        description: Prefix for error messages naming the declaration

    Returns:
        The single matching artifact
    """
    artifact = registry.artifacts.get(name)
    if artifact is not None:
        return artifact

    paths = registry.resolutions.get(name)
    if not paths:
        raise ArtifactResolutionError(
            f'{description} missing artifact for "{name}"',
            name=name
        )

    if len(paths) == 1:
        return registry.artifacts[next(iter(paths))]

    if not hint:
        raise ArtifactResolutionError(
            f'{description} usage of "{name}" must specify artifact path field "{CALL_ARTIFACT}" '
            f'to resolve ambiguity among {len(paths)} path candidates ({_join(paths)})',
            name=name,
            candidates=sorted(paths)
        )

    for path in artifact_hint_patterns(name, hint):
        if path in paths:
            return registry.artifacts[path]

    raise ArtifactResolutionError(
        f'{description} usage of "{name}" specifies artifact path "{hint}" that could not be '
        f'matched with any of {len(paths)} path candidates ({_join(paths)})',
        name=name,
        candidates=sorted(paths)
    )


def _resolve_unique(
    name: str,
    target_name: str,
    artifact: Artifact,
    description: str,
) -> tuple[Optional[dict[str, Any]], set[str]]:
    func = artifact.functions.get(name)
    if func is not None:
        return func, set()

    signatures = artifact.resolutions.get(name)
    if not signatures:
        raise FunctionResolutionError(
            f'{description} targets function "{name}" missing in artifact "{target_name}"',
            name=name
        )

    if len(signatures) == 1:
        return artifact.functions[next(iter(signatures))], signatures

    return None, signatures


def resolve_function(
    name: Optional[str],
    target_name: str,
    hint: Optional[str],
    artifact: Artifact,
    description: str,
) -> dict[str, Any]:
    """
    Find the ABI entry a call targets.

    Named calls match an exact signature, then a unique overload, then the
    signature hint. Anonymous calls are resolved from the hint alone, which
    must be a full signature or a function name with a single overload.

    Returns:
        ABI entry of the function
    """
    if name is None:
        if not hint:
            raise FunctionResolutionError(
                f'{description} to anonymous function of artifact "{target_name}" must specify '
                f'signature field "{CALL_SIGNATURE}" containing function name or full signature '
                'to resolve the call'
            )

        func, signatures = _resolve_unique(hint, target_name, artifact, description)
        if func is not None:
            return func

        raise FunctionResolutionError(
            f'{description} to function "{hint}" of artifact "{target_name}" must specify full '
            f'signature in "{CALL_SIGNATURE}" field to resolve ambiguity among {len(signatures)} '
            f'overload candidates ({_join(signatures)})',
            name=hint,
            candidates=sorted(signatures)
        )

    func, signatures = _resolve_unique(name, target_name, artifact, description)
    if func is not None:
        return func

    if not hint:
        raise FunctionResolutionError(
            f'{description} to function "{name}" of artifact "{target_name}" must specify '
            f'signature field "{CALL_SIGNATURE}" to resolve ambiguity among {len(signatures)} '
            f'overload candidates ({_join(signatures)})',
            name=name,
            candidates=sorted(signatures)
        )

    for signature in signature_hint_patterns(name, hint):
        if signature in signatures:
            return artifact.functions[signature]

    raise FunctionResolutionError(
        f'{description} to function "{name}" of artifact "{target_name}" specifies signature '
        f'"{hint}" that could not be matched with any of {len(signatures)} overload candidates '
        f'({_join(signatures)})',
        name=name,
        candidates=sorted(signatures)
    )
