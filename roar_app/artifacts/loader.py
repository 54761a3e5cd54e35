"""
Artifact discovery for Hardhat-style build output.

Artifacts live at ``<root>/<source path>.sol/<ContractName>.json``. Every
such file is loaded into the registry under its path relative to the root.
"""

import re
from pathlib import Path
from typing import Any, Union

import orjson
import structlog

from ..errors import ArtifactLoadError
from .models import Artifact, ArtifactRegistry

logger = structlog.get_logger(__name__)

HEX_PATTERN = re.compile(r"^0x([0-9a-fA-F]{2})*$")
LINK_PLACEHOLDER = "__$"


def discover_artifact_paths(root: Path) -> list[Path]:
    """List artifact files below the root, sorted for a stable registry order."""
    if not root.is_dir():
        raise ArtifactLoadError(f'Artifacts directory "{root}" does not exist', path=str(root))

    return sorted(
        path for path in root.rglob("*.json")
        if path.is_file()
        and path.parent.name.endswith(".sol")
        and not path.name.endswith(".dbg.json")
    )


def parse_artifact(relative_path: str, content: Any) -> Artifact:
    """
    Validate raw artifact JSON and build an Artifact.

    Args:
        relative_path: Registry key of the artifact
        content: Decoded JSON document

    Returns:
        Artifact with indexed ABI
    """
    if not isinstance(content, dict):
        raise ArtifactLoadError(f'Artifact at "{relative_path}" must be a JSON object', path=relative_path)

    name = Path(relative_path).stem
    if content.get("contractName") != name:
        raise ArtifactLoadError(
            f'Artifact at "{relative_path}" has mismatching "contractName" value ("{name}" expected)',
            path=relative_path
        )

    source = content.get("sourceName")
    if not isinstance(source, str):
        raise ArtifactLoadError(
            f'Artifact at "{relative_path}" has unexpected "sourceName" value type (string expected)',
            path=relative_path
        )

    bytecode = content.get("bytecode")
    if not isinstance(bytecode, str) or not HEX_PATTERN.match(bytecode):
        raise ArtifactLoadError(
            f'Artifact at "{relative_path}" has unexpected "bytecode" value type (hex string expected)',
            path=relative_path
        )

    abi = content.get("abi")
    if not isinstance(abi, list):
        raise ArtifactLoadError(
            f'Artifact at "{relative_path}" has unexpected "abi" value type (list expected)',
            path=relative_path
        )

    return Artifact.from_abi(
        path=relative_path,
        name=name,
        source=source,
        bytecode=bytecode,
        abi=abi,
    )


def load_artifacts(root: Union[str, Path]) -> ArtifactRegistry:
    """Discover and load every artifact below the root directory."""
    root = Path(root)
    registry = ArtifactRegistry()
    skipped = []

    for path in discover_artifact_paths(root):
        relative_path = path.relative_to(root).as_posix()
        try:
            content = orjson.loads(path.read_bytes())
        except orjson.JSONDecodeError as e:
            raise ArtifactLoadError(f'Artifact at "{relative_path}" is not valid JSON: {e}', path=relative_path) from e

        # Library-linked bytecode cannot be deployed as-is
        if isinstance(content, dict) and LINK_PLACEHOLDER in str(content.get("bytecode", "")):
            skipped.append(relative_path)
            continue

        registry.add(parse_artifact(relative_path, content))

    if skipped:
        logger.warning("Skipped artifacts with linked bytecode", artifacts=skipped)

    logger.info(
        "Artifacts loaded",
        root=str(root),
        artifacts=len(registry),
        names=len(registry.resolutions),
    )
    return registry
