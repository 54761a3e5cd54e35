"""
Compiled contract artifact models.

An artifact holds the creation bytecode and ABI of one contract. The registry
indexes artifacts by path and lists, for every contract name, the paths of
all artifacts carrying that name so ambiguous names can be detected.
"""

from dataclasses import dataclass, field
from typing import Any, Optional

from ..errors import ArtifactLoadError
from .abi import function_signature


@dataclass
class Artifact:
    """Compiled contract with its functions indexed by canonical signature."""
    path: str
    name: str
    source: str
    bytecode: str
    constructor: Optional[dict[str, Any]] = None
    functions: dict[str, dict[str, Any]] = field(default_factory=dict)
    resolutions: dict[str, set[str]] = field(default_factory=dict)

    @classmethod
    def from_abi(
        cls,
        path: str,
        name: str,
        source: str,
        bytecode: str,
        abi: list[dict[str, Any]],
    ) -> "Artifact":
        """Build an artifact, indexing constructor and functions of its ABI."""
        artifact = cls(path=path, name=name, source=source, bytecode=bytecode)

        for entry in abi:
            entry_type = entry.get("type", "function")
            if entry_type == "constructor":
                artifact.constructor = entry
            elif entry_type == "function":
                signature = function_signature(entry)
                if signature in artifact.functions:
                    raise ArtifactLoadError(
                        f'Artifact at "{path}" has function "{signature}" duplicate in "abi"',
                        path=path
                    )
                artifact.functions[signature] = entry
                artifact.resolutions.setdefault(entry["name"], set()).add(signature)

        return artifact


@dataclass
class ArtifactRegistry:
    """All artifacts of a run, by path and by contract name."""
    artifacts: dict[str, Artifact] = field(default_factory=dict)
    resolutions: dict[str, set[str]] = field(default_factory=dict)

    def add(self, artifact: Artifact) -> None:
        if artifact.path in self.artifacts:
            raise ArtifactLoadError(
                f'Artifact path "{artifact.path}" duplicate',
                path=artifact.path
            )

        self.artifacts[artifact.path] = artifact
        self.resolutions.setdefault(artifact.name, set()).add(artifact.path)

    def __len__(self) -> int:
        return len(self.artifacts)
