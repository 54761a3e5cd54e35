"""Compiled contract artifacts: discovery, ABI indexing and the registry"""

from .loader import load_artifacts
from .models import Artifact, ArtifactRegistry

__all__ = [
    "Artifact",
    "ArtifactRegistry",
    "load_artifacts",
]
