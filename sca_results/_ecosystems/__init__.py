"""
Ecosystem registry.

Maps SBOM plugin names to the package ecosystem they cover and classifies
dependencies by package manager string, Package URL or name shape.
"""

from .classify import ProvenanceIndex, build_provenance_index, classify_dependency, require_ecosystem
from .registry import DEFAULT_ECOSYSTEMS, EcosystemInfo, EcosystemRegistry, create_default_registry

__all__ = [
    "DEFAULT_ECOSYSTEMS",
    "EcosystemInfo",
    "EcosystemRegistry",
    "ProvenanceIndex",
    "build_provenance_index",
    "classify_dependency",
    "create_default_registry",
    "require_ecosystem",
]
