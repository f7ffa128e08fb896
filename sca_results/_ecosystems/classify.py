"""Dependency classification shared by the ecosystem filters."""

from typing import Any, Dict, Mapping, Optional

from sca_results._results import SbomOutput, dependency_key, record_value
from sca_results.exceptions import UnknownEcosystemError

from .registry import EcosystemRegistry

# dependency key ("name@version") -> ecosystem
ProvenanceIndex = Dict[str, str]


def require_ecosystem(registry: EcosystemRegistry, ecosystem: str) -> None:
    """Raise UnknownEcosystemError unless ``ecosystem`` is registered."""
    if not registry.is_valid_ecosystem(ecosystem):
        raise UnknownEcosystemError(ecosystem)


def build_provenance_index(sbom: Optional[SbomOutput], workspace: str) -> ProvenanceIndex:
    """
    Index the ecosystem stamps of a merged SBOM workspace by dependency key.

    Records whose origins disagree are left out so callers fall back to heuristics.
    """
    index: ProvenanceIndex = {}
    if sbom is None or workspace not in sbom.workspaces:
        return index
    for name, version, record in sbom.workspaces[workspace].iter_records():
        ecosystem = record.get("ecosystem")
        if ecosystem and not record.get("ecosystem_conflict"):
            index[dependency_key(name, version)] = ecosystem
    return index


def classify_dependency(
    registry: EcosystemRegistry,
    name: str,
    version: str = "",
    record: Optional[Mapping[str, Any]] = None,
    provenance: Optional[Mapping[str, str]] = None,
) -> Optional[str]:
    """
    Decide which ecosystem a dependency belongs to.

    Precedence: the record's own ecosystem stamp, the provenance index, the
    record's Package URL, the name heuristic, and finally the registry default.
    """
    if record is not None:
        stamped = record.get("ecosystem")
        if stamped and not record.get("ecosystem_conflict"):
            return stamped
    if provenance:
        known = provenance.get(dependency_key(name, version))
        if known:
            return known
    if record is not None:
        purl = record_value(record, "Purl") or record_value(record, "PURL")
        detected = registry.detect_ecosystem_from_purl(purl)
        if detected:
            return detected
    return registry.detect_ecosystem_from_name(name) or registry.default_ecosystem
