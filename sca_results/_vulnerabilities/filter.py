"""Vulnerability listing with optional ecosystem restriction."""

from typing import List, Mapping, Optional

from sca_results._ecosystems import EcosystemRegistry, classify_dependency, require_ecosystem
from sca_results._results import VulnerabilitiesOutput, VulnerabilityRecord
from sca_results.exceptions import UnknownWorkspaceError


def filter_vulnerabilities_by_ecosystem(
    records: List[VulnerabilityRecord],
    ecosystem: str,
    registry: EcosystemRegistry,
    provenance: Optional[Mapping[str, str]] = None,
) -> List[VulnerabilityRecord]:
    """
    Keep the findings whose affected dependency belongs to ``ecosystem``.

    Raises:
        UnknownEcosystemError: ``ecosystem`` is not registered
    """
    require_ecosystem(registry, ecosystem)
    return [
        r
        for r in records
        if classify_dependency(registry, r.affected_dependency, r.affected_version, provenance=provenance) == ecosystem
    ]


def list_vulnerabilities(
    vulnerabilities: VulnerabilitiesOutput,
    workspace: str,
    registry: EcosystemRegistry,
    ecosystem: Optional[str] = None,
    provenance: Optional[Mapping[str, str]] = None,
) -> List[VulnerabilityRecord]:
    """
    List the findings of a workspace, optionally restricted to one ecosystem.

    Raises:
        UnknownWorkspaceError: If the workspace is not in the output
        UnknownEcosystemError: If ``ecosystem`` is given and not registered
    """
    if workspace not in vulnerabilities.workspaces:
        raise UnknownWorkspaceError(workspace)
    records = list(vulnerabilities.workspaces[workspace].vulnerabilities)
    if ecosystem:
        records = filter_vulnerabilities_by_ecosystem(records, ecosystem, registry, provenance)
    return records
