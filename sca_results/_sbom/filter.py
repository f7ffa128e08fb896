"""Restrict an SBOM workspace to the dependencies of one ecosystem."""

import copy
from typing import Dict, List, Optional

from sca_results._ecosystems import EcosystemRegistry, classify_dependency, require_ecosystem
from sca_results._results import DependencyRecord, SbomOutput, SbomWorkspace, StartDependencies
from sca_results.exceptions import UnknownWorkspaceError


def _filter_root_list(
    entries: Optional[List[dict]], workspace: SbomWorkspace, ecosystem: str, registry: EcosystemRegistry
) -> Optional[List[dict]]:
    if entries is None:
        return None
    kept = []
    for entry in entries:
        name = entry.get("name", "")
        version = entry.get("version", "")
        record = workspace.get_record(name, version)
        if classify_dependency(registry, name, version, record=record) == ecosystem:
            kept.append(entry)
    return kept


def filter_sbom_by_ecosystem(
    sbom: SbomOutput, ecosystem: str, workspace: str, registry: EcosystemRegistry
) -> SbomOutput:
    """
    Return a copy of ``sbom`` whose ``workspace`` only holds ``ecosystem`` dependencies.

    Name entries left without any version are dropped. Root lists are filtered
    the same way; other workspaces are copied unchanged. Filtering an already
    filtered SBOM with the same arguments is a no-op.

    Raises:
        UnknownEcosystemError: ``ecosystem`` is not registered
        UnknownWorkspaceError: ``workspace`` is not in the SBOM
    """
    require_ecosystem(registry, ecosystem)
    if workspace not in sbom.workspaces:
        raise UnknownWorkspaceError(workspace)

    result = copy.deepcopy(sbom)
    source = sbom.workspaces[workspace]
    target = result.workspaces[workspace]

    dependencies: Dict[str, Dict[str, DependencyRecord]] = {}
    for name, version, record in source.iter_records():
        if classify_dependency(registry, name, version, record=record) == ecosystem:
            dependencies.setdefault(name, {})[version] = copy.deepcopy(record)
    target.dependencies = dependencies

    target.start = StartDependencies(
        dependencies=_filter_root_list(source.start.dependencies, source, ecosystem, registry),
        dev_dependencies=_filter_root_list(source.start.dev_dependencies, source, ecosystem, registry),
        extra=copy.deepcopy(source.start.extra),
    )
    return result
