"""Restrict a license workspace to the dependencies of one ecosystem."""

import copy
from typing import Dict, List, Mapping, Optional

from sca_results._ecosystems import EcosystemRegistry, classify_dependency, require_ecosystem
from sca_results._results import LicensesOutput, split_dependency_key
from sca_results.exceptions import UnknownWorkspaceError


def _filter_dep_map(
    dep_map: Dict[str, List[str]],
    ecosystem: str,
    registry: EcosystemRegistry,
    provenance: Optional[Mapping[str, str]],
) -> Dict[str, List[str]]:
    result: Dict[str, List[str]] = {}
    for license_id, keys in dep_map.items():
        kept = []
        for key in keys:
            name, version = split_dependency_key(key)
            if classify_dependency(registry, name, version, provenance=provenance) == ecosystem:
                kept.append(key)
        if kept:
            result[license_id] = kept
    return result


def filter_licenses_by_ecosystem(
    licenses: LicensesOutput,
    ecosystem: str,
    workspace: str,
    registry: EcosystemRegistry,
    provenance: Optional[Mapping[str, str]] = None,
) -> LicensesOutput:
    """
    Return a copy of ``licenses`` whose ``workspace`` only references ``ecosystem`` dependencies.

    Dependency keys are classified from ``provenance`` (an index built from the
    merged SBOM) when it knows the key, otherwise by name. License buckets left
    empty are dropped, and violations no remaining bucket references are removed.

    Raises:
        UnknownEcosystemError: ``ecosystem`` is not registered
        UnknownWorkspaceError: ``workspace`` is not in the output
    """
    require_ecosystem(registry, ecosystem)
    if workspace not in licenses.workspaces:
        raise UnknownWorkspaceError(workspace)

    result = copy.deepcopy(licenses)
    target = result.workspaces[workspace]
    target.licenses_dep_map = _filter_dep_map(target.licenses_dep_map, ecosystem, registry, provenance)
    target.non_spdx_licenses_dep_map = _filter_dep_map(
        target.non_spdx_licenses_dep_map, ecosystem, registry, provenance
    )
    remaining = set(target.licenses_dep_map) | set(target.non_spdx_licenses_dep_map)
    target.license_compliance_violations = [v for v in target.license_compliance_violations if v in remaining]
    return result
