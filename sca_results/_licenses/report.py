"""License report: one entry per license, with search, filters, sorting and pagination."""

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, List, Optional

from sca_results._ecosystems import EcosystemRegistry
from sca_results._results import LicensesOutput, LicenseWorkspace, SbomOutput, split_dependency_key
from sca_results._sbom import MULTI_ECOSYSTEM_PACKAGE_MANAGER
from sca_results.exceptions import UnknownWorkspaceError
from sca_results.pagination import (
    SORT_ASC,
    SORT_DESC,
    PaginatedReport,
    matches_search,
    normalize_sort_direction,
    paginate,
    stable_sort,
)

from .protocol import Degraded, LicenseProperties
from .resolver import LicenseResolver

UNAVAILABLE_DESCRIPTION = "License information not available"
UNKNOWN_CATEGORY = "Unknown"

SORT_BY_DEP_COUNT = "dep_count"
SORT_BY_LICENSE_ID = "license_id"
SORT_BY_TYPE = "type"
DEFAULT_SORT_FIELD = SORT_BY_DEP_COUNT

# Marketplace pages keyed by lowercase package manager
PACKAGE_MANAGER_URLS = {
    "npm": "https://www.npmjs.com/package/{name}/v/{version}",
    "yarn": "https://yarn.pm/{name}",
    "composer": "https://packagist.org/packages/{name}#{version}",
}

FILTER_COMPLIANCE_VIOLATION = "compliance_violation"
FILTER_UNRECOGNIZED = "unrecognized"
FILTER_PERMISSIVE = "permissive"
FILTER_COPY_LEFT = "copy_left"


@dataclass
class LicenseEntry:
    id: str
    name: str
    description: str = ""
    license_category: str = ""
    license_properties: Optional[LicenseProperties] = None
    references: List[str] = field(default_factory=list)
    deps_using_license: List[str] = field(default_factory=list)
    license_compliance_violation: bool = False
    unable_to_infer: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "license_category": self.license_category,
            "license_properties": self.license_properties.to_dict() if self.license_properties else None,
            "references": self.references,
            "deps_using_license": self.deps_using_license,
            "license_compliance_violation": self.license_compliance_violation,
            "unable_to_infer": self.unable_to_infer,
        }


# Category tokens accepted in active filters; they combine with AND
CATEGORY_FILTERS: Dict[str, Callable[[LicenseEntry], bool]] = {
    FILTER_COMPLIANCE_VIOLATION: lambda e: e.license_compliance_violation,
    FILTER_UNRECOGNIZED: lambda e: e.unable_to_infer,
    FILTER_PERMISSIVE: lambda e: e.license_category == FILTER_PERMISSIVE,
    FILTER_COPY_LEFT: lambda e: e.license_category == FILTER_COPY_LEFT,
}


@dataclass
class LicenseReport(PaginatedReport):
    """License report page with per-category counts of the filtered licenses."""

    category_counts: Dict[str, int] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        result = super().to_dict()
        result["category_counts"] = dict(self.category_counts)
        return result


def count_license_categories(entries: Iterable[LicenseEntry]) -> Dict[str, int]:
    """Count licenses per filter category; one license can fall in several."""
    counts = {category: 0 for category in CATEGORY_FILTERS}
    for entry in entries:
        for category, matches in CATEGORY_FILTERS.items():
            if matches(entry):
                counts[category] += 1
    return counts


def _dedupe(items: Iterable[str]) -> List[str]:
    return list(dict.fromkeys(items))


def build_license_entries(workspace: LicenseWorkspace, resolver: LicenseResolver) -> List[LicenseEntry]:
    """
    Build one entry per license of a workspace.

    SPDX licenses come first in map order and are enriched through ``resolver``.
    Licenses only in the non-SPDX map follow without enrichment. A license in
    both maps keeps its SPDX enrichment, is marked unable_to_infer and lists the
    dependencies of both maps.
    """
    violations = set(workspace.license_compliance_violations)
    non_spdx = workspace.non_spdx_licenses_dep_map
    entries: List[LicenseEntry] = []

    for license_id, deps in workspace.licenses_dep_map.items():
        entry = LicenseEntry(
            id=license_id,
            name=license_id,
            deps_using_license=_dedupe(list(deps) + list(non_spdx.get(license_id, []))),
            license_compliance_violation=license_id in violations,
            unable_to_infer=license_id in non_spdx,
        )
        lookup = resolver.resolve(license_id)
        if isinstance(lookup, Degraded):
            entry.description = UNAVAILABLE_DESCRIPTION
            entry.license_category = UNKNOWN_CATEGORY
        else:
            data = lookup.data
            entry.name = data.name or license_id
            entry.description = data.description
            entry.license_category = data.category
            entry.license_properties = data.properties
            entry.references = list(data.references)
        entries.append(entry)

    for license_id, deps in non_spdx.items():
        if license_id in workspace.licenses_dep_map:
            continue
        entries.append(
            LicenseEntry(
                id=license_id,
                name=license_id,
                deps_using_license=_dedupe(deps),
                license_compliance_violation=license_id in violations,
                unable_to_infer=True,
            )
        )
    return entries


def _sort_entries(entries: List[LicenseEntry], sort_by: Optional[str], sort_direction: Optional[str]):
    field_name = sort_by if sort_by in (SORT_BY_DEP_COUNT, SORT_BY_LICENSE_ID, SORT_BY_TYPE) else DEFAULT_SORT_FIELD
    default_direction = SORT_DESC if field_name == SORT_BY_DEP_COUNT else SORT_ASC
    direction = normalize_sort_direction(sort_direction, default_direction)

    if field_name == SORT_BY_LICENSE_ID:
        return stable_sort(entries, lambda e: (e.name.lower(), e.id.lower()), direction)
    if field_name == SORT_BY_TYPE:
        # DESC puts violations first, then licenses that could not be inferred
        return stable_sort(entries, lambda e: (e.license_compliance_violation, e.unable_to_infer), direction)
    return stable_sort(entries, lambda e: len(e.deps_using_license), direction)


def build_license_report(
    licenses: LicensesOutput,
    workspace: str,
    resolver: LicenseResolver,
    search_key: Optional[str] = None,
    active_filters: Optional[List[str]] = None,
    page: Optional[int] = None,
    entries_per_page: Optional[int] = None,
    sort_by: Optional[str] = None,
    sort_direction: Optional[str] = None,
) -> LicenseReport:
    """
    Build one page of the license report for a workspace.

    Args:
        licenses: License plugin output (optionally ecosystem-filtered)
        workspace: Workspace to report on
        resolver: Knowledge base resolver for display metadata
        search_key: Case-insensitive substring matched against license id and name
        active_filters: License ids to keep, and category tokens
            (compliance_violation, unrecognized, permissive, copy_left)
            every kept license must match; empty keeps every license
        page: Zero-based page
        entries_per_page: Page size, at most 100, default 20
        sort_by: "dep_count" (default, DESC), "license_id" or "type"
        sort_direction: "ASC" or "DESC"

    Returns:
        LicenseReport of LicenseEntry; ``total_entries`` counts every license of
        the workspace, ``filter_count`` those left after search and filters and
        ``category_counts`` the categories of those licenses

    Raises:
        UnknownWorkspaceError: If the workspace is not in the output
    """
    if workspace not in licenses.workspaces:
        raise UnknownWorkspaceError(workspace)

    entries = build_license_entries(licenses.workspaces[workspace], resolver)
    categories = [f for f in active_filters or [] if f in CATEGORY_FILTERS]
    wanted_ids = {f for f in active_filters or [] if f not in CATEGORY_FILTERS}
    filtered = [
        e
        for e in entries
        if matches_search(search_key, e.id, e.name)
        and (not wanted_ids or e.id in wanted_ids)
        and all(CATEGORY_FILTERS[c](e) for c in categories)
    ]
    ordered = _sort_entries(filtered, sort_by, sort_direction)
    page_report = paginate(ordered, len(entries), page, entries_per_page)
    return LicenseReport(**vars(page_report), category_counts=count_license_categories(filtered))


@dataclass
class DependencyShortInfo:
    name: str
    version: str
    package_manager: Optional[str] = None
    package_manager_link: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {"name": self.name, "version": self.version, "package_manager": self.package_manager}
        if self.package_manager_link:
            result["package_manager_link"] = self.package_manager_link
        return result


def package_manager_link(package_manager: Optional[str], name: str, version: str) -> Optional[str]:
    """Marketplace page of a dependency, for the package managers that have a known one."""
    if not package_manager:
        return None
    template = PACKAGE_MANAGER_URLS.get(package_manager.lower())
    return template.format(name=name, version=version) if template else None


def dependencies_using_license(
    licenses: LicensesOutput,
    workspace: str,
    license_id: str,
    sbom: Optional[SbomOutput] = None,
    registry: Optional[EcosystemRegistry] = None,
) -> Dict[str, DependencyShortInfo]:
    """
    List the dependencies of a workspace that use a license.

    The package manager is the SBOM's own. For a multi-ecosystem SBOM it is the
    default package manager of the dependency's ecosystem.

    Returns:
        Mapping of "name@version" to DependencyShortInfo; empty when no
        dependency uses the license

    Raises:
        UnknownWorkspaceError: If the workspace is not in the license output
    """
    if workspace not in licenses.workspaces:
        raise UnknownWorkspaceError(workspace)

    ws = licenses.workspaces[workspace]
    keys = _dedupe(
        list(ws.licenses_dep_map.get(license_id, [])) + list(ws.non_spdx_licenses_dep_map.get(license_id, []))
    )
    sbom_package_manager = sbom.analysis_info.package_manager if sbom is not None else None
    sbom_workspace = sbom.workspaces.get(workspace) if sbom is not None else None

    result: Dict[str, DependencyShortInfo] = {}
    for key in keys:
        name, version = split_dependency_key(key)
        package_manager = sbom_package_manager
        if package_manager == MULTI_ECOSYSTEM_PACKAGE_MANAGER:
            package_manager = None
            record = sbom_workspace.get_record(name, version) if sbom_workspace is not None else None
            info = registry.lookup_by_ecosystem(record.get("ecosystem")) if record and registry else None
            if info is not None:
                package_manager = info.default_package_manager
        result[key] = DependencyShortInfo(
            name=name,
            version=version,
            package_manager=package_manager,
            package_manager_link=package_manager_link(package_manager, name, version),
        )
    return result
