"""SBOM reports: dependency listing, stats, workspaces, status and dependency details."""

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional

from sca_results._results import (
    AnalysisInfo,
    SbomOutput,
    SbomWorkspace,
    StatusReport,
    VulnerabilitiesOutput,
    record_flag,
    record_value,
    split_dependency_key,
)
from sca_results._vulnerabilities import CrossReference, severity_histogram
from sca_results.exceptions import DependencyNotFoundError, UnknownWorkspaceError
from sca_results.pagination import (
    PaginatedReport,
    matches_search,
    normalize_sort_direction,
    paginate,
    stable_sort,
)

DEFAULT_SORT_FIELD = "dev"

SORT_FIELDS = ("name", "version", "dev", "prod", "is_direct_count", "is_transitive_count", "ecosystem")


@dataclass
class SbomDependencyRow:
    """One row of the dependency listing."""

    name: str
    version: str
    dev: bool = False
    prod: bool = False
    is_direct_count: int = 0
    is_transitive_count: int = 0
    ecosystem: Optional[str] = None
    source_plugin: Optional[str] = None
    licenses: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class SbomStats:
    number_of_dependencies: int = 0
    number_of_direct_dependencies: int = 0
    number_of_transitive_dependencies: int = 0
    number_of_both_direct_transitive_dependencies: int = 0
    number_of_bundled_dependencies: int = 0
    number_of_optional_dependencies: int = 0
    number_of_dev_dependencies: int = 0
    number_of_non_dev_dependencies: int = 0
    ecosystems: Dict[str, int] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def _get_workspace(sbom: SbomOutput, workspace: str) -> SbomWorkspace:
    if workspace not in sbom.workspaces:
        raise UnknownWorkspaceError(workspace)
    return sbom.workspaces[workspace]


def _direct_count(workspace: SbomWorkspace, name: str, version: str) -> int:
    """Number of root lists (prod and dev) that name this dependency."""
    count = 0
    for roots in (workspace.start.dependencies, workspace.start.dev_dependencies):
        if any(r.get("name") == name and r.get("version", version) == version for r in roots or []):
            count += 1
    return count


def _as_list(value: Any) -> List[str]:
    if isinstance(value, list):
        return [str(v) for v in value]
    return [str(value)] if value else []


def list_dependency_rows(sbom: SbomOutput, workspace: str) -> List[SbomDependencyRow]:
    """All dependencies of a workspace that are used at dev or prod time, in map order."""
    ws = _get_workspace(sbom, workspace)
    rows = []
    for name, version, record in ws.iter_records():
        row = SbomDependencyRow(
            name=name,
            version=version,
            dev=record_flag(record, "Dev"),
            prod=record_flag(record, "Prod"),
            is_direct_count=_direct_count(ws, name, version),
            is_transitive_count=1 if record_flag(record, "Transitive") else 0,
            ecosystem=record.get("ecosystem"),
            source_plugin=record.get("source_plugin"),
            licenses=_as_list(record_value(record, "Licenses")),
        )
        if row.dev or row.prod:
            rows.append(row)
    return rows


def build_sbom_report(
    sbom: SbomOutput,
    workspace: str,
    search_key: Optional[str] = None,
    active_filters: Optional[List[str]] = None,
    page: Optional[int] = None,
    entries_per_page: Optional[int] = None,
    sort_by: Optional[str] = None,
    sort_direction: Optional[str] = None,
) -> PaginatedReport:
    """
    Build one page of the dependency listing.

    Args:
        sbom: (Merged) SBOM output
        workspace: Workspace to list
        search_key: Case-insensitive substring matched against name and version
        active_filters: Ecosystems to keep; empty keeps all
        page: Zero-based page
        entries_per_page: Page size
        sort_by: One of SORT_FIELDS; defaults to "dev"
        sort_direction: "ASC" or "DESC"; defaults to "DESC"

    Returns:
        PaginatedReport of SbomDependencyRow

    Raises:
        UnknownWorkspaceError: If the workspace is not in the SBOM
    """
    rows = list_dependency_rows(sbom, workspace)
    wanted = set(active_filters or [])

    filtered = [
        row
        for row in rows
        if matches_search(search_key, row.name, row.version) and (not wanted or row.ecosystem in wanted)
    ]

    field_name = sort_by if sort_by in SORT_FIELDS else DEFAULT_SORT_FIELD
    direction = normalize_sort_direction(sort_direction)
    if field_name in ("name", "version", "ecosystem"):
        ordered = stable_sort(filtered, lambda row: (getattr(row, field_name) or "").lower(), direction)
    else:
        ordered = stable_sort(filtered, lambda row: getattr(row, field_name), direction)

    return paginate(ordered, len(rows), page, entries_per_page)


def compute_sbom_stats(sbom: SbomOutput, workspace: str) -> SbomStats:
    """
    Count the dependencies of a workspace by kind.

    Only dependencies flagged dev or prod are counted. A dependency that is both
    direct and transitive counts in the "both" bucket only.
    """
    ws = _get_workspace(sbom, workspace)
    stats = SbomStats(
        number_of_non_dev_dependencies=len(ws.start.dependencies or []),
        number_of_dev_dependencies=len(ws.start.dev_dependencies or []),
    )
    for _name, _version, record in ws.iter_records():
        if not (record_flag(record, "Dev") or record_flag(record, "Prod")):
            continue
        direct = record_flag(record, "Direct")
        transitive = record_flag(record, "Transitive")
        if record_flag(record, "Bundled"):
            stats.number_of_bundled_dependencies += 1
        if record_flag(record, "Optional"):
            stats.number_of_optional_dependencies += 1
        if direct and transitive:
            stats.number_of_both_direct_transitive_dependencies += 1
        elif transitive:
            stats.number_of_transitive_dependencies += 1
        elif direct:
            stats.number_of_direct_dependencies += 1
        ecosystem = record.get("ecosystem")
        if ecosystem:
            stats.ecosystems[ecosystem] = stats.ecosystems.get(ecosystem, 0) + 1
        stats.number_of_dependencies += 1
    return stats


def list_workspaces(sbom: SbomOutput) -> Dict[str, Any]:
    return {"workspaces": list(sbom.workspaces.keys()), "package_manager": sbom.analysis_info.package_manager}


def build_status(analysis_info: AnalysisInfo) -> StatusReport:
    """Status envelope; errors are only reported when the plugin recorded private errors."""
    if analysis_info.private_errors:
        return StatusReport(
            public_errors=list(analysis_info.public_errors),
            private_errors=list(analysis_info.private_errors),
            stage_start=analysis_info.analysis_start_time,
            stage_end=analysis_info.analysis_end_time,
        )
    return StatusReport(stage_start=analysis_info.analysis_start_time, stage_end=analysis_info.analysis_end_time)


@dataclass
class DependencyDetails:
    name: str
    version: str
    ecosystem: Optional[str]
    source_plugin: Optional[str]
    dev: bool
    prod: bool
    direct: bool
    transitive: bool
    licenses: List[str]
    dependencies: Dict[str, str]
    package_manager: Optional[str]
    vulnerabilities: List[str] = field(default_factory=list)
    severity_dist: Dict[str, int] = field(default_factory=dict)
    provenance: List[Dict[str, str]] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def get_dependency_details(
    sbom: SbomOutput,
    workspace: str,
    dependency: str,
    vulnerabilities: Optional[VulnerabilitiesOutput] = None,
    package_manager: Optional[str] = None,
) -> DependencyDetails:
    """
    Describe one ``name@version`` dependency of a workspace.

    Args:
        sbom: (Merged) SBOM output
        workspace: Workspace holding the dependency
        dependency: Dependency key, split on its last "@"
        vulnerabilities: Vulnerability output to cross-reference, if available
        package_manager: Package manager to report; defaults to the SBOM's

    Raises:
        UnknownWorkspaceError: If the workspace is not in the SBOM
        DependencyNotFoundError: If the workspace has no such dependency
    """
    ws = _get_workspace(sbom, workspace)
    name, version = split_dependency_key(dependency)
    record = ws.get_record(name, version)
    if record is None:
        raise DependencyNotFoundError(f"Dependency {dependency} not found in workspace '{workspace}'")

    children = record_value(record, "Dependencies") or {}
    details = DependencyDetails(
        name=name,
        version=version,
        ecosystem=record.get("ecosystem"),
        source_plugin=record.get("source_plugin"),
        dev=record_flag(record, "Dev"),
        prod=record_flag(record, "Prod"),
        direct=record_flag(record, "Direct"),
        transitive=record_flag(record, "Transitive"),
        licenses=_as_list(record_value(record, "Licenses")),
        dependencies=dict(children) if isinstance(children, dict) else {},
        package_manager=package_manager or sbom.analysis_info.package_manager,
        provenance=list(record.get("provenance") or []),
    )

    if vulnerabilities is not None and workspace in vulnerabilities.workspaces:
        crossref: CrossReference = severity_histogram(vulnerabilities, workspace, name, version)
        details.vulnerabilities = crossref.vulnerability_ids
        details.severity_dist = crossref.histogram.to_dict()
    return details
