"""
SBOM merging, ecosystem filtering and reports.
"""

from .filter import filter_sbom_by_ecosystem
from .merge import (
    MULTI_ECOSYSTEM_PACKAGE_MANAGER,
    MULTI_ECOSYSTEM_PROJECT_NAME,
    MergeAnomaly,
    MergeResult,
    PluginSbom,
    SbomMerger,
    SkippedPlugin,
    merge_sbom_outputs,
)
from .report import (
    DependencyDetails,
    SbomDependencyRow,
    SbomStats,
    build_sbom_report,
    build_status,
    compute_sbom_stats,
    get_dependency_details,
    list_dependency_rows,
    list_workspaces,
)

__all__ = [
    "DependencyDetails",
    "MULTI_ECOSYSTEM_PACKAGE_MANAGER",
    "MULTI_ECOSYSTEM_PROJECT_NAME",
    "MergeAnomaly",
    "MergeResult",
    "PluginSbom",
    "SbomDependencyRow",
    "SbomMerger",
    "SbomStats",
    "SkippedPlugin",
    "build_sbom_report",
    "build_status",
    "compute_sbom_stats",
    "filter_sbom_by_ecosystem",
    "get_dependency_details",
    "list_dependency_rows",
    "list_workspaces",
    "merge_sbom_outputs",
]
