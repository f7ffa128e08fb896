"""
Results aggregation facade.

ResultsService is the public entry point: it wires the result accessor, the
ecosystem registry and the license resolver together and exposes every report
as a method taking an analysis id. It holds no per-request state, so a single
instance can serve concurrent callers.

Example:
    service = ResultsService(ResultAccessor(JsonLinesResultStore("results.jsonl")))
    merged = service.merge_results("analysis-id")
    page = service.get_licenses("analysis-id", ".", ecosystem="npm", sort_by="license_id")
"""

from typing import Dict, List, Optional

from ._ecosystems import EcosystemRegistry, build_provenance_index, create_default_registry
from ._licenses import (
    DependencyShortInfo,
    LicenseReport,
    LicenseResolver,
    build_license_report,
    dependencies_using_license,
    filter_licenses_by_ecosystem,
)
from ._results import (
    PatchWorkspace,
    ResultAccessor,
    SbomOutput,
    StatusReport,
    VulnerabilitiesOutput,
    VulnerabilityRecord,
)
from ._sbom import (
    DependencyDetails,
    MergeResult,
    SbomMerger,
    SbomStats,
    build_sbom_report,
    build_status,
    compute_sbom_stats,
    filter_sbom_by_ecosystem,
    get_dependency_details,
    list_workspaces,
)
from ._vulnerabilities import CrossReference, list_vulnerabilities, severity_histogram, workspace_histogram
from .exceptions import PluginExecutionFailedError, ResultNotAvailableError, UnknownWorkspaceError
from .logging_config import logger
from .pagination import PaginatedReport

# Plugin kinds accepted by get_status
KIND_SBOM = "sbom"
KIND_LICENSES = "licenses"
KIND_VULNERABILITIES = "vulnerabilities"
KIND_PATCHING = "patching"
PLUGIN_KINDS = (KIND_SBOM, KIND_LICENSES, KIND_VULNERABILITIES, KIND_PATCHING)


class ResultsService:
    """Read-only reports over the stored results of an analysis."""

    def __init__(
        self,
        accessor: ResultAccessor,
        registry: Optional[EcosystemRegistry] = None,
        resolver: Optional[LicenseResolver] = None,
    ) -> None:
        self.accessor = accessor
        self.registry = registry or create_default_registry()
        self.resolver = resolver or LicenseResolver()
        self.merger = SbomMerger(accessor, self.registry)

    # ------------------------------------------------------------------ SBOM

    def merge_results(self, analysis_id: str) -> MergeResult:
        return self.merger.merge_results(analysis_id)

    def get_merged_sbom(
        self, analysis_id: str, ecosystem: Optional[str] = None, workspace: Optional[str] = None
    ) -> SbomOutput:
        """Merged SBOM, restricted to one ecosystem in ``workspace`` when ``ecosystem`` is given."""
        sbom = self.merge_results(analysis_id).merged_sbom
        if ecosystem:
            if workspace is None:
                raise ValueError("A workspace is required when filtering by ecosystem")
            sbom = filter_sbom_by_ecosystem(sbom, ecosystem, workspace, self.registry)
        return sbom

    def get_sbom(
        self,
        analysis_id: str,
        workspace: str,
        search_key: Optional[str] = None,
        active_filters: Optional[List[str]] = None,
        page: Optional[int] = None,
        entries_per_page: Optional[int] = None,
        sort_by: Optional[str] = None,
        sort_direction: Optional[str] = None,
        ecosystem: Optional[str] = None,
    ) -> PaginatedReport:
        sbom = self.get_merged_sbom(analysis_id, ecosystem, workspace)
        return build_sbom_report(
            sbom, workspace, search_key, active_filters, page, entries_per_page, sort_by, sort_direction
        )

    def get_sbom_stats(self, analysis_id: str, workspace: str, ecosystem: Optional[str] = None) -> SbomStats:
        return compute_sbom_stats(self.get_merged_sbom(analysis_id, ecosystem, workspace), workspace)

    def get_workspaces(self, analysis_id: str) -> Dict[str, object]:
        return list_workspaces(self.get_merged_sbom(analysis_id))

    def get_dependency(self, analysis_id: str, workspace: str, dependency: str) -> DependencyDetails:
        """
        Details of one ``name@version`` dependency, with its vulnerabilities when a
        vulnerability result is available.
        """
        sbom = self.get_merged_sbom(analysis_id)
        vulnerabilities: Optional[VulnerabilitiesOutput] = None
        try:
            vulnerabilities = self.accessor.get_vulnerabilities_result(analysis_id)
        except ResultNotAvailableError:
            logger.info(f"No vulnerability result for analysis {analysis_id}; dependency details without findings")
        return get_dependency_details(sbom, workspace, dependency, vulnerabilities)

    # -------------------------------------------------------------- Licenses

    def get_licenses(
        self,
        analysis_id: str,
        workspace: str,
        search_key: Optional[str] = None,
        active_filters: Optional[List[str]] = None,
        page: Optional[int] = None,
        entries_per_page: Optional[int] = None,
        sort_by: Optional[str] = None,
        sort_direction: Optional[str] = None,
        ecosystem: Optional[str] = None,
    ) -> LicenseReport:
        licenses = self.accessor.get_licenses_result(analysis_id)
        if ecosystem:
            provenance = build_provenance_index(self._merged_sbom_or_none(analysis_id), workspace)
            licenses = filter_licenses_by_ecosystem(licenses, ecosystem, workspace, self.registry, provenance)
        return build_license_report(
            licenses,
            workspace,
            self.resolver,
            search_key=search_key,
            active_filters=active_filters,
            page=page,
            entries_per_page=entries_per_page,
            sort_by=sort_by,
            sort_direction=sort_direction,
        )

    def get_dependencies_using_license(
        self, analysis_id: str, workspace: str, license_id: str
    ) -> Dict[str, DependencyShortInfo]:
        licenses = self.accessor.get_licenses_result(analysis_id)
        sbom = self.get_merged_sbom(analysis_id)
        return dependencies_using_license(licenses, workspace, license_id, sbom, self.registry)

    # ------------------------------------------------------- Vulnerabilities

    def get_severity_histogram(self, analysis_id: str, workspace: str, name: str, version: str) -> CrossReference:
        return severity_histogram(self.accessor.get_vulnerabilities_result(analysis_id), workspace, name, version)

    def get_workspace_histogram(self, analysis_id: str, workspace: str) -> CrossReference:
        return workspace_histogram(self.accessor.get_vulnerabilities_result(analysis_id), workspace)

    def get_vulnerabilities(
        self, analysis_id: str, workspace: str, ecosystem: Optional[str] = None
    ) -> List[VulnerabilityRecord]:
        vulnerabilities = self.accessor.get_vulnerabilities_result(analysis_id)
        provenance = None
        if ecosystem:
            provenance = build_provenance_index(self._merged_sbom_or_none(analysis_id), workspace)
        return list_vulnerabilities(vulnerabilities, workspace, self.registry, ecosystem, provenance)

    # -------------------------------------------------------------- Patching

    def get_patches(self, analysis_id: str, workspace: str) -> PatchWorkspace:
        patching = self.accessor.get_patching_result(analysis_id)
        if workspace not in patching.workspaces:
            raise UnknownWorkspaceError(workspace)
        return patching.workspaces[workspace]

    # ---------------------------------------------------------------- Status

    def get_status(self, analysis_id: str, kind: str = KIND_SBOM) -> StatusReport:
        """
        Status envelope of one plugin kind.

        Raises:
            ValueError: If ``kind`` is not one of PLUGIN_KINDS
        """
        if kind == KIND_SBOM:
            info = self.get_merged_sbom(analysis_id).analysis_info
        elif kind == KIND_LICENSES:
            info = self.accessor.get_licenses_result(analysis_id).analysis_info
        elif kind == KIND_VULNERABILITIES:
            info = self.accessor.get_vulnerabilities_result(analysis_id).analysis_info
        elif kind == KIND_PATCHING:
            info = self.accessor.get_patching_result(analysis_id).analysis_info
        else:
            raise ValueError(f"Unknown plugin kind: '{kind}'. Expected one of {', '.join(PLUGIN_KINDS)}")
        return build_status(info)

    def _merged_sbom_or_none(self, analysis_id: str) -> Optional[SbomOutput]:
        """Merged SBOM used as provenance for ecosystem filters; name heuristics apply without it."""
        try:
            return self.get_merged_sbom(analysis_id)
        except (ResultNotAvailableError, PluginExecutionFailedError) as e:
            logger.info(f"No merged SBOM for analysis {analysis_id} ({e}); classifying dependencies by name")
            return None
