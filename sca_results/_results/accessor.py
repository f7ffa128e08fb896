"""Result accessor: the only place stored plugin rows are selected and validated."""

from typing import Callable, Dict, Sequence, TypeVar, Union

from sca_results.exceptions import PluginExecutionFailedError, ResultNotAvailableError
from sca_results.logging_config import logger

from .models import (
    AnalysisResult,
    LicensesOutput,
    PatchingOutput,
    SbomOutput,
    VulnerabilitiesOutput,
    parse_licenses_output,
    parse_patching_output,
    parse_sbom_output,
    parse_vulnerabilities_output,
)
from .protocol import ResultStore

# Acceptable single-SBOM producers, any of which may answer a single-SBOM request
SBOM_PLUGINS = ("js-sbom", "php-sbom")

# Ordered fallbacks: the first candidate that has a row answers
LICENSE_PLUGINS = ("license-finder", "js-license")
VULNERABILITY_PLUGINS = ("vuln-finder", "js-vuln-finder")
PATCHING_PLUGINS = ("js-patching",)

T = TypeVar("T")
PluginSelector = Union[str, Sequence[str]]


def _as_plugin_list(plugins: PluginSelector) -> Sequence[str]:
    if isinstance(plugins, str):
        return (plugins,)
    return tuple(plugins)


class ResultAccessor:
    """
    Fetches the authoritative plugin output for an analysis.

    The most recently created row per plugin is authoritative. A row whose
    payload reports ``status: failure`` is never returned as data; it surfaces
    as PluginExecutionFailedError instead.

    Example:
        accessor = ResultAccessor(JsonLinesResultStore("results.jsonl"))
        payload = accessor.get_latest_result("a1", ["js-sbom", "php-sbom"])
        licenses = accessor.get_licenses_result("a1")
    """

    def __init__(self, store: ResultStore) -> None:
        self.store = store

    def get_latest_results(self, analysis_id: str, plugins: PluginSelector) -> Dict[str, AnalysisResult]:
        """
        Get the latest row per plugin, without status filtering.

        Args:
            analysis_id: Analysis to read
            plugins: Plugin name or names

        Returns:
            Mapping of plugin name to its latest row, in the order of ``plugins``;
            plugins with no row are absent
        """
        names = _as_plugin_list(plugins)
        latest: Dict[str, AnalysisResult] = {}
        for row in self.store.find(analysis_id, names):
            current = latest.get(row.plugin)
            if current is None or row.created_on > current.created_on:
                latest[row.plugin] = row
        return {name: latest[name] for name in names if name in latest}

    def get_latest_row(self, analysis_id: str, plugins: PluginSelector) -> AnalysisResult:
        """
        Get the most recent usable row across the acceptable plugins.

        Raises:
            ResultNotAvailableError: No row exists for any of the plugins
            PluginExecutionFailedError: Rows exist but every plugin's latest row failed
        """
        names = _as_plugin_list(plugins)
        latest = self.get_latest_results(analysis_id, names)
        if not latest:
            raise ResultNotAvailableError(f"No result from {', '.join(names)} for analysis {analysis_id}")

        usable = [row for row in latest.values() if not row.is_failed]
        for plugin, row in latest.items():
            if row.is_failed:
                logger.debug(f"Latest {plugin} result for analysis {analysis_id} reports failure")
        if not usable:
            raise PluginExecutionFailedError(f"Plugin {', '.join(latest)} failed for analysis {analysis_id}")

        # max() keeps the first of equal timestamps, i.e. the earlier plugin in ``plugins``
        return max(usable, key=lambda row: row.created_on)

    def get_latest_result(self, analysis_id: str, plugins: PluginSelector) -> dict:
        """Get the raw payload of :meth:`get_latest_row`."""
        return self.get_latest_row(analysis_id, plugins).result

    def get_first_available(self, analysis_id: str, candidates: Sequence[str]) -> AnalysisResult:
        """
        Try candidate plugins in order and return the first one that has a row.

        Only a missing row moves on to the next candidate. A candidate whose
        latest row failed is terminal.

        Raises:
            ResultNotAvailableError: None of the candidates has a row
            PluginExecutionFailedError: The first candidate with a row failed
        """
        for plugin in candidates:
            try:
                return self.get_latest_row(analysis_id, plugin)
            except ResultNotAvailableError:
                logger.debug(f"No {plugin} result for analysis {analysis_id}, trying next candidate")
        raise ResultNotAvailableError(f"No result from {', '.join(candidates)} for analysis {analysis_id}")

    def _parse(self, row: AnalysisResult, parser: Callable[[dict], T]) -> T:
        logger.debug(f"Using {row.plugin} result created {row.created_on.isoformat()} for {row.analysis_id}")
        return parser(row.result)

    def get_sbom_result(self, analysis_id: str, plugins: PluginSelector = SBOM_PLUGINS) -> SbomOutput:
        return self._parse(self.get_latest_row(analysis_id, plugins), parse_sbom_output)

    def get_licenses_result(self, analysis_id: str) -> LicensesOutput:
        return self._parse(self.get_first_available(analysis_id, LICENSE_PLUGINS), parse_licenses_output)

    def get_vulnerabilities_result(self, analysis_id: str) -> VulnerabilitiesOutput:
        return self._parse(self.get_first_available(analysis_id, VULNERABILITY_PLUGINS), parse_vulnerabilities_output)

    def get_patching_result(self, analysis_id: str) -> PatchingOutput:
        return self._parse(self.get_first_available(analysis_id, PATCHING_PLUGINS), parse_patching_output)
