"""
SBOM merge engine.

Combines the SBOM outputs of every supported plugin for one analysis into a
single multi-ecosystem SBOM. Each merged dependency record is stamped with the
ecosystem and plugin it came from, so that later reports can be filtered by
ecosystem without guessing.
"""

import copy
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from sca_results._ecosystems import EcosystemRegistry
from sca_results._results import (
    AnalysisInfo,
    ResultAccessor,
    SbomOutput,
    SbomWorkspace,
    StartDependencies,
    parse_sbom_output,
)
from sca_results.exceptions import MalformedResultError, PluginExecutionFailedError, ResultNotAvailableError
from sca_results.logging_config import logger

MULTI_ECOSYSTEM_PROJECT_NAME = "Multi-language Project"
MULTI_ECOSYSTEM_PACKAGE_MANAGER = "multi-language"


@dataclass
class PluginSbom:
    """SBOM output of one plugin together with the ecosystem that plugin covers."""

    plugin: str
    ecosystem: str
    sbom: SbomOutput


@dataclass
class MergeAnomaly:
    """Two plugins reported the same dependency key under different ecosystems."""

    workspace: str
    name: str
    version: str
    ecosystems: List[str]
    plugins: List[str]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "workspace": self.workspace,
            "name": self.name,
            "version": self.version,
            "ecosystems": self.ecosystems,
            "plugins": self.plugins,
        }


@dataclass
class SkippedPlugin:
    plugin: str
    reason: str

    def to_dict(self) -> Dict[str, Any]:
        return {"plugin": self.plugin, "reason": self.reason}


@dataclass
class MergeResult:
    """
    Outcome of merging an analysis' SBOM outputs.

    Attributes:
        merged_sbom: The combined SBOM
        plugin_results: Per-plugin outputs that went into the merge, in merge order
        anomalies: Ecosystem disagreements found while merging
        skipped_plugins: Plugins whose output was left out and why
    """

    merged_sbom: SbomOutput
    plugin_results: List[PluginSbom] = field(default_factory=list)
    anomalies: List[MergeAnomaly] = field(default_factory=list)
    skipped_plugins: List[SkippedPlugin] = field(default_factory=list)

    @property
    def has_anomalies(self) -> bool:
        return bool(self.anomalies)

    @property
    def merged_plugins(self) -> List[str]:
        return [p.plugin for p in self.plugin_results]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "merged_sbom": self.merged_sbom.to_dict(),
            "merged_plugins": self.merged_plugins,
            "anomalies": [a.to_dict() for a in self.anomalies],
            "skipped_plugins": [s.to_dict() for s in self.skipped_plugins],
        }


def _origin(record: Dict[str, Any]) -> Dict[str, str]:
    return {"ecosystem": record["ecosystem"], "source_plugin": record["source_plugin"]}


def _merge_record(
    existing: Optional[Dict[str, Any]], incoming: Dict[str, Any], plugin: str, ecosystem: str
) -> Tuple[Dict[str, Any], Optional[List[Dict[str, str]]]]:
    """
    Merge one incoming record into the record already held for the same key.

    Returns the merged record and, when origins disagree on ecosystem, the list
    of origins so the caller can report it.
    """
    merged = copy.deepcopy(incoming)
    merged["ecosystem"] = ecosystem
    merged["source_plugin"] = plugin
    if existing is None:
        return merged, None

    origins = list(existing.get("provenance") or [_origin(existing)])
    new_origin = _origin(merged)
    if new_origin not in origins:
        origins.append(new_origin)

    if len(origins) > 1:
        merged["provenance"] = origins
    conflict = len({o["ecosystem"] for o in origins}) > 1
    if conflict:
        merged["ecosystem_conflict"] = True
    elif "ecosystem_conflict" in merged:
        del merged["ecosystem_conflict"]
    return merged, origins if conflict else None


def _merge_root_list(
    merged: Optional[List[Dict[str, Any]]], incoming: Optional[List[Dict[str, Any]]]
) -> Optional[List[Dict[str, Any]]]:
    """Concatenate root lists and de-duplicate on (name, version), first seen wins."""
    if incoming is None:
        return merged
    result = list(merged or [])
    seen = {(entry.get("name"), entry.get("version")) for entry in result}
    for entry in incoming:
        key = (entry.get("name"), entry.get("version"))
        if key not in seen:
            seen.add(key)
            result.append(copy.deepcopy(entry))
    return result


def _merge_analysis_info(outputs: List[PluginSbom]) -> AnalysisInfo:
    """
    Build the merged analysis_info block.

    A single contributing plugin keeps its block as-is; several plugins get an
    aggregate project name, package manager, error lists and time span.
    """
    if len({o.plugin for o in outputs}) == 1:
        return copy.deepcopy(outputs[0].sbom.analysis_info)

    infos = [o.sbom.analysis_info for o in outputs]
    merged = copy.deepcopy(infos[0])
    merged.public_errors = [e for info in infos for e in info.public_errors]
    merged.private_errors = [e for info in infos for e in info.private_errors]

    starts = [info.analysis_start_time for info in infos if info.analysis_start_time]
    ends = [info.analysis_end_time for info in infos if info.analysis_end_time]
    merged.analysis_start_time = min(starts) if starts else None
    merged.analysis_end_time = max(ends) if ends else None

    project_name = next((info.project_name for info in infos if info.project_name), None)
    merged.extra["project_name"] = project_name or MULTI_ECOSYSTEM_PROJECT_NAME
    merged.extra["package_manager"] = MULTI_ECOSYSTEM_PACKAGE_MANAGER
    return merged


def merge_sbom_outputs(outputs: List[PluginSbom]) -> Tuple[SbomOutput, List[MergeAnomaly]]:
    """
    Merge already-validated per-plugin SBOM outputs, in the given order.

    Args:
        outputs: Non-empty list of plugin outputs

    Returns:
        Tuple of (merged SBOM, ecosystem anomalies)

    Raises:
        PluginExecutionFailedError: If ``outputs`` is empty
    """
    if not outputs:
        raise PluginExecutionFailedError("No successful SBOM results to merge")

    workspaces: Dict[str, SbomWorkspace] = {}
    anomalies: Dict[Tuple[str, str, str], MergeAnomaly] = {}

    for output in outputs:
        for ws_name, workspace in output.sbom.workspaces.items():
            target = workspaces.setdefault(ws_name, SbomWorkspace())

            for name, version, record in workspace.iter_records():
                versions = target.dependencies.setdefault(name, {})
                merged, conflicting = _merge_record(versions.get(version), record, output.plugin, output.ecosystem)
                versions[version] = merged
                if conflicting:
                    anomalies[(ws_name, name, version)] = MergeAnomaly(
                        workspace=ws_name,
                        name=name,
                        version=version,
                        ecosystems=[o["ecosystem"] for o in conflicting],
                        plugins=[o["source_plugin"] for o in conflicting],
                    )

            target.start = StartDependencies(
                dependencies=_merge_root_list(target.start.dependencies, workspace.start.dependencies),
                dev_dependencies=_merge_root_list(target.start.dev_dependencies, workspace.start.dev_dependencies),
                extra={**workspace.start.extra, **target.start.extra},
            )
            for key, value in workspace.extra.items():
                target.extra.setdefault(key, copy.deepcopy(value))

    for anomaly in anomalies.values():
        logger.warning(
            f"Ecosystem conflict for {anomaly.name}@{anomaly.version} in workspace '{anomaly.workspace}': "
            f"{', '.join(f'{p}={e}' for p, e in zip(anomaly.plugins, anomaly.ecosystems))}"
        )

    merged = SbomOutput(workspaces=workspaces, analysis_info=_merge_analysis_info(outputs))
    return merged, list(anomalies.values())


class SbomMerger:
    """
    Merges the SBOM results of every registered plugin for an analysis.

    Example:
        merger = SbomMerger(accessor, create_default_registry())
        result = merger.merge_results("analysis-id")
        result.merged_sbom.workspaces["."].dependencies["lodash"]["4.17.21"]["ecosystem"]  # "npm"
    """

    def __init__(self, accessor: ResultAccessor, registry: EcosystemRegistry) -> None:
        self.accessor = accessor
        self.registry = registry

    def merge_results(self, analysis_id: str) -> MergeResult:
        """
        Fetch and merge all SBOM results of an analysis.

        Raises:
            ResultNotAvailableError: No SBOM plugin stored anything for the analysis
            PluginExecutionFailedError: Every stored SBOM result failed
        """
        plugins = self.registry.all_supported_plugins()
        rows = self.accessor.get_latest_results(analysis_id, plugins)
        if not rows:
            raise ResultNotAvailableError(f"No SBOM results for analysis {analysis_id}")

        outputs: List[PluginSbom] = []
        skipped: List[SkippedPlugin] = []
        for plugin, row in rows.items():
            info = self.registry.lookup_by_plugin(plugin)
            if info is None:
                logger.warning(f"Skipping result from unregistered plugin '{plugin}'")
                skipped.append(SkippedPlugin(plugin, "unregistered plugin"))
                continue
            if row.is_failed:
                logger.warning(f"Skipping failed {plugin} result for analysis {analysis_id}")
                skipped.append(SkippedPlugin(plugin, "plugin reported failure"))
                continue
            try:
                sbom = parse_sbom_output(row.result)
            except MalformedResultError as e:
                logger.warning(f"Skipping malformed {plugin} result for analysis {analysis_id}: {e}")
                skipped.append(SkippedPlugin(plugin, "malformed payload"))
                continue
            outputs.append(PluginSbom(plugin=plugin, ecosystem=info.ecosystem, sbom=sbom))

        if not outputs:
            raise PluginExecutionFailedError(f"All SBOM plugins failed for analysis {analysis_id}")

        merged, anomalies = merge_sbom_outputs(outputs)
        logger.info(
            f"Merged SBOM results of {', '.join(o.plugin for o in outputs)} for analysis {analysis_id} "
            f"({len(merged.workspaces)} workspace(s), {len(anomalies)} anomaly(ies))"
        )
        return MergeResult(merged_sbom=merged, plugin_results=outputs, anomalies=anomalies, skipped_plugins=skipped)
