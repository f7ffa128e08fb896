"""
Stored plugin results.

Typed payload models, the result store protocol with its implementations,
and the accessor that selects the authoritative row for an analysis.
"""

from .accessor import LICENSE_PLUGINS, PATCHING_PLUGINS, SBOM_PLUGINS, VULNERABILITY_PLUGINS, ResultAccessor
from .models import (
    AnalysisInfo,
    AnalysisResult,
    DependencyRecord,
    LicensesOutput,
    LicenseWorkspace,
    PatchingOutput,
    PatchWorkspace,
    PluginStatus,
    SbomOutput,
    SbomWorkspace,
    StartDependencies,
    StatusReport,
    VulnerabilitiesOutput,
    VulnerabilityRecord,
    VulnerabilityWorkspace,
    dependency_key,
    parse_licenses_output,
    parse_patching_output,
    parse_sbom_output,
    parse_vulnerabilities_output,
    record_flag,
    record_value,
    split_dependency_key,
)
from .protocol import ResultStore
from .store import InMemoryResultStore, JsonLinesResultStore

__all__ = [
    "AnalysisInfo",
    "AnalysisResult",
    "DependencyRecord",
    "InMemoryResultStore",
    "JsonLinesResultStore",
    "LICENSE_PLUGINS",
    "LicensesOutput",
    "LicenseWorkspace",
    "PATCHING_PLUGINS",
    "PatchingOutput",
    "PatchWorkspace",
    "PluginStatus",
    "ResultAccessor",
    "ResultStore",
    "SBOM_PLUGINS",
    "SbomOutput",
    "SbomWorkspace",
    "StartDependencies",
    "StatusReport",
    "VULNERABILITY_PLUGINS",
    "VulnerabilitiesOutput",
    "VulnerabilityRecord",
    "VulnerabilityWorkspace",
    "dependency_key",
    "parse_licenses_output",
    "parse_patching_output",
    "parse_sbom_output",
    "parse_vulnerabilities_output",
    "record_flag",
    "record_value",
    "split_dependency_key",
]
