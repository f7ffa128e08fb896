"""
Typed views over stored plugin results.

Plugin outputs are stored as raw JSON. They are parsed into the dataclasses
below at the result accessor boundary so that the rest of the package never
handles untyped payloads. Every type keeps unknown keys in ``extra`` and
``to_dict()`` re-emits the original field names, so a payload survives a
parse/serialize cycle unchanged.
"""

import copy
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Tuple

from sca_results.exceptions import MalformedResultError

# Dependency records keep the plugin's own field names (Key, Dev, Prod, Direct, ...)
DependencyRecord = Dict[str, Any]


class PluginStatus(str, Enum):
    """Status a plugin reports in its own analysis_info block."""

    SUCCESS = "success"
    FAILURE = "failure"


def split_dependency_key(key: str) -> Tuple[str, str]:
    """
    Split a ``name@version`` key on its last ``@``.

    Scoped npm names keep their leading ``@``: ``@scope/pkg@1.0.0`` gives
    ``("@scope/pkg", "1.0.0")``. A key without a version gives an empty version.
    """
    index = key.rfind("@")
    if index <= 0:
        return key, ""
    return key[:index], key[index + 1 :]


def dependency_key(name: str, version: str) -> str:
    return f"{name}@{version}"


def record_flag(record: Mapping[str, Any], field_name: str) -> bool:
    """Read a boolean record field that plugins emit as either ``Dev`` or ``dev``."""
    if field_name in record:
        return bool(record[field_name])
    return bool(record.get(field_name.lower(), False))


def record_value(record: Mapping[str, Any], field_name: str, default: Any = None) -> Any:
    """Read a record field under its capitalized or lowercase spelling."""
    if field_name in record:
        return record[field_name]
    return record.get(field_name.lower(), default)


def _require_mapping(value: Any, what: str) -> Dict[str, Any]:
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise MalformedResultError(f"Expected an object for {what}, got {type(value).__name__}")
    return value


def _require_list(value: Any, what: str) -> List[Any]:
    if value is None:
        return []
    if not isinstance(value, list):
        raise MalformedResultError(f"Expected a list for {what}, got {type(value).__name__}")
    return value


@dataclass
class AnalysisResult:
    """
    One stored plugin execution.

    Attributes:
        analysis_id: Analysis the execution belongs to
        plugin: Plugin name (e.g., "js-sbom", "license-finder")
        created_on: Creation time; the latest row per plugin is authoritative
        result: Raw plugin payload
        id: Optional row identifier
        status: Optional row-level status; the payload's own status is what counts
    """

    analysis_id: str
    plugin: str
    created_on: datetime
    result: Dict[str, Any]
    id: Optional[str] = None
    status: Optional[str] = None

    @property
    def payload_status(self) -> Optional[str]:
        info = self.result.get("analysis_info") if isinstance(self.result, dict) else None
        if isinstance(info, dict):
            return info.get("status")
        return None

    @property
    def is_failed(self) -> bool:
        return self.payload_status == PluginStatus.FAILURE.value

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AnalysisResult":
        created_on = data.get("created_on")
        if isinstance(created_on, str):
            try:
                created_on = datetime.fromisoformat(created_on.replace("Z", "+00:00"))
            except ValueError:
                created_on = None
        if not isinstance(created_on, datetime):
            raise MalformedResultError(f"Result row for plugin {data.get('plugin')!r} has no valid created_on")
        if created_on.tzinfo is None:
            # Naive timestamps are stored in UTC
            created_on = created_on.replace(tzinfo=timezone.utc)
        return cls(
            analysis_id=str(data["analysis_id"]),
            plugin=str(data["plugin"]),
            created_on=created_on,
            result=_require_mapping(data.get("result"), "result"),
            id=data.get("id"),
            status=data.get("status"),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "analysis_id": self.analysis_id,
            "plugin": self.plugin,
            "created_on": self.created_on.isoformat(),
            "status": self.status,
            "result": self.result,
        }


@dataclass
class AnalysisInfo:
    """The ``analysis_info`` block every plugin output carries."""

    status: Optional[str] = None
    public_errors: List[Any] = field(default_factory=list)
    private_errors: List[Any] = field(default_factory=list)
    analysis_start_time: Optional[str] = None
    analysis_end_time: Optional[str] = None
    extra: Dict[str, Any] = field(default_factory=dict)

    _KNOWN = ("status", "public_errors", "private_errors", "analysis_start_time", "analysis_end_time")

    @property
    def project_name(self) -> Optional[str]:
        return self.extra.get("project_name")

    @property
    def package_manager(self) -> Optional[str]:
        return self.extra.get("package_manager")

    @classmethod
    def from_dict(cls, data: Any) -> "AnalysisInfo":
        data = _require_mapping(data, "analysis_info")
        return cls(
            status=data.get("status"),
            public_errors=list(_require_list(data.get("public_errors"), "public_errors")),
            private_errors=list(_require_list(data.get("private_errors"), "private_errors")),
            analysis_start_time=data.get("analysis_start_time"),
            analysis_end_time=data.get("analysis_end_time"),
            extra={k: copy.deepcopy(v) for k, v in data.items() if k not in cls._KNOWN},
        )

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {
            "status": self.status,
            "public_errors": list(self.public_errors),
            "private_errors": list(self.private_errors),
            "analysis_start_time": self.analysis_start_time,
            "analysis_end_time": self.analysis_end_time,
        }
        result.update(self.extra)
        return result


@dataclass
class StatusReport:
    """Status envelope returned for a plugin's stage."""

    public_errors: List[Any] = field(default_factory=list)
    private_errors: List[Any] = field(default_factory=list)
    stage_start: Optional[str] = None
    stage_end: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "public_errors": self.public_errors,
            "private_errors": self.private_errors,
            "stage_start": self.stage_start,
            "stage_end": self.stage_end,
        }


# =============================================================================
# SBOM output
# =============================================================================


@dataclass
class StartDependencies:
    """Root dependency lists of a workspace; None means the key was absent."""

    dependencies: Optional[List[Dict[str, Any]]] = None
    dev_dependencies: Optional[List[Dict[str, Any]]] = None
    extra: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Any) -> "StartDependencies":
        data = _require_mapping(data, "start")
        deps = data.get("dependencies")
        dev_deps = data.get("dev_dependencies")
        return cls(
            dependencies=list(_require_list(deps, "start.dependencies")) if deps is not None else None,
            dev_dependencies=list(_require_list(dev_deps, "start.dev_dependencies")) if dev_deps is not None else None,
            extra={k: v for k, v in data.items() if k not in ("dependencies", "dev_dependencies")},
        )

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {}
        if self.dependencies is not None:
            result["dependencies"] = self.dependencies
        if self.dev_dependencies is not None:
            result["dev_dependencies"] = self.dev_dependencies
        result.update(self.extra)
        return result


@dataclass
class SbomWorkspace:
    dependencies: Dict[str, Dict[str, DependencyRecord]] = field(default_factory=dict)
    start: StartDependencies = field(default_factory=StartDependencies)
    extra: Dict[str, Any] = field(default_factory=dict)

    def get_record(self, name: str, version: str) -> Optional[DependencyRecord]:
        return self.dependencies.get(name, {}).get(version)

    def iter_records(self):
        """Yield ``(name, version, record)`` in map order."""
        for name, versions in self.dependencies.items():
            for version, record in versions.items():
                yield name, version, record

    @classmethod
    def from_dict(cls, data: Any, workspace: str = "") -> "SbomWorkspace":
        data = _require_mapping(data, f"workspace {workspace!r}")
        dependencies: Dict[str, Dict[str, DependencyRecord]] = {}
        for name, versions in _require_mapping(data.get("dependencies"), "dependencies").items():
            dependencies[name] = {
                version: dict(_require_mapping(record, f"dependency {name}@{version}"))
                for version, record in _require_mapping(versions, f"dependency {name}").items()
            }
        return cls(
            dependencies=dependencies,
            start=StartDependencies.from_dict(data.get("start")),
            extra={k: v for k, v in data.items() if k not in ("dependencies", "start")},
        )

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {"dependencies": self.dependencies, "start": self.start.to_dict()}
        result.update(self.extra)
        return result


@dataclass
class SbomOutput:
    workspaces: Dict[str, SbomWorkspace] = field(default_factory=dict)
    analysis_info: AnalysisInfo = field(default_factory=AnalysisInfo)
    extra: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {
            "workspaces": {name: ws.to_dict() for name, ws in self.workspaces.items()},
            "analysis_info": self.analysis_info.to_dict(),
        }
        result.update(self.extra)
        return result


def parse_sbom_output(payload: Any) -> SbomOutput:
    """Parse a raw SBOM plugin payload; raises MalformedResultError on shape mismatch."""
    payload = _require_mapping(payload, "SBOM output")
    workspaces = _require_mapping(payload.get("workspaces"), "workspaces")
    return SbomOutput(
        workspaces={name: SbomWorkspace.from_dict(ws, name) for name, ws in workspaces.items()},
        analysis_info=AnalysisInfo.from_dict(payload.get("analysis_info")),
        extra={k: v for k, v in payload.items() if k not in ("workspaces", "analysis_info")},
    )


# =============================================================================
# License output
# =============================================================================


@dataclass
class LicenseWorkspace:
    licenses_dep_map: Dict[str, List[str]] = field(default_factory=dict)
    non_spdx_licenses_dep_map: Dict[str, List[str]] = field(default_factory=dict)
    license_compliance_violations: List[str] = field(default_factory=list)
    dependency_info: Dict[str, Any] = field(default_factory=dict)
    extra: Dict[str, Any] = field(default_factory=dict)

    _FIELDS = {
        "LicensesDepMap": "licenses_dep_map",
        "NonSpdxLicensesDepMap": "non_spdx_licenses_dep_map",
        "LicenseComplianceViolations": "license_compliance_violations",
        "DependencyInfo": "dependency_info",
    }

    @classmethod
    def from_dict(cls, data: Any, workspace: str = "") -> "LicenseWorkspace":
        data = _require_mapping(data, f"license workspace {workspace!r}")
        return cls(
            licenses_dep_map={
                k: list(_require_list(v, f"LicensesDepMap[{k}]"))
                for k, v in _require_mapping(data.get("LicensesDepMap"), "LicensesDepMap").items()
            },
            non_spdx_licenses_dep_map={
                k: list(_require_list(v, f"NonSpdxLicensesDepMap[{k}]"))
                for k, v in _require_mapping(data.get("NonSpdxLicensesDepMap"), "NonSpdxLicensesDepMap").items()
            },
            license_compliance_violations=list(
                _require_list(data.get("LicenseComplianceViolations"), "LicenseComplianceViolations")
            ),
            dependency_info=dict(_require_mapping(data.get("DependencyInfo"), "DependencyInfo")),
            extra={k: v for k, v in data.items() if k not in cls._FIELDS},
        )

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {
            "LicensesDepMap": self.licenses_dep_map,
            "NonSpdxLicensesDepMap": self.non_spdx_licenses_dep_map,
            "LicenseComplianceViolations": self.license_compliance_violations,
            "DependencyInfo": self.dependency_info,
        }
        result.update(self.extra)
        return result


@dataclass
class LicensesOutput:
    workspaces: Dict[str, LicenseWorkspace] = field(default_factory=dict)
    analysis_info: AnalysisInfo = field(default_factory=AnalysisInfo)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "workspaces": {name: ws.to_dict() for name, ws in self.workspaces.items()},
            "analysis_info": self.analysis_info.to_dict(),
        }


def parse_licenses_output(payload: Any) -> LicensesOutput:
    payload = _require_mapping(payload, "license output")
    workspaces = _require_mapping(payload.get("workspaces"), "workspaces")
    return LicensesOutput(
        workspaces={name: LicenseWorkspace.from_dict(ws, name) for name, ws in workspaces.items()},
        analysis_info=AnalysisInfo.from_dict(payload.get("analysis_info")),
    )


# =============================================================================
# Vulnerability output
# =============================================================================


@dataclass
class VulnerabilityRecord:
    vulnerability_id: str
    affected_dependency: str
    affected_version: str
    severity_class: Optional[str] = None
    severity_score: Optional[float] = None
    raw: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Any) -> "VulnerabilityRecord":
        data = _require_mapping(data, "vulnerability")
        severity = data.get("Severity")
        severity = severity if isinstance(severity, dict) else {}
        return cls(
            vulnerability_id=str(data.get("VulnerabilityId") or data.get("Id") or ""),
            affected_dependency=str(data.get("AffectedDependency") or ""),
            affected_version=str(data.get("AffectedVersion") or ""),
            severity_class=severity.get("SeverityClass"),
            severity_score=severity.get("Severity"),
            raw=data,
        )

    def to_dict(self) -> Dict[str, Any]:
        return self.raw or {
            "VulnerabilityId": self.vulnerability_id,
            "AffectedDependency": self.affected_dependency,
            "AffectedVersion": self.affected_version,
            "Severity": {"Severity": self.severity_score, "SeverityClass": self.severity_class},
        }


@dataclass
class VulnerabilityWorkspace:
    vulnerabilities: List[VulnerabilityRecord] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Any, workspace: str = "") -> "VulnerabilityWorkspace":
        data = _require_mapping(data, f"vulnerability workspace {workspace!r}")
        return cls(
            vulnerabilities=[
                VulnerabilityRecord.from_dict(v) for v in _require_list(data.get("Vulnerabilities"), "Vulnerabilities")
            ]
        )


@dataclass
class VulnerabilitiesOutput:
    workspaces: Dict[str, VulnerabilityWorkspace] = field(default_factory=dict)
    analysis_info: AnalysisInfo = field(default_factory=AnalysisInfo)


def parse_vulnerabilities_output(payload: Any) -> VulnerabilitiesOutput:
    payload = _require_mapping(payload, "vulnerability output")
    workspaces = _require_mapping(payload.get("workspaces"), "workspaces")
    return VulnerabilitiesOutput(
        workspaces={name: VulnerabilityWorkspace.from_dict(ws, name) for name, ws in workspaces.items()},
        analysis_info=AnalysisInfo.from_dict(payload.get("analysis_info")),
    )


# =============================================================================
# Patching output
# =============================================================================


@dataclass(frozen=True)
class PatchWorkspace:
    """Read-only view of a workspace's patch report (``patches`` and ``dev_patches`` keyed by vulnerability id)."""

    patches: Mapping[str, Mapping[str, Any]]
    dev_patches: Mapping[str, Mapping[str, Any]]

    @classmethod
    def from_dict(cls, data: Any, workspace: str = "") -> "PatchWorkspace":
        data = _require_mapping(data, f"patch workspace {workspace!r}")
        return cls(
            patches=MappingProxyType(copy.deepcopy(_require_mapping(data.get("patches"), "patches"))),
            dev_patches=MappingProxyType(copy.deepcopy(_require_mapping(data.get("dev_patches"), "dev_patches"))),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {"patches": dict(self.patches), "dev_patches": dict(self.dev_patches)}


@dataclass
class PatchingOutput:
    workspaces: Dict[str, PatchWorkspace] = field(default_factory=dict)
    analysis_info: AnalysisInfo = field(default_factory=AnalysisInfo)


def parse_patching_output(payload: Any) -> PatchingOutput:
    payload = _require_mapping(payload, "patching output")
    workspaces = _require_mapping(payload.get("workspaces"), "workspaces")
    return PatchingOutput(
        workspaces={name: PatchWorkspace.from_dict(ws, name) for name, ws in workspaces.items()},
        analysis_info=AnalysisInfo.from_dict(payload.get("analysis_info")),
    )
