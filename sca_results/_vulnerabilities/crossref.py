"""Cross-reference dependencies against vulnerability findings."""

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional

from sca_results._results import VulnerabilitiesOutput, VulnerabilityRecord
from sca_results.exceptions import UnknownWorkspaceError
from sca_results.logging_config import logger

SEVERITY_CLASSES = ("critical", "high", "medium", "low", "none")


@dataclass
class SeverityHistogram:
    critical: int = 0
    high: int = 0
    medium: int = 0
    low: int = 0
    none: int = 0

    def add(self, severity_class: Optional[str]) -> bool:
        """Count one finding; unknown or missing classes are not counted. Returns whether it was counted."""
        bucket = severity_class.strip().lower() if isinstance(severity_class, str) else None
        if bucket not in SEVERITY_CLASSES:
            return False
        setattr(self, bucket, getattr(self, bucket) + 1)
        return True

    @property
    def total(self) -> int:
        return sum(getattr(self, bucket) for bucket in SEVERITY_CLASSES)

    def to_dict(self) -> Dict[str, int]:
        return {bucket: getattr(self, bucket) for bucket in SEVERITY_CLASSES}


@dataclass
class CrossReference:
    """Vulnerabilities affecting one exact dependency version."""

    vulnerability_ids: List[str] = field(default_factory=list)
    histogram: SeverityHistogram = field(default_factory=SeverityHistogram)

    def to_dict(self) -> Dict[str, Any]:
        return {"vulnerability_ids": self.vulnerability_ids, "histogram": self.histogram.to_dict()}


def _workspace_records(vulnerabilities: VulnerabilitiesOutput, workspace: str) -> List[VulnerabilityRecord]:
    if workspace not in vulnerabilities.workspaces:
        raise UnknownWorkspaceError(workspace)
    return vulnerabilities.workspaces[workspace].vulnerabilities


def _histogram(records: Iterable[VulnerabilityRecord]) -> CrossReference:
    result = CrossReference()
    for record in records:
        result.vulnerability_ids.append(record.vulnerability_id)
        if not result.histogram.add(record.severity_class):
            logger.debug(
                f"Ignoring unknown severity class {record.severity_class!r} of {record.vulnerability_id} in histogram"
            )
    return result


def severity_histogram(
    vulnerabilities: VulnerabilitiesOutput, workspace: str, name: str, version: str
) -> CrossReference:
    """
    Collect the vulnerabilities of one dependency version.

    Only records whose affected dependency and version both match exactly are
    counted; version ranges are resolved upstream.

    Args:
        vulnerabilities: Vulnerability plugin output
        workspace: Workspace to scan
        name: Dependency name
        version: Exact dependency version

    Returns:
        CrossReference with matching ids (in report order) and a severity histogram

    Raises:
        UnknownWorkspaceError: If the workspace is not in the output
    """
    return _histogram(
        r
        for r in _workspace_records(vulnerabilities, workspace)
        if r.affected_dependency == name and r.affected_version == version
    )


def workspace_histogram(vulnerabilities: VulnerabilitiesOutput, workspace: str) -> CrossReference:
    """Severity histogram of every finding in a workspace."""
    return _histogram(_workspace_records(vulnerabilities, workspace))
