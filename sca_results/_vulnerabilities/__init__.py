"""Vulnerability cross-referencing and listing."""

from .crossref import SEVERITY_CLASSES, CrossReference, SeverityHistogram, severity_histogram, workspace_histogram
from .filter import filter_vulnerabilities_by_ecosystem, list_vulnerabilities

__all__ = [
    "SEVERITY_CLASSES",
    "CrossReference",
    "SeverityHistogram",
    "filter_vulnerabilities_by_ecosystem",
    "list_vulnerabilities",
    "severity_histogram",
    "workspace_histogram",
]
