"""
License reconciliation.

Builds per-license report entries from a license plugin's output, enriching
SPDX licenses through pluggable knowledge sources and degrading to placeholder
metadata when a lookup fails.
"""

from .filter import filter_licenses_by_ecosystem
from .protocol import Degraded, LicenseData, LicenseKnowledgeBase, LicenseLookup, LicenseProperties, Resolved
from .report import (
    UNAVAILABLE_DESCRIPTION,
    UNKNOWN_CATEGORY,
    DependencyShortInfo,
    LicenseEntry,
    LicenseReport,
    build_license_entries,
    build_license_report,
    count_license_categories,
    dependencies_using_license,
    package_manager_link,
)
from .resolver import LicenseResolver
from .sources import JsonFileLicenseSource, SpdxLicenseListSource, canonical_spdx_id

__all__ = [
    "Degraded",
    "DependencyShortInfo",
    "JsonFileLicenseSource",
    "LicenseData",
    "LicenseEntry",
    "LicenseKnowledgeBase",
    "LicenseLookup",
    "LicenseProperties",
    "LicenseReport",
    "LicenseResolver",
    "Resolved",
    "SpdxLicenseListSource",
    "UNAVAILABLE_DESCRIPTION",
    "UNKNOWN_CATEGORY",
    "build_license_entries",
    "build_license_report",
    "canonical_spdx_id",
    "count_license_categories",
    "dependencies_using_license",
    "filter_licenses_by_ecosystem",
    "package_manager_link",
]
