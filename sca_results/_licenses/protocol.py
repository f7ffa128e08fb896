"""License knowledge base protocol and data types."""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Protocol, Union

from sca_results.exceptions import LicenseNotFoundError


def _string_list(value: Any) -> List[str]:
    if not isinstance(value, list):
        return []
    return [item for item in value if isinstance(item, str)]


@dataclass(frozen=True)
class LicenseProperties:
    permissions: List[str] = field(default_factory=list)
    conditions: List[str] = field(default_factory=list)
    limitations: List[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> Optional["LicenseProperties"]:
        if not isinstance(data, dict):
            return None
        return cls(
            permissions=_string_list(data.get("permissions")),
            conditions=_string_list(data.get("conditions")),
            limitations=_string_list(data.get("limitations")),
        )

    def to_dict(self) -> Dict[str, List[str]]:
        return {"permissions": self.permissions, "conditions": self.conditions, "limitations": self.limitations}


@dataclass(frozen=True)
class LicenseData:
    """
    Display metadata for one license.

    Accepts both a flat record and the SPDX license-list shape
    (``licenseId``, ``name``, ``seeAlso`` and an optional ``details`` block
    holding ``description``, ``classification`` and ``licenseProperties``).
    """

    license_id: str
    name: str
    description: str = ""
    category: str = ""
    properties: Optional[LicenseProperties] = None
    references: List[str] = field(default_factory=list)
    is_osi_approved: bool = False
    is_deprecated: bool = False

    @classmethod
    def from_dict(cls, license_id: str, data: Any) -> "LicenseData":
        """
        Build LicenseData from a knowledge base record.

        Raises:
            LicenseNotFoundError: The record is not an object or one of its
                fields has the wrong type
        """
        if not isinstance(data, dict):
            raise LicenseNotFoundError(f"Record for '{license_id}' is a {type(data).__name__}, expected an object")
        details = data.get("details") or {}
        if not isinstance(details, dict):
            raise LicenseNotFoundError(f"Record for '{license_id}' has a non-object 'details' block")

        def text(*values: Any) -> str:
            for value in values:
                if value is None or value == "":
                    continue
                if not isinstance(value, str):
                    raise LicenseNotFoundError(f"Record for '{license_id}' has a non-string field: {value!r}")
                return value
            return ""

        references = data.get("seeAlso") or data.get("references") or details.get("seeAlso") or []
        if not isinstance(references, list) or not all(isinstance(ref, str) for ref in references):
            raise LicenseNotFoundError(f"Record for '{license_id}' has malformed references: {references!r}")

        return cls(
            license_id=text(data.get("licenseId"), data.get("license_id")) or license_id,
            name=text(data.get("name"), details.get("name")) or license_id,
            description=text(data.get("description"), details.get("description")),
            category=text(data.get("classification"), data.get("category"), details.get("classification")),
            properties=LicenseProperties.from_dict(
                data.get("licenseProperties") or data.get("properties") or details.get("licenseProperties")
            ),
            references=list(references),
            is_osi_approved=bool(data.get("isOsiApproved", details.get("isOsiApproved", False))),
            is_deprecated=bool(data.get("isDeprecatedLicenseId", details.get("isDeprecatedLicenseId", False))),
        )


@dataclass(frozen=True)
class Resolved:
    """Successful knowledge base lookup."""

    data: LicenseData
    source: str = ""


@dataclass(frozen=True)
class Degraded:
    """Failed knowledge base lookup; the report falls back to placeholder metadata."""

    license_id: str
    reason: str


LicenseLookup = Union[Resolved, Degraded]


class LicenseKnowledgeBase(Protocol):
    """
    Protocol for license metadata sources.

    ``get_license_data`` raises LicenseNotFoundError (or a requests error for
    network sources) when it cannot answer.
    """

    @property
    def name(self) -> str:
        """Human-readable name of the source."""
        ...

    def get_license_data(self, license_id: str) -> LicenseData:
        ...
