"""Resolve license ids against an ordered list of knowledge sources."""

from typing import List, Sequence

import requests

from sca_results.exceptions import LicenseNotFoundError
from sca_results.logging_config import logger

from .protocol import Degraded, LicenseKnowledgeBase, LicenseLookup, Resolved


class LicenseResolver:
    """
    Tries knowledge sources in order and never raises.

    A lookup no source can answer yields Degraded; the report then uses
    placeholder metadata for that license.

    Example:
        resolver = LicenseResolver([JsonFileLicenseSource("licenses.json"), SpdxLicenseListSource()])
        lookup = resolver.resolve("MIT")
        if isinstance(lookup, Resolved):
            print(lookup.data.name)
    """

    def __init__(self, sources: Sequence[LicenseKnowledgeBase] = ()) -> None:
        self.sources: List[LicenseKnowledgeBase] = list(sources)

    def resolve(self, license_id: str) -> LicenseLookup:
        if not self.sources:
            return Degraded(license_id, "no license knowledge source configured")

        reasons = []
        for source in self.sources:
            try:
                return Resolved(source.get_license_data(license_id), source.name)
            except LicenseNotFoundError as e:
                reasons.append(f"{source.name}: {e}")
            except requests.exceptions.Timeout:
                reasons.append(f"{source.name}: timeout")
            except requests.exceptions.RequestException as e:
                reasons.append(f"{source.name}: {e}")
            except ValueError as e:
                # Invalid JSON body
                reasons.append(f"{source.name}: invalid response ({e})")
            except Exception as e:
                logger.error(f"Unexpected error from {source.name} looking up {license_id}: {e}")
                reasons.append(f"{source.name}: {type(e).__name__}: {e}")

        reason = "; ".join(reasons)
        logger.warning(f"License lookup degraded for {license_id}: {reason}")
        return Degraded(license_id, reason)
