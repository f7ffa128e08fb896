"""License knowledge sources: the SPDX license list and local JSON files."""

import json
import threading
from pathlib import Path
from typing import Dict, Optional, Union

import requests
from license_expression import ExpressionError, LicenseSymbol, get_spdx_licensing

from sca_results.exceptions import ConfigurationError, LicenseNotFoundError
from sca_results.http_client import create_session
from sca_results.logging_config import logger

from .protocol import LicenseData

SPDX_LICENSE_BASE = "https://spdx.org/licenses"
DEFAULT_TIMEOUT = 10  # seconds

_spdx_licensing = get_spdx_licensing()


def canonical_spdx_id(license_id: str) -> Optional[str]:
    """
    Return the canonical SPDX identifier for a single license id.

    Compound expressions ("MIT OR Apache-2.0") and unknown ids give None.
    """
    if not license_id or not license_id.strip():
        return None
    try:
        parsed = _spdx_licensing.parse(license_id, validate=True)
    except ExpressionError:
        return None
    if not isinstance(parsed, LicenseSymbol):
        return None
    return parsed.key


class SpdxLicenseListSource:
    """
    Looks licenses up in the published SPDX license list.

    Ids are validated against the bundled SPDX symbol table before any request
    is made. Successful lookups are cached per instance; the cache is keyed by
    the canonical id and guarded by a lock so one source can serve concurrent
    reports.
    """

    def __init__(
        self,
        session: Optional[requests.Session] = None,
        timeout: float = DEFAULT_TIMEOUT,
        base_url: str = SPDX_LICENSE_BASE,
    ) -> None:
        self._session = session or create_session()
        self._timeout = timeout
        self._base_url = base_url.rstrip("/")
        self._cache: Dict[str, LicenseData] = {}
        self._lock = threading.Lock()

    @property
    def name(self) -> str:
        return "spdx.org"

    def clear_cache(self) -> None:
        with self._lock:
            self._cache.clear()

    def get_license_data(self, license_id: str) -> LicenseData:
        """
        Fetch license metadata from spdx.org.

        Raises:
            LicenseNotFoundError: Unknown id or non-200 response
            requests.exceptions.RequestException: Network failure or timeout
        """
        spdx_id = canonical_spdx_id(license_id)
        if spdx_id is None:
            raise LicenseNotFoundError(f"'{license_id}' is not an SPDX license identifier")

        with self._lock:
            cached = self._cache.get(spdx_id)
        if cached is not None:
            logger.debug(f"Cache hit (SPDX): {spdx_id}")
            return cached

        url = f"{self._base_url}/{spdx_id}.json"
        logger.debug(f"Fetching SPDX license data for: {spdx_id}")
        response = self._session.get(url, timeout=self._timeout)
        if response.status_code != 200:
            raise LicenseNotFoundError(f"SPDX lookup for {spdx_id} returned HTTP {response.status_code}")

        data = LicenseData.from_dict(spdx_id, response.json())
        with self._lock:
            self._cache[spdx_id] = data
        return data


class JsonFileLicenseSource:
    """
    License metadata from a local JSON file mapping license ids to records.

    Record shapes accepted by LicenseData.from_dict are supported. Lookups try
    the exact id first, then a case-insensitive match.
    """

    def __init__(self, path: Union[str, Path]) -> None:
        self.path = Path(path)
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                raw = json.load(f)
        except FileNotFoundError as e:
            raise ConfigurationError(f"License database not found: {self.path}") from e
        except json.JSONDecodeError as e:
            raise ConfigurationError(f"License database {self.path} is not valid JSON: {e}") from e
        if not isinstance(raw, dict):
            raise ConfigurationError(f"License database {self.path} must be a JSON object keyed by license id")

        self._records = raw
        self._lowercase = {key.lower(): key for key in raw}
        logger.debug(f"Loaded {len(raw)} license record(s) from {self.path}")

    @property
    def name(self) -> str:
        return f"file:{self.path.name}"

    def get_license_data(self, license_id: str) -> LicenseData:
        key = license_id if license_id in self._records else self._lowercase.get(license_id.lower())
        if key is None or not isinstance(self._records[key], dict):
            raise LicenseNotFoundError(f"License '{license_id}' not found in {self.path}")
        return LicenseData.from_dict(key, self._records[key])
