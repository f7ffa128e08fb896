"""Result store implementations."""

import json
import threading
from pathlib import Path
from typing import Any, Dict, Iterable, List, Sequence, Union

from sca_results.exceptions import ConfigurationError, MalformedResultError
from sca_results.logging_config import logger

from .models import AnalysisResult


class InMemoryResultStore:
    """
    Result store backed by a list of rows.

    Used for embedding and tests. ``add`` is guarded by a lock so rows can be
    recorded from several threads while reports are being built.
    """

    def __init__(self, rows: Iterable[AnalysisResult] = ()) -> None:
        self._rows: List[AnalysisResult] = list(rows)
        self._lock = threading.Lock()

    def add(self, row: AnalysisResult) -> None:
        with self._lock:
            self._rows.append(row)

    def find(self, analysis_id: str, plugins: Sequence[str]) -> List[AnalysisResult]:
        wanted = set(plugins)
        with self._lock:
            return [row for row in self._rows if row.analysis_id == analysis_id and row.plugin in wanted]

    def __len__(self) -> int:
        return len(self._rows)


class JsonLinesResultStore:
    """
    Result store reading a JSON-lines file, one row per line.

    Each line is an object with ``analysis_id``, ``plugin``, ``created_on``
    (ISO 8601) and ``result``; ``id`` and ``status`` are optional. The file is
    read on every lookup so external writers are picked up.
    """

    def __init__(self, path: Union[str, Path]) -> None:
        self.path = Path(path)

    def _load(self) -> List[Dict[str, Any]]:
        if not self.path.exists():
            raise ConfigurationError(f"Results file not found: {self.path}")

        rows = []
        with open(self.path, "r", encoding="utf-8") as f:
            for line_number, line in enumerate(f, start=1):
                line = line.strip()
                if not line:
                    continue
                try:
                    rows.append(json.loads(line))
                except json.JSONDecodeError as e:
                    raise MalformedResultError(f"{self.path}:{line_number}: invalid JSON ({e})") from e
        return rows

    def find(self, analysis_id: str, plugins: Sequence[str]) -> List[AnalysisResult]:
        wanted = set(plugins)
        matches = []
        for data in self._load():
            if data.get("analysis_id") != analysis_id or data.get("plugin") not in wanted:
                continue
            try:
                matches.append(AnalysisResult.from_dict(data))
            except (KeyError, ValueError) as e:
                raise MalformedResultError(f"Invalid result row in {self.path}: {e}") from e
        logger.debug(f"Found {len(matches)} row(s) for analysis {analysis_id} in {self.path}")
        return matches

    def append(self, row: AnalysisResult) -> None:
        """Append a row to the file."""
        with open(self.path, "a", encoding="utf-8") as f:
            f.write(json.dumps(row.to_dict(), sort_keys=True) + "\n")
