"""Result store protocol.

A result store is the read side of wherever plugin executions are persisted.
"""

from typing import List, Protocol, Sequence

from .models import AnalysisResult


class ResultStore(Protocol):
    """
    Protocol for stores holding plugin execution results.

    Implementations return every row of the analysis whose plugin is in
    ``plugins``. Ordering is not required; the accessor sorts by creation time.
    """

    def find(self, analysis_id: str, plugins: Sequence[str]) -> List[AnalysisResult]:
        """
        Find stored rows.

        Args:
            analysis_id: Analysis to search
            plugins: Acceptable plugin names

        Returns:
            Matching rows, possibly empty
        """
        ...
