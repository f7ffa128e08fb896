"""
JSON serialization of report objects.

Report types expose ``to_dict()``; this module turns them (and plain
containers of them) into JSON with a stable key order so outputs can be diffed.
"""

import dataclasses
import json
from datetime import datetime
from types import MappingProxyType
from typing import Any


def to_jsonable(value: Any) -> Any:
    """Convert report objects, dataclasses and containers into JSON-compatible values."""
    if hasattr(value, "to_dict") and callable(value.to_dict):
        return to_jsonable(value.to_dict())
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return to_jsonable(dataclasses.asdict(value))
    if isinstance(value, (dict, MappingProxyType)):
        return {str(k): to_jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple, set, frozenset)):
        return [to_jsonable(v) for v in value]
    if isinstance(value, datetime):
        return value.isoformat()
    return value


def dumps(value: Any, indent: int = 2) -> str:
    """Serialize a report to deterministic JSON."""
    return json.dumps(to_jsonable(value), indent=indent, sort_keys=True, ensure_ascii=False)
