"""Tests for JSON serialization of report objects and structured logging."""

import json
import logging
from types import MappingProxyType

from payloads import BASE_TIME

from sca_results._vulnerabilities import CrossReference
from sca_results.logging_config import StructuredFormatter
from sca_results.pagination import paginate
from sca_results.serialization import dumps, to_jsonable


def test_to_jsonable_uses_to_dict_and_containers():
    page = paginate([CrossReference(vulnerability_ids=["CVE-1"])], 1)

    data = to_jsonable(page)

    assert data["data"][0]["vulnerability_ids"] == ["CVE-1"]
    assert data["data"][0]["histogram"]["critical"] == 0


def test_to_jsonable_handles_mapping_proxy_tuple_and_datetime():
    value = {"patches": MappingProxyType({"CVE-1": {"a": 1}}), "pair": ("x", "y"), "at": BASE_TIME}

    assert to_jsonable(value) == {
        "patches": {"CVE-1": {"a": 1}},
        "pair": ["x", "y"],
        "at": "2025-03-01T12:00:00+00:00",
    }


def test_dumps_is_deterministic():
    first = dumps({"b": 1, "a": {"d": 2, "c": 3}})
    second = dumps({"a": {"c": 3, "d": 2}, "b": 1})

    assert first == second
    assert json.loads(first) == {"a": {"c": 3, "d": 2}, "b": 1}


def test_structured_formatter_includes_extra_fields():
    record = logging.LogRecord("sca_results", logging.WARNING, __file__, 1, "merge %s", ("a1",), None)
    record.analysis_id = "a1"

    entry = json.loads(StructuredFormatter().format(record))

    assert entry["message"] == "merge a1"
    assert entry["level"] == "WARNING"
    assert entry["analysis_id"] == "a1"
