"""Tests for dependency/vulnerability cross-referencing."""

import unittest

from payloads import vuln, vuln_payload

from sca_results._results import parse_vulnerabilities_output
from sca_results._vulnerabilities import SeverityHistogram, severity_histogram, workspace_histogram
from sca_results.exceptions import UnknownWorkspaceError


class TestSeverityHistogram(unittest.TestCase):
    def test_add_normalizes_case_and_whitespace(self):
        histogram = SeverityHistogram()
        self.assertTrue(histogram.add("CRITICAL"))
        self.assertTrue(histogram.add(" High "))
        self.assertTrue(histogram.add("none"))
        self.assertEqual(histogram.to_dict(), {"critical": 1, "high": 1, "medium": 0, "low": 0, "none": 1})
        self.assertEqual(histogram.total, 3)

    def test_unknown_classes_are_not_counted(self):
        histogram = SeverityHistogram()
        self.assertFalse(histogram.add("SEVERE"))
        self.assertFalse(histogram.add(None))
        self.assertFalse(histogram.add(""))
        self.assertEqual(histogram.total, 0)


class TestCrossReference(unittest.TestCase):
    def setUp(self):
        self.vulnerabilities = parse_vulnerabilities_output(
            vuln_payload(
                [
                    vuln("CVE-2021-23337", "lodash", "4.17.20", "HIGH"),
                    vuln("CVE-2020-8203", "lodash", "4.17.20", "HIGH"),
                    vuln("CVE-2019-10744", "lodash", "4.17.20", "Critical"),
                    vuln("CVE-NEWER", "lodash", "4.17.21", "LOW"),
                    vuln("CVE-ODD", "lodash", "4.17.20", "UNRATED"),
                    vuln("CVE-MISSING", "lodash", "4.17.20", None),
                    vuln("CVE-OTHER-PKG", "lodash-es", "4.17.20", "MEDIUM"),
                ]
            )
        )

    def test_exact_name_and_version_match(self):
        result = severity_histogram(self.vulnerabilities, ".", "lodash", "4.17.20")

        self.assertEqual(
            result.vulnerability_ids,
            ["CVE-2021-23337", "CVE-2020-8203", "CVE-2019-10744", "CVE-ODD", "CVE-MISSING"],
        )
        self.assertEqual(result.histogram.to_dict(), {"critical": 1, "high": 2, "medium": 0, "low": 0, "none": 0})

    def test_no_matches(self):
        result = severity_histogram(self.vulnerabilities, ".", "react", "18.2.0")

        self.assertEqual(result.vulnerability_ids, [])
        self.assertEqual(result.histogram.total, 0)

    def test_workspace_histogram_counts_everything(self):
        result = workspace_histogram(self.vulnerabilities, ".")

        self.assertEqual(len(result.vulnerability_ids), 7)
        self.assertEqual(result.histogram.to_dict(), {"critical": 1, "high": 2, "medium": 1, "low": 1, "none": 0})

    def test_unknown_workspace(self):
        with self.assertRaises(UnknownWorkspaceError) as ctx:
            severity_histogram(self.vulnerabilities, "missing", "lodash", "4.17.20")
        self.assertEqual(ctx.exception.workspace, "missing")
