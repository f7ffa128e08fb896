"""Tests for SBOM dependency listing, stats, workspaces, status and details."""

import pytest
from payloads import analysis_info, dep, sbom_payload, vuln, vuln_payload

from sca_results._results import AnalysisInfo, parse_sbom_output, parse_vulnerabilities_output
from sca_results._sbom import (
    build_sbom_report,
    build_status,
    compute_sbom_stats,
    get_dependency_details,
    list_dependency_rows,
    list_workspaces,
)
from sca_results.exceptions import DependencyNotFoundError, UnknownWorkspaceError


@pytest.fixture
def sbom():
    return parse_sbom_output(
        sbom_payload(
            {
                "lodash": {
                    "4.17.21": dep(ecosystem="npm", Licenses=["MIT"], Dependencies={"tslib": "2.6.2"}),
                    "4.17.20": dep(direct=False, transitive=True, ecosystem="npm"),
                },
                "jest": {"29.7.0": dep(dev=True, prod=False, ecosystem="npm")},
                "tslib": {"2.6.2": dep(direct=True, transitive=True, Bundled=True, ecosystem="npm")},
                "monolog/monolog": {"3.5.0": dep(ecosystem="packagist", Optional=True)},
                "unused": {"0.0.1": dep(dev=False, prod=False)},
            },
            start={
                "dependencies": [
                    {"name": "lodash", "version": "4.17.21"},
                    {"name": "tslib", "version": "2.6.2"},
                    {"name": "monolog/monolog", "version": "3.5.0"},
                ],
                "dev_dependencies": [{"name": "jest", "version": "29.7.0"}],
            },
            package_manager="multi-language",
        )
    )


class TestDependencyRows:
    def test_rows_skip_unused_dependencies(self, sbom):
        rows = list_dependency_rows(sbom, ".")

        assert [(r.name, r.version) for r in rows] == [
            ("lodash", "4.17.21"),
            ("lodash", "4.17.20"),
            ("jest", "29.7.0"),
            ("tslib", "2.6.2"),
            ("monolog/monolog", "3.5.0"),
        ]

    def test_row_fields(self, sbom):
        row = list_dependency_rows(sbom, ".")[0]

        assert row.prod and not row.dev
        assert row.is_direct_count == 1
        assert row.is_transitive_count == 0
        assert row.ecosystem == "npm"
        assert row.licenses == ["MIT"]


class TestBuildSbomReport:
    def test_default_sort_puts_dev_dependencies_first(self, sbom):
        report = build_sbom_report(sbom, ".")

        assert report.data[0].name == "jest"
        assert report.total_entries == 5

    def test_sort_by_name_ascending(self, sbom):
        report = build_sbom_report(sbom, ".", sort_by="name", sort_direction="asc")

        assert [r.name for r in report.data] == ["jest", "lodash", "lodash", "monolog/monolog", "tslib"]

    def test_unknown_sort_field_uses_default(self, sbom):
        report = build_sbom_report(sbom, ".", sort_by="nonsense")

        assert report.data[0].name == "jest"

    def test_search_on_name_and_version(self, sbom):
        assert [r.version for r in build_sbom_report(sbom, ".", search_key="LODASH").data] == ["4.17.21", "4.17.20"]
        assert [r.name for r in build_sbom_report(sbom, ".", search_key="29.7").data] == ["jest"]

    def test_ecosystem_filters(self, sbom):
        report = build_sbom_report(sbom, ".", active_filters=["packagist"])

        assert [r.name for r in report.data] == ["monolog/monolog"]
        assert report.filter_count == 1
        assert report.total_entries == 5

    def test_unknown_workspace(self, sbom):
        with pytest.raises(UnknownWorkspaceError):
            build_sbom_report(sbom, "missing")


class TestSbomStats:
    def test_counts(self, sbom):
        stats = compute_sbom_stats(sbom, ".")

        assert stats.number_of_dependencies == 5
        assert stats.number_of_direct_dependencies == 3
        assert stats.number_of_transitive_dependencies == 1
        assert stats.number_of_both_direct_transitive_dependencies == 1
        assert stats.number_of_bundled_dependencies == 1
        assert stats.number_of_optional_dependencies == 1
        assert stats.number_of_non_dev_dependencies == 3
        assert stats.number_of_dev_dependencies == 1
        assert stats.ecosystems == {"npm": 4, "packagist": 1}

    def test_unknown_workspace(self, sbom):
        with pytest.raises(UnknownWorkspaceError):
            compute_sbom_stats(sbom, "missing")


def test_list_workspaces(sbom):
    assert list_workspaces(sbom) == {"workspaces": ["."], "package_manager": "multi-language"}


class TestBuildStatus:
    def test_errors_reported_when_private_errors_exist(self):
        info = AnalysisInfo.from_dict(analysis_info(public_errors=["shown"], private_errors=["stack trace"]))

        status = build_status(info)

        assert status.public_errors == ["shown"]
        assert status.private_errors == ["stack trace"]
        assert status.stage_start == "2025-03-01T12:00:00Z"

    def test_public_errors_alone_are_not_reported(self):
        info = AnalysisInfo.from_dict(analysis_info(public_errors=["shown"]))

        status = build_status(info)

        assert status.public_errors == []
        assert status.private_errors == []
        assert status.stage_end == "2025-03-01T12:01:00Z"


class TestDependencyDetails:
    def test_details_with_vulnerabilities(self, sbom):
        vulns = parse_vulnerabilities_output(
            vuln_payload(
                [
                    vuln("CVE-2021-23337", "lodash", "4.17.21", "HIGH"),
                    vuln("CVE-2020-8203", "lodash", "4.17.21", "critical"),
                    vuln("CVE-OTHER", "lodash", "4.17.20", "LOW"),
                ]
            )
        )

        details = get_dependency_details(sbom, ".", "lodash@4.17.21", vulnerabilities=vulns)

        assert details.ecosystem == "npm"
        assert details.dependencies == {"tslib": "2.6.2"}
        assert details.package_manager == "multi-language"
        assert details.vulnerabilities == ["CVE-2021-23337", "CVE-2020-8203"]
        assert details.severity_dist == {"critical": 1, "high": 1, "medium": 0, "low": 0, "none": 0}

    def test_details_without_vulnerability_output(self, sbom):
        details = get_dependency_details(sbom, ".", "monolog/monolog@3.5.0", package_manager="composer")

        assert details.package_manager == "composer"
        assert details.vulnerabilities == []
        assert details.severity_dist == {}

    def test_missing_dependency(self, sbom):
        with pytest.raises(DependencyNotFoundError):
            get_dependency_details(sbom, ".", "left-pad@1.3.0")

    def test_missing_workspace(self, sbom):
        with pytest.raises(UnknownWorkspaceError):
            get_dependency_details(sbom, "missing", "lodash@4.17.21")
