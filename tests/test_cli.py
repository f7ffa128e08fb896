"""Tests for the sca-results command line interface."""

import json

import pytest
from click.testing import CliRunner
from payloads import dep, license_payload, row, sbom_payload, vuln, vuln_payload

from sca_results._results import JsonLinesResultStore
from sca_results.cli.main import Config, build_config, cli
from sca_results.exceptions import ConfigurationError


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def results_file(tmp_path):
    path = tmp_path / "results.jsonl"
    store = JsonLinesResultStore(path)
    store.append(
        row(
            "js-sbom",
            sbom_payload(
                {"lodash": {"4.17.20": dep(Licenses=["MIT"])}, "jest": {"29.7.0": dep(dev=True, prod=False)}},
                start={"dependencies": [{"name": "lodash", "version": "4.17.20"}]},
                package_manager="npm",
            ),
        )
    )
    store.append(row("php-sbom", sbom_payload({"monolog/monolog": {"3.5.0": dep()}}, package_manager="composer")))
    store.append(row("license-finder", license_payload({"MIT": ["lodash@4.17.20", "monolog/monolog@3.5.0"]})))
    store.append(row("vuln-finder", vuln_payload([vuln("CVE-2021-23337", "lodash", "4.17.20", "HIGH")])))
    return str(path)


def run_json(runner, results_file, *args):
    result = runner.invoke(cli, ["--results-file", results_file, "--json", *args])
    assert result.exit_code == 0, result.output
    return json.loads(result.stdout)


class TestJsonCommands:
    def test_merge(self, runner, results_file):
        data = run_json(runner, results_file, "merge", "a1")

        assert data["merged_plugins"] == ["js-sbom", "php-sbom"]
        assert data["anomalies"] == []
        assert data["merged_sbom"]["analysis_info"]["package_manager"] == "multi-language"

    def test_workspaces(self, runner, results_file):
        assert run_json(runner, results_file, "workspaces", "a1") == {
            "package_manager": "multi-language",
            "workspaces": ["."],
        }

    def test_dependencies_with_ecosystem(self, runner, results_file):
        data = run_json(runner, results_file, "dependencies", "a1", "--ecosystem", "packagist")

        assert [d["name"] for d in data["data"]] == ["monolog/monolog"]
        assert data["page"] == 0

    def test_dependencies_page_size_saturates(self, runner, results_file):
        data = run_json(runner, results_file, "dependencies", "a1", "--page-size", "5000")

        assert data["entries_per_page"] == 100

    def test_stats(self, runner, results_file):
        data = run_json(runner, results_file, "stats", "a1")

        assert data["number_of_dependencies"] == 3
        assert data["ecosystems"] == {"npm": 2, "packagist": 1}

    def test_dependency(self, runner, results_file):
        data = run_json(runner, results_file, "dependency", "a1", "lodash@4.17.20")

        assert data["vulnerabilities"] == ["CVE-2021-23337"]
        assert data["licenses"] == ["MIT"]

    def test_licenses_without_knowledge_base(self, runner, results_file):
        data = run_json(runner, results_file, "licenses", "a1")

        (entry,) = data["data"]
        assert entry["id"] == "MIT"
        assert entry["license_category"] == "Unknown"
        assert entry["description"] == "License information not available"

    def test_licenses_with_license_db(self, runner, results_file, tmp_path, license_records):
        db = tmp_path / "licenses.json"
        db.write_text(json.dumps(license_records))

        data = run_json(runner, results_file, "--license-db", str(db), "licenses", "a1", "--filters", "[MIT]")

        assert data["data"][0]["name"] == "MIT License"
        assert data["data"][0]["license_category"] == "permissive"
        assert data["category_counts"]["permissive"] == 1

    def test_license_deps(self, runner, results_file):
        data = run_json(runner, results_file, "license-deps", "a1", "MIT")

        assert data["lodash@4.17.20"]["package_manager"] == "npm"
        assert data["monolog/monolog@3.5.0"]["package_manager"] == "composer"

    def test_vulns_for_dependency(self, runner, results_file):
        data = run_json(runner, results_file, "vulns", "a1", "lodash", "4.17.20")

        assert data["vulnerability_ids"] == ["CVE-2021-23337"]
        assert data["histogram"]["high"] == 1

    def test_findings_by_ecosystem(self, runner, results_file):
        assert len(run_json(runner, results_file, "findings", "a1", "--ecosystem", "npm")) == 1
        assert run_json(runner, results_file, "findings", "a1", "--ecosystem", "packagist") == []

    def test_status(self, runner, results_file):
        data = run_json(runner, results_file, "status", "a1", "--kind", "licenses")

        assert data["private_errors"] == []


class TestTableOutput:
    def test_dependencies_table(self, runner, results_file):
        result = runner.invoke(cli, ["--results-file", results_file, "dependencies", "a1"])

        assert result.exit_code == 0
        assert "lodash" in result.stdout
        assert "monolog" in result.stdout

    def test_merge_summary(self, runner, results_file):
        result = runner.invoke(cli, ["--results-file", results_file, "merge", "a1"])

        assert result.exit_code == 0
        assert "js-sbom" in result.stdout


class TestErrors:
    def test_missing_results_file(self, runner, tmp_path):
        result = runner.invoke(cli, ["--results-file", str(tmp_path / "nope.jsonl"), "workspaces", "a1"])

        assert result.exit_code == 1

    def test_unknown_workspace(self, runner, results_file):
        result = runner.invoke(cli, ["--results-file", results_file, "stats", "a1", "-w", "missing"])

        assert result.exit_code == 1

    def test_unknown_ecosystem(self, runner, results_file):
        result = runner.invoke(cli, ["--results-file", results_file, "dependencies", "a1", "--ecosystem", "cobol"])

        assert result.exit_code == 1

    def test_missing_patching_result(self, runner, results_file):
        result = runner.invoke(cli, ["--results-file", results_file, "patches", "a1"])

        assert result.exit_code == 1

    def test_unknown_analysis(self, runner, results_file):
        result = runner.invoke(cli, ["--results-file", results_file, "merge", "nope"])

        assert result.exit_code == 1

    def test_vulns_requires_name_and_version_together(self, runner, results_file):
        result = runner.invoke(cli, ["--results-file", results_file, "vulns", "a1", "lodash"])

        assert result.exit_code == 2

    def test_invalid_kb_timeout(self, runner, results_file, monkeypatch):
        monkeypatch.setenv("SCA_KB_TIMEOUT", "soon")

        result = runner.invoke(cli, ["--results-file", results_file, "workspaces", "a1"])

        assert result.exit_code == 1


class TestConfig:
    def test_environment_fallbacks(self, monkeypatch):
        monkeypatch.setenv("SCA_RESULTS_FILE", "/data/results.jsonl")
        monkeypatch.setenv("SCA_LICENSE_DB", "/data/licenses.json")
        monkeypatch.setenv("SCA_SPDX_LOOKUP", "yes")
        monkeypatch.setenv("SCA_KB_TIMEOUT", "2.5")

        config = build_config()

        assert config.results_file == "/data/results.jsonl"
        assert config.license_db == "/data/licenses.json"
        assert config.spdx_lookup is True
        assert config.kb_timeout == 2.5

    def test_cli_values_win(self, monkeypatch):
        monkeypatch.setenv("SCA_RESULTS_FILE", "/data/results.jsonl")
        monkeypatch.setenv("SCA_SPDX_LOOKUP", "true")

        config = build_config(results_file="local.jsonl", spdx_lookup=False, debug=True)

        assert config.results_file == "local.jsonl"
        assert config.spdx_lookup is False
        assert config.log_level == "DEBUG"

    def test_validate(self, tmp_path):
        path = tmp_path / "results.jsonl"
        path.write_text("")
        Config(results_file=str(path)).validate()

        with pytest.raises(ConfigurationError):
            Config(results_file=str(path), kb_timeout=0).validate()
        with pytest.raises(ConfigurationError):
            Config(results_file=str(path), log_level="LOUD").validate()
        with pytest.raises(ConfigurationError):
            Config(results_file=str(path), license_db=str(tmp_path / "missing.json")).validate()
