"""Tests for the ecosystem registry."""

import re

import pytest

from sca_results._ecosystems import DEFAULT_ECOSYSTEMS, EcosystemInfo, EcosystemRegistry, create_default_registry


class TestRegistryLookups:
    def test_default_plugins_in_registration_order(self, registry):
        assert registry.all_supported_plugins() == [
            "js-sbom",
            "php-sbom",
            "python-sbom",
            "rust-sbom",
            "java-sbom",
            "dotnet-sbom",
            "go-sbom",
            "ruby-sbom",
        ]

    def test_supported_ecosystems(self, registry):
        assert registry.supported_ecosystems() == [
            "npm",
            "packagist",
            "pypi",
            "cargo",
            "maven",
            "nuget",
            "go",
            "rubygems",
        ]

    def test_lookup_by_plugin(self, registry):
        info = registry.lookup_by_plugin("php-sbom")
        assert info.ecosystem == "packagist"
        assert info.name == "Packagist"
        assert info.language == "PHP"
        assert info.default_package_manager == "composer"

    def test_lookup_unknown_plugin_returns_none(self, registry):
        assert registry.lookup_by_plugin("cobol-sbom") is None

    def test_lookup_by_ecosystem(self, registry):
        assert registry.lookup_by_ecosystem("pypi").plugin == "python-sbom"
        assert registry.lookup_by_ecosystem("unknown") is None

    def test_is_valid_ecosystem(self, registry):
        assert registry.is_valid_ecosystem("npm")
        assert not registry.is_valid_ecosystem("NPM")
        assert not registry.is_valid_ecosystem("")

    def test_default_ecosystem_is_first_registered(self, registry):
        assert registry.default_ecosystem == "npm"
        assert EcosystemRegistry().default_ecosystem is None

    def test_registering_replaces_but_keeps_position(self):
        reg = create_default_registry()
        original = reg.lookup_by_plugin("js-sbom")
        reg.register(
            EcosystemInfo(
                plugin="js-sbom",
                name="npm",
                ecosystem="npm",
                language="TypeScript",
                package_manager_pattern=original.package_manager_pattern,
                default_package_manager="pnpm",
                purl_type="npm",
            )
        )
        assert reg.all_supported_plugins()[0] == "js-sbom"
        assert reg.lookup_by_plugin("js-sbom").default_package_manager == "pnpm"
        assert len(reg) == len(DEFAULT_ECOSYSTEMS)

    def test_custom_registry_only_knows_its_plugins(self):
        reg = EcosystemRegistry()
        reg.register(
            EcosystemInfo("hex-sbom", "Hex", "hex", "Elixir", re.compile(r"\bmix\b", re.I), "mix", "hex")
        )
        assert reg.all_supported_plugins() == ["hex-sbom"]
        assert "hex-sbom" in reg
        assert reg.detect_ecosystem_from_package_manager("mix") == "hex"
        assert reg.detect_ecosystem_from_purl("pkg:hex/phoenix@1.7.0") == "hex"


class TestPackageManagerDetection:
    @pytest.mark.parametrize(
        "package_manager,expected",
        [
            ("npm", "npm"),
            ("YARN", "npm"),
            ("pnpm@8.15.0", "npm"),
            ("composer", "packagist"),
            ("Poetry", "pypi"),
            ("cargo", "cargo"),
            ("gradle", "maven"),
            ("dotnet", "nuget"),
            ("go mod", "go"),
            ("bundler", "rubygems"),
        ],
    )
    def test_detects_known_managers(self, registry, package_manager, expected):
        assert registry.detect_ecosystem_from_package_manager(package_manager) == expected

    def test_word_boundaries_prevent_substring_matches(self, registry):
        # "bundler" must not match npm's "bun", "cargo" must not match go's "go"
        assert registry.detect_ecosystem_from_package_manager("bundler") == "rubygems"
        assert registry.detect_ecosystem_from_package_manager("cargo") == "cargo"
        assert registry.detect_ecosystem_from_package_manager("mongo") is None

    @pytest.mark.parametrize("value", ["", "unknown-tool", None, 42])
    def test_unknown_or_invalid_input(self, registry, value):
        assert registry.detect_ecosystem_from_package_manager(value) is None


class TestPurlDetection:
    @pytest.mark.parametrize(
        "purl,expected",
        [
            ("pkg:npm/%40angular/core@17.0.0", "npm"),
            ("pkg:composer/monolog/monolog@3.5.0", "packagist"),
            ("pkg:pypi/requests@2.31.0", "pypi"),
            ("pkg:cargo/serde@1.0.0", "cargo"),
            ("pkg:maven/org.apache.commons/commons-lang3@3.14.0", "maven"),
            ("pkg:nuget/Newtonsoft.Json@13.0.3", "nuget"),
            ("pkg:golang/github.com/gin-gonic/gin@v1.9.1", "go"),
            ("pkg:gem/rails@7.1.0", "rubygems"),
        ],
    )
    def test_maps_purl_types(self, registry, purl, expected):
        assert registry.detect_ecosystem_from_purl(purl) == expected

    @pytest.mark.parametrize("purl", ["pkg:deb/debian/curl@7.88.1", "not-a-purl", "pkg:", "", None])
    def test_unmapped_or_malformed_returns_none(self, registry, purl):
        assert registry.detect_ecosystem_from_purl(purl) is None


class TestNameHeuristic:
    @pytest.mark.parametrize(
        "name,expected",
        [
            ("@angular/core", "npm"),
            ("@types/node", "npm"),
            ("github.com/gin-gonic/gin", "go"),
            ("golang.org/x/text", "go"),
            ("monolog/monolog", "packagist"),
            ("symfony/console", "packagist"),
        ],
    )
    def test_classifies_name_shapes(self, registry, name, expected):
        assert registry.detect_ecosystem_from_name(name) == expected

    @pytest.mark.parametrize("name", ["lodash", "requests", "a/b/c", "/leading", "trailing/", "", None])
    def test_ambiguous_names_return_none(self, registry, name):
        assert registry.detect_ecosystem_from_name(name) is None

    def test_heuristic_only_returns_registered_ecosystems(self):
        reg = EcosystemRegistry()
        reg.register(DEFAULT_ECOSYSTEMS[0])  # npm only
        assert reg.detect_ecosystem_from_name("@scope/pkg") == "npm"
        assert reg.detect_ecosystem_from_name("vendor/package") is None
