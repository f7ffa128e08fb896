"""Ecosystem registry mapping SBOM plugins to package ecosystems."""

import re
from dataclasses import dataclass
from typing import Dict, List, Optional, Pattern

from packageurl import PackageURL

from sca_results.logging_config import logger


@dataclass(frozen=True)
class EcosystemInfo:
    """
    Static description of one supported SBOM plugin and the ecosystem it covers.

    Attributes:
        plugin: SBOM plugin name (e.g., "js-sbom")
        name: Human readable registry name (e.g., "npm Registry")
        ecosystem: Canonical ecosystem identifier (e.g., "npm")
        language: Primary language of the ecosystem
        package_manager_pattern: Regex matched against free-form package manager strings
        default_package_manager: Package manager assumed when none is reported
        purl_type: Package URL type that maps onto this ecosystem
    """

    plugin: str
    name: str
    ecosystem: str
    language: str
    package_manager_pattern: Pattern[str]
    default_package_manager: str
    purl_type: str


def _pattern(alternatives: str) -> Pattern[str]:
    return re.compile(rf"\b(?:{alternatives})\b", re.IGNORECASE)


DEFAULT_ECOSYSTEMS = (
    EcosystemInfo("js-sbom", "npm Registry", "npm", "JavaScript", _pattern("npm|yarn|pnpm|bun"), "npm", "npm"),
    EcosystemInfo("php-sbom", "Packagist", "packagist", "PHP", _pattern("composer"), "composer", "composer"),
    EcosystemInfo("python-sbom", "PyPI", "pypi", "Python", _pattern("pip|pipenv|poetry|conda|uv"), "pip", "pypi"),
    EcosystemInfo("rust-sbom", "crates.io", "cargo", "Rust", _pattern("cargo"), "cargo", "cargo"),
    EcosystemInfo("java-sbom", "Maven Central", "maven", "Java", _pattern("maven|gradle|sbt"), "maven", "maven"),
    EcosystemInfo("dotnet-sbom", "NuGet", "nuget", "C#", _pattern("dotnet|nuget|paket"), "dotnet", "nuget"),
    EcosystemInfo("go-sbom", "Go Modules", "go", "Go", _pattern("go|golang|gomod"), "go", "golang"),
    EcosystemInfo("ruby-sbom", "RubyGems", "rubygems", "Ruby", _pattern("gem|bundler"), "gem", "gem"),
)


class EcosystemRegistry:
    """
    Ordered registry of supported SBOM plugins.

    Registration order is significant: it is the merge order used by the SBOM
    merge engine and the tie-break order for package manager detection.
    Every lookup and detection method is total and returns None instead of raising.

    Example:
        registry = create_default_registry()
        registry.lookup_by_plugin("php-sbom").ecosystem  # "packagist"
        registry.detect_ecosystem_from_purl("pkg:pypi/requests@2.31.0")  # "pypi"
    """

    def __init__(self) -> None:
        self._by_plugin: Dict[str, EcosystemInfo] = {}

    def register(self, info: EcosystemInfo) -> None:
        """
        Register an ecosystem.

        Args:
            info: Ecosystem description; a plugin registered twice keeps its
                original position and takes the new description
        """
        self._by_plugin[info.plugin] = info
        logger.debug(f"Registered ecosystem: {info.ecosystem} ({info.plugin})")

    def lookup_by_plugin(self, plugin: str) -> Optional[EcosystemInfo]:
        if not isinstance(plugin, str):
            return None
        return self._by_plugin.get(plugin)

    def lookup_by_ecosystem(self, ecosystem: str) -> Optional[EcosystemInfo]:
        if not isinstance(ecosystem, str):
            return None
        for info in self._by_plugin.values():
            if info.ecosystem == ecosystem:
                return info
        return None

    def all_supported_plugins(self) -> List[str]:
        """Plugin names in registration order."""
        return list(self._by_plugin.keys())

    def supported_ecosystems(self) -> List[str]:
        """Ecosystem identifiers in registration order, without duplicates."""
        return list(dict.fromkeys(info.ecosystem for info in self._by_plugin.values()))

    def is_valid_ecosystem(self, ecosystem: str) -> bool:
        return self.lookup_by_ecosystem(ecosystem) is not None

    @property
    def default_ecosystem(self) -> Optional[str]:
        """Ecosystem assumed for dependencies nothing else can classify (the first registered)."""
        for info in self._by_plugin.values():
            return info.ecosystem
        return None

    def detect_ecosystem_from_package_manager(self, package_manager: str) -> Optional[str]:
        """
        Detect an ecosystem from a free-form package manager string.

        Args:
            package_manager: e.g. "YARN", "npm@9", "composer 2.6"

        Returns:
            Ecosystem of the first registered pattern that matches, or None
        """
        if not isinstance(package_manager, str) or not package_manager:
            return None
        for info in self._by_plugin.values():
            if info.package_manager_pattern.search(package_manager):
                return info.ecosystem
        return None

    def detect_ecosystem_from_purl(self, purl: str) -> Optional[str]:
        """
        Detect an ecosystem from a Package URL string.

        Args:
            purl: e.g. "pkg:composer/monolog/monolog@3.5.0"

        Returns:
            Mapped ecosystem, or None when the PURL is malformed or its type is unmapped
        """
        if not isinstance(purl, str) or not purl:
            return None
        try:
            purl_type = PackageURL.from_string(purl).type
        except ValueError:
            logger.debug(f"Could not parse PURL: {purl}")
            return None
        for info in self._by_plugin.values():
            if info.purl_type == purl_type:
                return info.ecosystem
        return None

    def detect_ecosystem_from_name(self, name: str) -> Optional[str]:
        """
        Guess an ecosystem from a bare package name.

        A leading "@" means a scoped npm package, a dotted host followed by a path
        means a Go module, and "vendor/package" means a Composer package. Anything
        else is ambiguous and gives None.
        """
        if not isinstance(name, str) or not name:
            return None
        candidate = self._heuristic_ecosystem(name)
        return candidate if self.is_valid_ecosystem(candidate) else None

    @staticmethod
    def _heuristic_ecosystem(name: str) -> Optional[str]:
        if name.startswith("@"):
            return "npm"
        segments = name.split("/")
        if len(segments) < 2 or not all(segments):
            return None
        if "." in segments[0]:
            return "go"
        if len(segments) == 2:
            return "packagist"
        return None

    def __len__(self) -> int:
        return len(self._by_plugin)

    def __contains__(self, plugin: object) -> bool:
        return plugin in self._by_plugin


def create_default_registry() -> EcosystemRegistry:
    """Create a registry holding the default plugin set."""
    registry = EcosystemRegistry()
    for info in DEFAULT_ECOSYSTEMS:
        registry.register(info)
    return registry
