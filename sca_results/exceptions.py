"""Custom exceptions for sca-results."""


class ScaResultsError(Exception):
    """Base exception for all sca-results operations."""


class ConfigurationError(ScaResultsError):
    """Raised when configuration validation fails."""


class ResultNotAvailableError(ScaResultsError):
    """Raised when no stored result exists for the requested analysis and plugin(s)."""


class PluginExecutionFailedError(ScaResultsError):
    """Raised when a stored result reports that the plugin failed."""


class MalformedResultError(PluginExecutionFailedError):
    """Raised when a stored result payload does not have the expected shape."""


class UnknownWorkspaceError(ScaResultsError):
    """Raised when a report names a workspace that the result does not contain."""

    def __init__(self, workspace: str):
        self.workspace = workspace
        super().__init__(f"Workspace '{workspace}' does not exist in this result")


class UnknownEcosystemError(ScaResultsError, ValueError):
    """Raised when an ecosystem name is not registered."""

    def __init__(self, ecosystem: str):
        self.ecosystem = ecosystem
        super().__init__(f"Unknown ecosystem: '{ecosystem}'")


class DependencyNotFoundError(ScaResultsError):
    """Raised when a dependency key is not present in a workspace."""


class LicenseNotFoundError(ScaResultsError):
    """Raised by a license knowledge source when it has no data for a license id."""
