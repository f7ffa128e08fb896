"""sca-results package for aggregating and reporting software composition analysis results."""


def _get_version() -> str:
    """Get package version from the installed distribution metadata."""
    try:
        from importlib.metadata import PackageNotFoundError, version

        return version("sca-results")
    except PackageNotFoundError:
        return "unknown"


__version__ = _get_version()
