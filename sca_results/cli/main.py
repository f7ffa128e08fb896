"""Command line interface for sca-results."""

import os
import sys
from dataclasses import dataclass
from typing import Any, Callable, List, Optional

import click
import sentry_sdk

from .. import __version__
from .._licenses import JsonFileLicenseSource, LicenseKnowledgeBase, LicenseResolver, SpdxLicenseListSource
from .._results import JsonLinesResultStore, ResultAccessor
from ..aggregation import PLUGIN_KINDS, ResultsService
from ..console import (
    console,
    print_dependency_page,
    print_license_page,
    print_merge_summary,
    print_rows_table,
    print_severity_histogram,
    print_summary_table,
)
from ..exceptions import (
    ConfigurationError,
    DependencyNotFoundError,
    ScaResultsError,
    UnknownEcosystemError,
    UnknownWorkspaceError,
)
from ..logging_config import logger, set_log_level
from ..pagination import parse_active_filters
from ..serialization import dumps, to_jsonable

DEFAULT_RESULTS_FILE = "results.jsonl"
DEFAULT_KB_TIMEOUT = 10.0

# Errors caused by user input; never reported to Sentry
USER_ERRORS = (ConfigurationError, UnknownWorkspaceError, UnknownEcosystemError, DependencyNotFoundError)


def evaluate_boolean(value: Optional[str]) -> bool:
    """Interpret an environment-variable style boolean."""
    return (value or "").strip().lower() in ("true", "yes", "yeah", "1")


@dataclass
class Config:
    """Configuration settings for the CLI."""

    results_file: str = DEFAULT_RESULTS_FILE
    license_db: Optional[str] = None
    spdx_lookup: bool = False
    kb_timeout: float = DEFAULT_KB_TIMEOUT
    json_output: bool = False
    log_level: str = "INFO"

    def validate(self) -> None:
        """
        Validate configuration settings.

        Raises:
            ConfigurationError: If configuration is invalid
        """
        if not self.results_file:
            raise ConfigurationError("Results file is not defined (--results-file or SCA_RESULTS_FILE)")
        if not os.path.isfile(self.results_file):
            raise ConfigurationError(f"Results file not found: {self.results_file}")
        if self.license_db and not os.path.isfile(self.license_db):
            raise ConfigurationError(f"License database not found: {self.license_db}")
        if self.kb_timeout <= 0:
            raise ConfigurationError("Knowledge base timeout must be a positive number of seconds")
        if self.log_level.upper() not in ("DEBUG", "INFO", "WARNING", "ERROR"):
            raise ConfigurationError(f"Invalid log level: {self.log_level}")


def build_config(
    results_file: Optional[str] = None,
    license_db: Optional[str] = None,
    spdx_lookup: Optional[bool] = None,
    json_output: bool = False,
    debug: bool = False,
) -> Config:
    """
    Build a Config from CLI values, falling back to environment variables.

    Raises:
        ConfigurationError: If a value cannot be parsed
    """
    timeout_env = os.getenv("SCA_KB_TIMEOUT")
    try:
        kb_timeout = float(timeout_env) if timeout_env else DEFAULT_KB_TIMEOUT
    except ValueError:
        raise ConfigurationError(f"SCA_KB_TIMEOUT must be a number, got '{timeout_env}'")

    return Config(
        results_file=results_file or os.getenv("SCA_RESULTS_FILE", DEFAULT_RESULTS_FILE),
        license_db=license_db or os.getenv("SCA_LICENSE_DB") or None,
        spdx_lookup=spdx_lookup if spdx_lookup is not None else evaluate_boolean(os.getenv("SCA_SPDX_LOOKUP")),
        kb_timeout=kb_timeout,
        json_output=json_output,
        log_level="DEBUG" if debug else os.getenv("LOG_LEVEL", "INFO"),
    )


def sentry_before_send(event: dict, hint: dict) -> Optional[dict]:
    """Drop events caused by user errors (bad workspace, unknown ecosystem, configuration)."""
    if "exc_info" in hint:
        _exc_type, exc_value, _tb = hint["exc_info"]
        if isinstance(exc_value, USER_ERRORS):
            return None
    return event


def initialize_sentry() -> None:
    """Initialize Sentry when a DSN is configured and telemetry is not disabled."""
    dsn = os.getenv("SENTRY_DSN")
    if not dsn or os.getenv("TELEMETRY", "").lower() == "false":
        return
    sentry_sdk.init(
        dsn=dsn,
        release=f"sca-results@{__version__}",
        traces_sample_rate=0.0,
        before_send=sentry_before_send,
    )


def create_service(config: Config) -> ResultsService:
    sources: List[LicenseKnowledgeBase] = []
    if config.license_db:
        sources.append(JsonFileLicenseSource(config.license_db))
    if config.spdx_lookup:
        sources.append(SpdxLicenseListSource(timeout=config.kb_timeout))
    accessor = ResultAccessor(JsonLinesResultStore(config.results_file))
    return ResultsService(accessor, resolver=LicenseResolver(sources))


class AppContext:
    def __init__(self, config: Config) -> None:
        self.config = config
        self._service: Optional[ResultsService] = None

    @property
    def service(self) -> ResultsService:
        if self._service is None:
            self.config.validate()
            self._service = create_service(self.config)
        return self._service


def run_command(ctx: click.Context, action: Callable[[ResultsService], Any], render: Callable[[Any], None]) -> None:
    """Run a report action and print it, mapping package errors to exit code 1."""
    app: AppContext = ctx.obj
    try:
        result = action(app.service)
    except ScaResultsError as e:
        logger.error(f"{type(e).__name__}: {e}")
        sys.exit(1)
    except ValueError as e:
        logger.error(str(e))
        sys.exit(1)

    if app.config.json_output:
        click.echo(dumps(result))
    else:
        render(to_jsonable(result))


workspace_option = click.option("-w", "--workspace", default=".", show_default=True, help="Workspace to report on.")


def page_options(func):
    func = click.option("--search", "search_key", default=None, help="Case-insensitive search term.")(func)
    func = click.option("--filters", default=None, help="Active filters, e.g. '[MIT, Apache-2.0]'.")(func)
    func = click.option("--sort-by", default=None, help="Field to sort by.")(func)
    func = click.option("--sort-direction", type=click.Choice(["ASC", "DESC"], case_sensitive=False), default=None)(
        func
    )
    func = click.option("--page", type=int, default=None, help="Zero-based page number.")(func)
    func = click.option("--page-size", "entries_per_page", type=int, default=None, help="Entries per page.")(func)
    func = click.option("--ecosystem", default=None, help="Restrict to one ecosystem (npm, packagist, ...).")(func)
    return func


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.version_option(__version__, prog_name="sca-results")
@click.option("--results-file", type=click.Path(dir_okay=False), default=None, help="JSON-lines results file.")
@click.option("--license-db", type=click.Path(dir_okay=False), default=None, help="Local license metadata JSON.")
@click.option("--spdx-lookup/--no-spdx-lookup", default=None, help="Look licenses up on spdx.org.")
@click.option("--json", "json_output", is_flag=True, help="Print JSON instead of tables.")
@click.option("--debug", is_flag=True, help="Enable debug logging.")
@click.pass_context
def cli(ctx, results_file, license_db, spdx_lookup, json_output, debug):
    """Aggregate and report software composition analysis results."""
    try:
        config = build_config(results_file, license_db, spdx_lookup, json_output, debug)
    except ConfigurationError as e:
        logger.error(f"Configuration error: {e}")
        sys.exit(1)
    set_log_level(config.log_level)
    initialize_sentry()
    ctx.obj = AppContext(config)


@cli.command()
@click.argument("analysis_id")
@click.pass_context
def merge(ctx, analysis_id):
    """Merge the SBOM results of every supported plugin."""
    run_command(ctx, lambda s: s.merge_results(analysis_id), print_merge_summary)


@cli.command()
@click.argument("analysis_id")
@click.pass_context
def workspaces(ctx, analysis_id):
    """List the workspaces of the merged SBOM."""

    def render(data):
        print_rows_table("Workspaces", ("Workspace",), [(name,) for name in data["workspaces"]])
        console.print(f"[info]Package manager:[/info] {data['package_manager']}")

    run_command(ctx, lambda s: s.get_workspaces(analysis_id), render)


@cli.command()
@click.argument("analysis_id")
@click.option("--kind", type=click.Choice(PLUGIN_KINDS), default="sbom", show_default=True)
@click.pass_context
def status(ctx, analysis_id, kind):
    """Show the status envelope of a plugin kind."""

    def render(data):
        print_summary_table(
            f"Status ({kind})",
            [
                ("Stage start", data["stage_start"]),
                ("Stage end", data["stage_end"]),
                ("Public errors", len(data["public_errors"])),
                ("Private errors", len(data["private_errors"])),
            ],
            show_if_empty=True,
        )

    run_command(ctx, lambda s: s.get_status(analysis_id, kind), render)


@cli.command()
@click.argument("analysis_id")
@workspace_option
@page_options
@click.pass_context
def dependencies(
    ctx, analysis_id, workspace, search_key, filters, sort_by, sort_direction, page, entries_per_page, ecosystem
):
    """List the dependencies of a workspace."""
    run_command(
        ctx,
        lambda s: s.get_sbom(
            analysis_id,
            workspace,
            search_key=search_key,
            active_filters=parse_active_filters(filters),
            page=page,
            entries_per_page=entries_per_page,
            sort_by=sort_by,
            sort_direction=sort_direction,
            ecosystem=ecosystem,
        ),
        lambda data: print_dependency_page(data, workspace),
    )


@cli.command()
@click.argument("analysis_id")
@workspace_option
@click.option("--ecosystem", default=None, help="Restrict to one ecosystem.")
@click.pass_context
def stats(ctx, analysis_id, workspace, ecosystem):
    """Count the dependencies of a workspace by kind."""

    def render(data):
        ecosystems = data.pop("ecosystems")
        print_summary_table(f"Dependency stats ({workspace})", [(k.replace("_", " "), v) for k, v in data.items()])
        print_rows_table("Ecosystems", ("Ecosystem", "Dependencies"), sorted(ecosystems.items()))

    run_command(ctx, lambda s: s.get_sbom_stats(analysis_id, workspace, ecosystem), render)


@cli.command()
@click.argument("analysis_id")
@click.argument("dependency")
@workspace_option
@click.pass_context
def dependency(ctx, analysis_id, dependency, workspace):
    """Show one NAME@VERSION dependency with its vulnerabilities."""

    def render(data):
        print_summary_table(
            data["name"],
            [
                ("Version", data["version"]),
                ("Ecosystem", data["ecosystem"]),
                ("Licenses", ", ".join(data["licenses"])),
                ("Direct", data["direct"]),
                ("Transitive", data["transitive"]),
                ("Children", len(data["dependencies"])),
            ],
        )
        if data["severity_dist"]:
            print_severity_histogram("Vulnerabilities", data["severity_dist"], data["vulnerabilities"])

    run_command(ctx, lambda s: s.get_dependency(analysis_id, workspace, dependency), render)


@cli.command()
@click.argument("analysis_id")
@workspace_option
@page_options
@click.pass_context
def licenses(
    ctx, analysis_id, workspace, search_key, filters, sort_by, sort_direction, page, entries_per_page, ecosystem
):
    """Show the license report of a workspace."""
    run_command(
        ctx,
        lambda s: s.get_licenses(
            analysis_id,
            workspace,
            search_key=search_key,
            active_filters=parse_active_filters(filters),
            page=page,
            entries_per_page=entries_per_page,
            sort_by=sort_by,
            sort_direction=sort_direction,
            ecosystem=ecosystem,
        ),
        lambda data: print_license_page(data, workspace),
    )


@cli.command("license-deps")
@click.argument("analysis_id")
@click.argument("license_id")
@workspace_option
@click.pass_context
def license_deps(ctx, analysis_id, license_id, workspace):
    """List the dependencies that use LICENSE_ID."""

    def render(data):
        rows = [(d["name"], d["version"], d["package_manager"], d.get("package_manager_link")) for d in data.values()]
        print_rows_table(f"Dependencies using {license_id}", ("Name", "Version", "Package manager", "Link"), rows)

    run_command(ctx, lambda s: s.get_dependencies_using_license(analysis_id, workspace, license_id), render)


@cli.command()
@click.argument("analysis_id")
@click.argument("name", required=False)
@click.argument("version", required=False)
@workspace_option
@click.pass_context
def vulns(ctx, analysis_id, name, version, workspace):
    """Severity histogram of NAME VERSION, or of the whole workspace."""
    if bool(name) != bool(version):
        raise click.UsageError("NAME and VERSION must be given together")

    def action(s: ResultsService):
        if name:
            return s.get_severity_histogram(analysis_id, workspace, name, version)
        return s.get_workspace_histogram(analysis_id, workspace)

    title = f"{name}@{version}" if name else f"Workspace {workspace}"
    run_command(ctx, action, lambda data: print_severity_histogram(title, data["histogram"], data["vulnerability_ids"]))


@cli.command()
@click.argument("analysis_id")
@workspace_option
@click.option("--ecosystem", default=None, help="Restrict to one ecosystem.")
@click.pass_context
def findings(ctx, analysis_id, workspace, ecosystem):
    """List the vulnerability findings of a workspace."""

    def render(data):
        rows = [
            (
                v.get("VulnerabilityId") or v.get("Id"),
                v.get("AffectedDependency"),
                v.get("AffectedVersion"),
                (v.get("Severity") or {}).get("SeverityClass"),
            )
            for v in data
        ]
        print_rows_table(f"Findings ({workspace})", ("Vulnerability", "Dependency", "Version", "Severity"), rows)

    run_command(ctx, lambda s: s.get_vulnerabilities(analysis_id, workspace, ecosystem), render)


@cli.command()
@click.argument("analysis_id")
@workspace_option
@click.pass_context
def patches(ctx, analysis_id, workspace):
    """Show the patch report of a workspace."""

    def render(data):
        rows = [
            (vuln_id, "dev" if dev else "prod", info.get("IsPatchable"), info.get("TopLevelVulnerable"))
            for dev, group in ((False, data["patches"]), (True, data["dev_patches"]))
            for vuln_id, info in group.items()
        ]
        print_rows_table(f"Patches ({workspace})", ("Vulnerability", "Scope", "Patchable", "Top-level"), rows)

    run_command(ctx, lambda s: s.get_patches(analysis_id, workspace), render)


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
