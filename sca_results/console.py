"""Rich console utilities for sca-results.

This module provides the shared Rich Console and the table renderers used by
the command line interface.
"""

import os
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

from rich.console import Console
from rich.table import Table
from rich.theme import Theme

# GitHub Actions logs render ANSI colors but are not a TTY
IS_GITHUB_ACTIONS = os.getenv("GITHUB_ACTIONS") == "true"

custom_theme = Theme(
    {
        "info": "cyan",
        "warning": "yellow",
        "error": "bold red",
        "success": "bold green",
        "highlight": "magenta",
        "severity.critical": "bold red",
        "severity.high": "red",
        "severity.medium": "yellow",
        "severity.low": "green",
        "severity.none": "dim",
    }
)

# Shared console instance; reports go to stdout, logs go to stderr
console = Console(theme=custom_theme, force_terminal=IS_GITHUB_ACTIONS or None, color_system="auto")


def _yes_no(value: bool) -> str:
    return "[success]yes[/success]" if value else "no"


def print_summary_table(title: str, data: List[Tuple[str, Any]], show_if_empty: bool = False) -> None:
    """
    Print a two-column summary table.

    Args:
        title: Table title
        data: List of (label, value) tuples
        show_if_empty: Whether to show rows whose value is 0/empty
    """
    if not show_if_empty:
        data = [(label, value) for label, value in data if value]
    if not data:
        return

    table = Table(title=title, show_header=True, header_style="bold")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", justify="right")
    for label, value in data:
        table.add_row(label, str(value))
    console.print(table)


def print_rows_table(title: str, columns: Sequence[str], rows: Iterable[Sequence[Any]]) -> None:
    table = Table(title=title, show_header=True, header_style="bold")
    for column in columns:
        table.add_column(column)
    for row in rows:
        table.add_row(*(str(cell) if cell is not None else "" for cell in row))
    console.print(table)


def print_page_footer(page: Dict[str, Any]) -> None:
    console.print(
        f"[info]Page {page['page'] + 1}/{max(page['total_pages'], 1)}[/info] - "
        f"{page['entry_count']} shown, {page['filter_count']} matching, {page['total_entries']} total"
    )


def print_license_page(page: Dict[str, Any], workspace: str) -> None:
    rows = []
    for entry in page["data"]:
        flags = []
        if entry["license_compliance_violation"]:
            flags.append("[error]violation[/error]")
        if entry["unable_to_infer"]:
            flags.append("[warning]non-SPDX[/warning]")
        rows.append(
            (entry["id"], entry["name"], entry["license_category"], len(entry["deps_using_license"]), " ".join(flags))
        )
    print_rows_table(f"Licenses ({workspace})", ("License", "Name", "Category", "Dependencies", "Flags"), rows)
    print_page_footer(page)
    counts = page.get("category_counts")
    if counts:
        console.print(", ".join(f"{category}: {count}" for category, count in counts.items()))


def print_dependency_page(page: Dict[str, Any], workspace: str) -> None:
    rows = [
        (
            d["name"],
            d["version"],
            d.get("ecosystem"),
            _yes_no(d["prod"]),
            _yes_no(d["dev"]),
            _yes_no(bool(d["is_direct_count"])),
            ", ".join(d.get("licenses") or []),
        )
        for d in page["data"]
    ]
    print_rows_table(
        f"Dependencies ({workspace})", ("Name", "Version", "Ecosystem", "Prod", "Dev", "Direct", "Licenses"), rows
    )
    print_page_footer(page)


def print_severity_histogram(
    title: str, histogram: Dict[str, int], vulnerability_ids: Optional[List[str]] = None
) -> None:
    table = Table(title=title, show_header=True, header_style="bold")
    table.add_column("Severity")
    table.add_column("Count", justify="right")
    for severity, count in histogram.items():
        table.add_row(f"[severity.{severity}]{severity}[/severity.{severity}]", str(count))
    console.print(table)
    if vulnerability_ids:
        console.print(f"[highlight]Vulnerabilities:[/highlight] {', '.join(vulnerability_ids)}")


def print_merge_summary(merge: Dict[str, Any]) -> None:
    """Print which plugins were merged, which were skipped and any ecosystem conflicts."""
    sbom = merge["merged_sbom"]
    print_summary_table(
        "SBOM Merge",
        [
            ("Merged plugins", ", ".join(merge["merged_plugins"]) or "-"),
            ("Workspaces", len(sbom["workspaces"])),
            (
                "Dependencies",
                sum(
                    len(versions)
                    for ws in sbom["workspaces"].values()
                    for versions in ws["dependencies"].values()
                ),
            ),
            ("Package manager", sbom["analysis_info"].get("package_manager")),
            ("Ecosystem conflicts", len(merge["anomalies"])),
        ],
        show_if_empty=True,
    )
    for skipped in merge["skipped_plugins"]:
        console.print(f"[warning]Skipped {skipped['plugin']}: {skipped['reason']}[/warning]")
    for anomaly in merge["anomalies"]:
        console.print(
            f"[warning]Conflict[/warning] {anomaly['name']}@{anomaly['version']} ({anomaly['workspace']}): "
            + ", ".join(f"{p}={e}" for p, e in zip(anomaly["plugins"], anomaly["ecosystems"]))
        )
