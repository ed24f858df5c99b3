"""Rich display functions for run reports.

Provides the import results table, the summary line, and the final
warnings/errors block shown at the end of every run.
"""

from rich.table import Table

from ompsnap.models.report import ImportOutcome, ImportResult, RunReport
from ompsnap.utils.formatting import console, print_error, print_success, print_warning

_OUTCOME_STYLES: dict[ImportOutcome, str] = {
    ImportOutcome.CREATED: "created",
    ImportOutcome.SKIPPED: "skipped",
    ImportOutcome.FAILED: "failed",
}


def create_results_table(results: list[ImportResult]) -> Table:
    """Create a Rich table displaying import results.

    Builds a table with Outcome, Kind, Name and Identity columns. Failed
    results show their error message in place of the identity.

    Args:
        results: Import results to display.

    Returns:
        Rich Table configured for results display.
    """
    table = Table(
        title="Import Results",
        show_header=True,
        header_style="bold_header",
        border_style="border",
    )
    table.add_column("Outcome", width=8, justify="center")
    table.add_column("Kind", width=12)
    table.add_column("Name", no_wrap=True)
    table.add_column("Identity")

    for result in results:
        style = _OUTCOME_STYLES[result.outcome]
        detail = result.message if result.failed else result.identity
        table.add_row(
            f"[{style}]{result.outcome.value}[/{style}]",
            f"{result.kind.prefix}_{result.ordinal}",
            result.name,
            f"[muted]{detail or ''}[/muted]",
        )

    return table


def print_import_summary(report: RunReport) -> None:
    """Print counts of created, skipped and failed entries.

    Args:
        report: Report of an import run.
    """
    created = report.count(ImportOutcome.CREATED)
    skipped = report.count(ImportOutcome.SKIPPED)
    failed = report.count(ImportOutcome.FAILED)

    if failed == 0:
        print_success(f"Import complete: {created} created, {skipped} already present.")
        return

    console.print(
        f"\n[created]{created} created[/created], [skipped]{skipped} skipped[/skipped], "
        f"[failed]{failed} failed[/failed]"
    )
    if report.aborted_at is not None:
        console.print(f"[muted]Import stopped after {report.aborted_at.label}.[/muted]")


def print_messages(report: RunReport) -> None:
    """Print all collected warnings, then all errors, on stderr.

    Args:
        report: Report of any run.
    """
    for warning in report.warnings:
        print_warning(warning)
    for error in report.errors:
        print_error(error)
