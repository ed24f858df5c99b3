"""Main CLI application entry point.

Defines the Typer application: ``ompsnap -a export|import -f <file>``.
"""

import logging
import sys
from pathlib import Path
from tempfile import TemporaryDirectory
from typing import Annotated

import typer
from rich.logging import RichHandler

from ompsnap import __version__
from ompsnap.cli.display import create_results_table, print_import_summary, print_messages
from ompsnap.cli.types import STDIO, ActionChoice
from ompsnap.core.exporter import ExportEngine
from ompsnap.core.paths import archive_path
from ompsnap.core.restore import RestoreEngine
from ompsnap.core.settings import Settings, SettingsError, load_settings
from ompsnap.core.snapshot import SnapshotError, SnapshotReader, SnapshotWriter, pack_snapshot
from ompsnap.models.report import RunReport
from ompsnap.protocol.config import ConnectionProfile, ConnectionProfileError, load_profile
from ompsnap.protocol.service import OmpService, ProtocolError
from ompsnap.utils.formatting import console, err_console, print_error, print_notice, print_success

logger = logging.getLogger(__name__)

# Create main Typer app
app = typer.Typer(
    name="ompsnap",
    help="Snapshot and restore OpenVAS manager configuration over OMP.",
    no_args_is_help=True,
    add_completion=False,
    rich_markup_mode="rich",
    context_settings={"help_option_names": ["-h", "--help"]},
)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"ompsnap version {__version__}")
        raise typer.Exit()


def configure_logging(verbose: bool) -> None:
    """Send log records to stderr through Rich.

    Args:
        verbose: Log at DEBUG instead of WARNING.
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=err_console, show_path=False)],
        force=True,
    )


def _load_settings() -> Settings:
    try:
        return load_settings()
    except SettingsError as e:
        print_error(f"Failed to load settings: {e}")
        raise typer.Exit(code=1) from e


def _make_service(profile_path: Path, settings: Settings) -> OmpService:
    return OmpService(
        profile_path,
        binary=settings.omp_binary,
        timeout=float(settings.timeout_seconds),
    )


def _export(file: str, profile_path: Path, settings: Settings) -> RunReport:
    """Export the configuration behind a connection profile."""
    to_stdout = file == STDIO
    report = RunReport(on_notice=lambda message: print_notice(message, to_stderr=to_stdout))

    try:
        profile = load_profile(profile_path)
    except ConnectionProfileError as e:
        report.warn(f"{e}; slave passwords are exported empty")
        profile = ConnectionProfile()

    service = _make_service(profile_path, settings)
    with TemporaryDirectory(prefix="ompsnap-") as tmp:
        workdir = Path(tmp)
        writer = SnapshotWriter(workdir, source=profile.host)
        engine = ExportEngine(
            service,
            writer,
            report=report,
            slave_password=profile.password.get_secret_value(),
        )
        try:
            engine.run()
            writer.close()
            if to_stdout:
                pack_snapshot(workdir, sys.stdout.buffer)
                sys.stdout.buffer.flush()
            else:
                target = archive_path(file)
                pack_snapshot(workdir, target)
                print_success(f"Snapshot written to {target}")
        except (ProtocolError, SnapshotError) as e:
            report.error(str(e))

    return report


def _import(
    file: str,
    profile_path: Path,
    settings: Settings,
    *,
    empty_trashcan: bool,
    verbose: bool,
) -> RunReport:
    """Replay a snapshot against the manager behind a connection profile."""
    source = sys.stdin.buffer if file == STDIO else archive_path(file)
    try:
        reader = SnapshotReader.open(source)
    except SnapshotError as e:
        print_error(str(e))
        raise typer.Exit(code=1) from e

    report = RunReport(on_notice=print_notice)
    engine = RestoreEngine(
        _make_service(profile_path, settings),
        reader,
        report=report,
        empty_trashcan=empty_trashcan,
    )
    try:
        engine.run()
    except ProtocolError as e:
        report.error(str(e))

    if verbose and report.results:
        console.print()
        console.print(create_results_table(report.results))
    print_import_summary(report)
    return report


@app.command()
def main(
    action: Annotated[
        ActionChoice,
        typer.Option(
            "--action",
            "-a",
            case_sensitive=False,
            help="Import or export the configuration.",
        ),
    ],
    file: Annotated[
        str,
        typer.Option(
            "--file",
            "-f",
            help="Snapshot to write or read (.tgz is appended); '-' for stdout/stdin.",
        ),
    ],
    config: Annotated[
        Path | None,
        typer.Option(
            "--config",
            "-c",
            help="omp connection profile, mandatory on imports.",
        ),
    ] = None,
    no_empty_trashcan: Annotated[
        bool,
        typer.Option(
            "--no-empty-trashcan",
            help="Keep the destination trashcan on import.",
        ),
    ] = False,
    verbose: Annotated[
        bool,
        typer.Option(
            "--verbose",
            "-v",
            help="Enable verbose output.",
        ),
    ] = False,
    version: Annotated[
        bool | None,
        typer.Option(
            "--version",
            "-V",
            callback=version_callback,
            is_eager=True,
            help="Show version and exit.",
        ),
    ] = None,
) -> None:
    """ompsnap - snapshot and restore OpenVAS manager configuration.

    Exports filters, report formats, scan configs, slaves, schedules,
    targets, alerts, tasks, notes and overrides into a snapshot, and
    imports them into another manager, merging entities by name.
    """
    configure_logging(verbose)
    settings = _load_settings()

    if action is ActionChoice.IMPORT:
        if config is None:
            print_error("-c is required for import")
            raise typer.Exit(code=1)
        report = _import(
            file,
            config,
            settings,
            empty_trashcan=settings.empty_trashcan and not no_empty_trashcan,
            verbose=verbose,
        )
    else:
        report = _export(file, config or settings.omp_config, settings)

    print_messages(report)
    if report.failed:
        raise typer.Exit(code=1)


if __name__ == "__main__":
    app()
