"""sessionsort command line interface."""

from pathlib import Path
from typing import Any, Dict, Optional

import click
from pydantic import ValidationError

from ..analysis.timestamps import TimestampSource
from ..config import Settings
from ..jobs.cancellation import CancellationToken, handle_signals
from ..jobs.organize import SetupError, organize
from ..jobs.progress import (
    CompositeProgressReporter,
    ConsoleProgressReporter,
    LoggingProgressReporter,
)
from ..logging_conf import setup_logging
from ..models.run import EXIT_SETUP_ERROR, NoisePolicy, RunStatus


class SetupFailed(click.ClickException):
    """Source or destination unusable; exits with EXIT_SETUP_ERROR."""

    exit_code = EXIT_SETUP_ERROR


@click.command()
@click.argument("source", type=click.Path(path_type=Path))
@click.argument("destination", type=click.Path(path_type=Path))
@click.option(
    "--policy",
    type=click.Choice(["gap", "density"]),
    default=None,
    help="Grouping algorithm (default: density).",
)
@click.option(
    "--gap-hours",
    type=float,
    default=None,
    help="Gap policy: idle hours that start a new session.",
)
@click.option(
    "--min-points",
    type=int,
    default=None,
    help="Density policy: photos needed around a core photo.",
)
@click.option(
    "--epsilon-hours",
    type=float,
    default=None,
    help="Density policy: neighbourhood radius in hours.",
)
@click.option(
    "--noise",
    "noise_policy",
    type=click.Choice([p.value for p in NoisePolicy]),
    default=None,
    help="Density policy: what to do with photos that join no cluster.",
)
@click.option(
    "--timestamp-source",
    type=click.Choice([s.value for s in TimestampSource]),
    default=None,
    help="Where photo timestamps come from.",
)
@click.option(
    "--workers",
    "max_workers",
    type=int,
    default=None,
    help="Parallel copy workers.",
)
@click.option(
    "--preserve-metadata/--no-preserve-metadata",
    default=None,
    help="Copy file times and mode along with the data.",
)
@click.option("--dry-run", is_flag=True, help="Show the plan, copy nothing.")
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    default=None,
)
def cli(
    source: Path,
    destination: Path,
    policy: Optional[str],
    gap_hours: Optional[float],
    min_points: Optional[int],
    epsilon_hours: Optional[float],
    noise_policy: Optional[str],
    timestamp_source: Optional[str],
    max_workers: Optional[int],
    preserve_metadata: Optional[bool],
    dry_run: bool,
    log_level: Optional[str],
) -> None:
    """Copy photos from SOURCE into per-session folders under DESTINATION.

    Sessions are bursts of photography separated by idle gaps. Each folder
    is named after its first photo (YYYY-MM-DD-HH-MM-SS). Files that already
    exist in the destination are skipped, so re-running is safe.
    """
    options: Dict[str, Any] = {
        "policy": policy,
        "gap_hours": gap_hours,
        "min_points": min_points,
        "epsilon_hours": epsilon_hours,
        "noise_policy": noise_policy,
        "timestamp_source": timestamp_source,
        "max_workers": max_workers,
        "preserve_metadata": preserve_metadata,
        "log_level": log_level,
    }
    try:
        settings = Settings(**{k: v for k, v in options.items() if v is not None})
    except ValidationError as e:
        raise click.UsageError(str(e)) from e

    setup_logging(settings.log_level)

    reporter = CompositeProgressReporter(
        ConsoleProgressReporter(), LoggingProgressReporter()
    )
    token = CancellationToken()

    try:
        with handle_signals(token):
            summary = organize(
                source,
                destination,
                settings=settings,
                reporter=reporter,
                token=token,
                dry_run=dry_run,
            )
    except SetupError as e:
        raise SetupFailed(str(e)) from e

    if summary.status == RunStatus.PLANNED:
        click.echo(
            f"Dry run: {summary.item_count} files in {summary.group_count} sessions"
        )
    else:
        click.echo(
            f"{summary.copied} copied, {summary.skipped} skipped, "
            f"{summary.failed} failed ({summary.groups_started} of "
            f"{summary.group_count} sessions)"
        )
    if summary.noise_dropped:
        click.echo(f"{summary.noise_dropped} photos joined no cluster and were not copied")
    if summary.scan_errors:
        click.echo(f"{summary.scan_errors} files could not be read during the scan")

    click.get_current_context().exit(summary.exit_code)


def main() -> None:
    cli(prog_name="sessionsort")


if __name__ == "__main__":
    main()
