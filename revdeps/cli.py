"""
revdeps CLI -- Reverse Dependency Index
=========================================

Click-based command-line interface.  Scans a directory of executables and
prints, for every shared library named in a ``DT_NEEDED`` entry, the files
that depend on it.

Usage::

    # Scan the configured directory (default: /)
    revdeps

    # Scan /usr/bin
    revdeps /usr/bin

    # JSON to stdout
    revdeps /usr/bin --json

    # Rich table instead of the plain report
    revdeps /usr/bin --table --show-skipped

    # Save the report
    revdeps /usr/bin --output deps.json

References:
    - Click documentation: https://click.palletsprojects.com/
"""

from __future__ import annotations

import sys
from pathlib import Path

import click

from shared.config import RevdepsSettings
from shared.console import RevdepsConsole
from shared.logger import RevdepsLogger

from revdeps.core.engine import RevdepsEngine
from revdeps.core.errors import DirectoryListingError
from revdeps.output.console import RevdepsConsoleOutput
from revdeps.output.report import RevdepsReportGenerator, render_text


@click.command("revdeps")
@click.argument("directory", required=False, type=click.Path(file_okay=False))
@click.option(
    "--config", "-c",
    "config_path",
    type=click.Path(exists=True, dir_okay=False),
    default=None,
    help="TOML configuration file.  Default: config.toml in the project root.",
)
@click.option(
    "--output", "-o",
    "output_path",
    type=click.Path(),
    default=None,
    help="Also write the report to this path (.json or text).",
)
@click.option(
    "--json", "json_output",
    is_flag=True,
    default=False,
    help="Print the report as JSON to stdout.",
)
@click.option(
    "--table", "-t",
    is_flag=True,
    default=False,
    help="Print a Rich table instead of the plain text report.",
)
@click.option(
    "--show-skipped",
    is_flag=True,
    default=False,
    help="With --table, also list files that were skipped.",
)
@click.option(
    "--verbose", "-v",
    is_flag=True,
    default=False,
    help="Enable debug logging (includes non-ELF files).",
)
@click.option(
    "--log-file",
    type=click.Path(dir_okay=False),
    default=None,
    help="Write logs to this rotating log file.",
)
def revdeps_cli(
    directory: str | None,
    config_path: str | None,
    output_path: str | None,
    json_output: bool,
    table: bool,
    show_skipped: bool,
    verbose: bool,
    log_file: str | None,
) -> None:
    """Reverse dependency index for a directory of ELF executables.

    DIRECTORY is scanned non-recursively; every entry is treated as a
    candidate object file.  Files that cannot be parsed are reported on
    stderr and left out of the report.

    Examples:

    \b
        revdeps /usr/bin
        revdeps /usr/lib --json > libs.json
    """
    status = RevdepsConsole(stderr=True)

    if config_path is not None:
        config = RevdepsSettings.load(config_path)
    else:
        try:
            config = RevdepsSettings.load()
        except Exception:
            config = RevdepsSettings()

    gs = config.global_settings
    logger = RevdepsLogger(
        "engine",
        log_level="DEBUG" if verbose else gs.log_level,
        log_file=log_file or gs.log_file,
        json_logs=gs.log_json,
    )

    if table and json_output:
        status.error("Cannot use --table and --json together.")
        sys.exit(2)

    engine = RevdepsEngine(config=config, logger=logger)
    try:
        with logger.timed("directory scan"):
            report = engine.scan_directory(directory)
    except DirectoryListingError as exc:
        status.error(str(exc))
        sys.exit(1)
    except KeyboardInterrupt:
        status.warning("Scan interrupted by user.")
        sys.exit(130)

    generator = RevdepsReportGenerator()
    if json_output:
        click.echo(generator.to_json(report))
    elif table:
        RevdepsConsoleOutput().display(report, show_skipped=show_skipped)
    else:
        click.echo(render_text(report.libraries), nl=False)

    if output_path:
        if Path(output_path).suffix.lower() == ".json":
            saved = generator.generate_json(report, output_path)
        else:
            saved = generator.generate_text(report, output_path)
        status.success(f"Report saved: {saved}")


def main() -> None:
    """Entry point for the ``revdeps`` script and ``python -m revdeps``."""
    revdeps_cli()


if __name__ == "__main__":
    main()
