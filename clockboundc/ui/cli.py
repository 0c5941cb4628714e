"""Main CLI entry point: query clockboundd from the shell."""

import logging
from typing import Optional

import typer

from clockboundc.client import ClockBoundClient
from clockboundc.configs import ClientSettings, get_client_settings
from clockboundc.errors import ClockBoundError
from clockboundc.timestamp import Timestamp

logger = logging.getLogger(__name__)

app = typer.Typer(
    add_completion=False,
    no_args_is_help=True,
    help="clockboundc - current time with a guaranteed error bound from clockboundd.",
)


# ============================================================================
# Shared setup
# ============================================================================

def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def _load_settings() -> ClientSettings:
    """Load configuration. Exits on error."""
    try:
        return get_client_settings()
    except ValueError as e:
        logger.error(f"Error loading configuration: {e}")
        raise typer.Exit(1)


def _connect(socket_path: Optional[str]) -> ClockBoundClient:
    """
    Connect to the daemon. Exits on error.

    An explicit socket path wins over the configured one.
    """
    settings = _load_settings()
    path = socket_path or settings.socket_path
    try:
        client = ClockBoundClient(path)
    except ClockBoundError as e:
        logger.error(str(e))
        raise typer.Exit(1)

    if settings.timeout is not None:
        client.settimeout(settings.timeout)
    return client


def _close(client: ClockBoundClient) -> None:
    try:
        client.close()
    except ClockBoundError as e:
        logger.error(str(e))
        raise typer.Exit(1)


def _parse_timestamp(text: str) -> Timestamp:
    try:
        return Timestamp.parse(text)
    except ValueError as e:
        raise typer.BadParameter(str(e))


# ============================================================================
# Commands
# ============================================================================

@app.command()
def now(
    socket_path: Optional[str] = typer.Argument(None, help="Path of clockboundd's socket"),
    table: bool = typer.Option(False, "--table", help="Render the result as a table"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug logging"),
) -> None:
    """
    Print the current time and its error bound.

    Example: clockboundc now /run/clockboundd/clockboundd.sock
    """
    _configure_logging(verbose)
    client = _connect(socket_path)
    try:
        result = client.now()
    except ClockBoundError as e:
        logger.error(str(e))
        _close(client)
        raise typer.Exit(1)

    if table:
        from clockboundc.ui.output import print_now_table
        print_now_table(result)
    else:
        from clockboundc.ui.output import format_duration, sync_status
        logger.info(sync_status(result))
        logger.info(f"Current:  {result.time}")
        logger.info(f"Earliest: {result.bound.earliest}")
        logger.info(f"Latest:   {result.bound.latest}")
        logger.info(f"Range:    {format_duration(result.bound.width_ns)}")

    _close(client)


@app.command()
def before(
    timestamp: str = typer.Argument(..., help="RFC 3339 time or unsigned nanoseconds"),
    socket_path: Optional[str] = typer.Option(None, "--socket-path", "-s", help="Path of clockboundd's socket"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug logging"),
) -> None:
    """
    Tell whether TIMESTAMP is certainly in the past.

    Example: clockboundc before 2024-01-01T00:00:00Z
    """
    _configure_logging(verbose)
    t = _parse_timestamp(timestamp)
    client = _connect(socket_path)
    try:
        result = client.before(t)
    except (ClockBoundError, ValueError) as e:
        logger.error(str(e))
        _close(client)
        raise typer.Exit(1)

    if result.header.unsynchronized:
        logger.warning("Unsynchronized")
    logger.info(f"Before {t}: {result.before}")
    _close(client)


@app.command()
def after(
    timestamp: str = typer.Argument(..., help="RFC 3339 time or unsigned nanoseconds"),
    socket_path: Optional[str] = typer.Option(None, "--socket-path", "-s", help="Path of clockboundd's socket"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug logging"),
) -> None:
    """
    Tell whether TIMESTAMP is certainly in the future.

    Example: clockboundc after 2554-01-01T00:00:00Z
    """
    _configure_logging(verbose)
    t = _parse_timestamp(timestamp)
    client = _connect(socket_path)
    try:
        result = client.after(t)
    except (ClockBoundError, ValueError) as e:
        logger.error(str(e))
        _close(client)
        raise typer.Exit(1)

    if result.header.unsynchronized:
        logger.warning("Unsynchronized")
    logger.info(f"After {t}: {result.after}")
    _close(client)


def run() -> None:
    """Entry point for the clockboundc console script."""
    app()


def run_now() -> None:
    """Entry point for clockboundc-now: a single Now query."""
    typer.run(now)


if __name__ == "__main__":
    run()
