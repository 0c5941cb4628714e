"""
Rendering of clockboundd answers for the terminal.
Lazy-loaded only when the CLI asks for a table.
"""

from rich.console import Console
from rich.table import Table

from clockboundc.protocol import Now

console = Console()


def format_duration(nanos: int) -> str:
    """
    Format a nanosecond count with the largest fitting unit.

    Examples: 850ns, 250.165µs, 1.5ms, 2.000000001s
    """
    if nanos < 0:
        return "-" + format_duration(-nanos)
    if nanos < 1_000:
        return f"{nanos}ns"
    elif nanos < 1_000_000:
        unit, scale = "µs", 1_000
    elif nanos < 1_000_000_000:
        unit, scale = "ms", 1_000_000
    else:
        unit, scale = "s", 1_000_000_000

    whole, fraction = divmod(nanos, scale)
    text = f"{fraction:0{len(str(scale)) - 1}d}".rstrip("0")
    return f"{whole}.{text}{unit}" if text else f"{whole}{unit}"


def sync_status(now: Now) -> str:
    return "Unsynchronized" if now.header.unsynchronized else "Synchronized"


def render_now_table(now: Now) -> Table:
    """Build a table of the bound around the current time."""
    status_style = "red" if now.header.unsynchronized else "green"
    table = Table(title="clockboundd", show_header=True)
    table.add_column("Field", style="cyan")
    table.add_column("Value", style="green", justify="right")

    table.add_row("Status", f"[{status_style}]{sync_status(now)}[/{status_style}]")
    table.add_row("Current", now.time.isoformat())
    table.add_row("Earliest", now.bound.earliest.isoformat())
    table.add_row("Latest", now.bound.latest.isoformat())
    table.add_row("Range", format_duration(now.bound.width_ns))
    return table


def print_now_table(now: Now) -> None:
    console.print(render_now_table(now))
