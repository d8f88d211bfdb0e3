"""Renders the live state of a KeyPool as a rich table."""

from typing import Optional

from rich.console import Console
from rich.table import Table

from .pool import KeyPool


def build_status_table(pool: KeyPool) -> Table:
    table = Table(title=f"API key pool ({pool.available_count()}/{len(pool)} available)")
    table.add_column("#", justify="right", style="dim")
    table.add_column("Key", style="cyan")
    table.add_column("Status")
    table.add_column("Cooldown", justify="right")
    table.add_column("Used", justify="center")

    for index, entry in enumerate(pool.snapshot(), start=1):
        if entry["available"]:
            status = "[green]available[/green]"
            cooldown = "-"
        else:
            status = "[red]rate limited[/red]"
            cooldown = f"{entry['cooldown_remaining']:.0f}s"
        used = "yes" if entry["last_used"] else "no"
        table.add_row(str(index), entry["key"], status, cooldown, used)

    return table


def print_status(pool: KeyPool, console: Optional[Console] = None) -> None:
    console = console or Console()
    console.print(build_status_table(pool))
