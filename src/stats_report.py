"""Print the persisted SlashCaster statistics.

Usage:
    python -m src.stats_report [--state-path config/bot-config.json]
"""

from argparse import ArgumentParser
from datetime import UTC, datetime
from pathlib import Path
import sys
import time

from rich.console import Console
from rich.table import Table

from src.helpers.config import get_optional_env
from src.helpers.formatting import relative_time
from src.state.models import PersistedState


console = Console()


def _timestamp(value: int) -> str:
    if not value:
        return "never"
    return datetime.fromtimestamp(value, tz=UTC).strftime("%Y-%m-%d %H:%M:%S UTC")


def build_table(state: PersistedState, now: float | None = None) -> Table:
    """Render a state snapshot as a two-column table."""
    now = time.time() if now is None else now
    stats = state.stats

    title = "SlashCaster statistics"
    if state.version:
        title += f" (v{state.version})"

    table = Table(title=title)
    table.add_column("Metric", style="cyan")
    table.add_column("Value", justify="right", style="yellow")

    table.add_row(
        "Last processed slot",
        f"{stats.current_slot:,}" if stats.current_slot is not None else "none",
    )
    table.add_row("Blocks parsed", f"{stats.blocks_parsed:,}")
    table.add_row("Last block time", _timestamp(stats.block_time))
    table.add_row("Attester slashings", f"{stats.att_slashings:,}")
    table.add_row("Proposer slashings", f"{stats.prop_slashings:,}")
    table.add_row(
        "Last slashing",
        f"{relative_time(now - stats.last_slashing)} ago"
        if stats.last_slashing
        else "never",
    )
    table.add_row("Messages sent", f"{stats.messages_sent:,}")
    table.add_row("Subscribers", f"{len(state.broadcast.telegram_subscribers):,}")

    return table


def main(state_path: Path) -> int:
    """Print statistics from a state file.

    Returns:
        Process exit code
    """
    if not state_path.exists():
        console.print(f"[red]No state file at {state_path}[/red]")
        return 1

    try:
        # Read directly: StateStore.load() would reset the start time
        state = PersistedState.model_validate_json(state_path.read_bytes())
    except ValueError as e:
        console.print(f"[red]Cannot read {state_path}: {e}[/red]")
        return 1

    console.print(build_table(state))
    return 0


def cli() -> None:
    """Command-line interface entry point."""
    parser = ArgumentParser(description="Show persisted SlashCaster statistics")
    parser.add_argument(
        "--state-path",
        default=get_optional_env("STATE_PATH", str(Path("config") / "bot-config.json")),
        help="Path to the state file (default: STATE_PATH or config/bot-config.json)",
    )
    args = parser.parse_args()

    sys.exit(main(Path(args.state_path)))


if __name__ == "__main__":
    cli()
