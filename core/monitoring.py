"""Status snapshots and the CLI balance table.

The orchestrator publishes a :class:`StatusSnapshot` to its listeners
whenever its phase changes; any front end (the CLI here) can consume them
without touching orchestrator state.  :func:`build_balance_table` renders
the per-account balances with Rich.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, Optional

from rich import box
from rich.console import Console
from rich.table import Table

from core.accounts import Account
from core.utils import short_address
from operations.encoding import from_base_units

logger = logging.getLogger(__name__)


@dataclass
class StatusSnapshot:
    """Point-in-time view of the orchestrator for observers."""

    phase: str
    active_account: Optional[str]
    total_accounts: int
    bridge_repetitions: int
    stake_repetitions: int
    active_tasks: int = 0
    stats: Dict[str, int] = field(default_factory=dict)

    def summary(self) -> str:
        return (
            f"Status: {self.phase} | Active Account: {short_address(self.active_account)} | "
            f"Total Accounts: {self.total_accounts} | Auto Bridge: {self.bridge_repetitions}x | "
            f"Auto Stake: {self.stake_repetitions}x"
        )


def _format_balance(value: Optional[int]) -> str:
    if value is None:
        return "N/A"
    return f"{from_base_units(value):.4f}"


def build_balance_table(accounts: Iterable[Account], active_index: Optional[int] = None) -> Table:
    """Rich table of address / native HLS / token HLS per account."""
    table = Table(title="Wallet Information", box=box.SIMPLE)
    table.add_column("#", justify="right")
    table.add_column("Address")
    table.add_column("HLS", justify="right")
    table.add_column("HLS (token)", justify="right")
    for account in accounts:
        marker = "→ " if account.index == active_index else ""
        table.add_row(
            f"{marker}{account.index + 1}",
            short_address(account.address),
            _format_balance(account.native_balance),
            _format_balance(account.token_balance),
        )
    return table


def print_balances(
    accounts: Iterable[Account],
    console: Optional[Console] = None,
    active_index: Optional[int] = None,
) -> None:
    (console or Console()).print(build_balance_table(accounts, active_index))


def log_snapshot(snapshot: StatusSnapshot) -> None:
    """Listener that writes every status change to the log."""
    logger.info(snapshot.summary())
