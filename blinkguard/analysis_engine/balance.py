"""
Balance transfer analysis.

Interprets caller-supplied pre/post balances into the share of a balance the
transaction moves. The account with the largest absolute change is taken to
be the user's own account; that is a heuristic, not an identification, and a
transaction with a bigger unrelated change can hide the real drain.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from fractions import Fraction
from typing import Iterable, Sequence

from blinkguard.analysis_engine.models import BalanceChange

DRAINER_THRESHOLD = 0.9
HIGH_TRANSFER_THRESHOLD = 0.5
CAUTION_THRESHOLD = 0.1

# Simulator log form: "... account: <pubkey> balance: <pre> -> <post>"
BALANCE_LOG_PATTERN = re.compile(r"balance:\s*(\d+)\s*->\s*(\d+)", re.IGNORECASE)
ACCOUNT_LOG_PATTERN = re.compile(r"account:\s*([A-Za-z0-9]{32,44})", re.IGNORECASE)
UNKNOWN_ACCOUNT = "unknown"


@dataclass(frozen=True)
class BalanceTransferAnalysis:
    is_drainer: bool
    percentage: float
    """Fraction of the pre-balance moved, 0.0 when pre-balance is 0."""
    total_transferred: int
    account: str | None = None


def analyze_balance_transfers(balance_changes: Sequence[BalanceChange]) -> BalanceTransferAnalysis:
    """
    Pick the largest absolute change (first one wins on ties) and compute
    its ratio to the pre-balance. Fraction keeps the division exact for
    balances beyond 2**63 before converting to float.
    """
    if not balance_changes:
        return BalanceTransferAnalysis(is_drainer=False, percentage=0.0, total_transferred=0)

    largest = balance_changes[0]
    for change in balance_changes[1:]:
        if abs(change.change) > abs(largest.change):
            largest = change

    total_transferred = abs(largest.change)
    if largest.pre_balance > 0:
        percentage = float(Fraction(total_transferred, largest.pre_balance))
    else:
        percentage = 0.0

    return BalanceTransferAnalysis(
        is_drainer=percentage >= DRAINER_THRESHOLD,
        percentage=percentage,
        total_transferred=total_transferred,
        account=largest.account,
    )


def parse_balance_changes(logs: Iterable[str]) -> list[BalanceChange]:
    """Extract BalanceChange rows from simulator log lines; lines without a balance are skipped."""
    changes: list[BalanceChange] = []
    for line in logs:
        balance_match = BALANCE_LOG_PATTERN.search(line)
        if not balance_match:
            continue
        account_match = ACCOUNT_LOG_PATTERN.search(line)
        changes.append(
            BalanceChange(
                account=account_match.group(1) if account_match else UNKNOWN_ACCOUNT,
                pre_balance=int(balance_match.group(1)),
                post_balance=int(balance_match.group(2)),
            )
        )
    return changes
