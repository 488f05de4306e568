"""
Data model for transaction safety analysis.

Simulation input (BalanceChange, TransactionSimulation) and verdict output
(SafetyFlag, SafetyAnalysis). All are frozen dataclasses; the engine reads
its input and builds a fresh result per call. to_dict()/from_dict() use the
camelCase wire names the browser extension and the HTTP API exchange.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterable, Mapping

from blinkguard.core.exceptions import InvalidInputError


class SafetyLevel(str, Enum):
    SAFE = "safe"
    CAUTION = "caution"
    HIGH_RISK = "high_risk"
    UNKNOWN = "unknown"


class FlagType(str, Enum):
    DRAINER = "drainer"
    APPROVAL = "approval"
    UNKNOWN_CONTRACT = "unknown_contract"
    HIGH_TRANSFER = "high_transfer"
    FLAGGED_ADDRESS = "flagged_address"
    DOMAIN_RISK = "domain_risk"


class Severity(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


def _as_balance(value: Any, name: str) -> int:
    """Accept a non-negative integer (or integral float from JSON)."""
    if isinstance(value, bool):
        raise InvalidInputError(f"{name} must be an integer")
    if isinstance(value, float):
        if not value.is_integer():
            raise InvalidInputError(f"{name} must be a whole number of base units")
        value = int(value)
    if not isinstance(value, int):
        raise InvalidInputError(f"{name} must be an integer")
    if value < 0:
        raise InvalidInputError(f"{name} must be non-negative")
    return value


@dataclass(frozen=True)
class BalanceChange:
    """
    Pre/post balance of one account in base units (lamports).

    change is always post_balance - pre_balance; it is derived when omitted
    and rejected when it disagrees.
    """

    account: str
    pre_balance: int
    post_balance: int
    change: int | None = None

    def __post_init__(self) -> None:
        pre = _as_balance(self.pre_balance, "preBalance")
        post = _as_balance(self.post_balance, "postBalance")
        object.__setattr__(self, "pre_balance", pre)
        object.__setattr__(self, "post_balance", post)
        expected = post - pre
        if self.change is None:
            object.__setattr__(self, "change", expected)
        elif isinstance(self.change, bool) or self.change != expected:
            raise InvalidInputError(
                f"change for account {self.account} must equal postBalance - preBalance "
                f"({expected}), got {self.change}"
            )
        else:
            object.__setattr__(self, "change", int(self.change))

    def to_dict(self) -> dict[str, Any]:
        return {
            "account": self.account,
            "preBalance": self.pre_balance,
            "postBalance": self.post_balance,
            "change": self.change,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> BalanceChange:
        if not isinstance(data, Mapping):
            raise InvalidInputError("balance change must be an object")
        for key in ("preBalance", "postBalance"):
            if key not in data:
                raise InvalidInputError(f"balance change missing {key}")
        return cls(
            account=str(data.get("account") or "unknown"),
            pre_balance=data["preBalance"],
            post_balance=data["postBalance"],
            change=data.get("change"),
        )


@dataclass(frozen=True)
class TransactionSimulation:
    """Dry-run result handed in by the simulator: logs in program order plus balance deltas."""

    success: bool
    logs: tuple[str, ...] = ()
    balance_changes: tuple[BalanceChange, ...] = ()
    error: str | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "logs", tuple(self.logs))
        object.__setattr__(self, "balance_changes", tuple(self.balance_changes))

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {
            "success": self.success,
            "logs": list(self.logs),
            "balanceChanges": [c.to_dict() for c in self.balance_changes],
        }
        if self.error is not None:
            out["error"] = self.error
        return out

    @classmethod
    def from_logs(
        cls,
        logs: Iterable[str],
        *,
        success: bool = True,
        error: str | None = None,
    ) -> TransactionSimulation:
        """Build a simulation whose balance changes are parsed out of the logs."""
        from blinkguard.analysis_engine.balance import parse_balance_changes

        logs = tuple(logs)
        return cls(
            success=success,
            logs=logs,
            balance_changes=tuple(parse_balance_changes(logs)),
            error=error,
        )

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> TransactionSimulation:
        """
        Parse the wire form. success defaults to True and logs to [];
        when balanceChanges is absent it is derived from the logs.
        """
        if not isinstance(data, Mapping):
            raise InvalidInputError("transactionData must be an object")
        success = data.get("success", True)
        if not isinstance(success, bool):
            raise InvalidInputError("success must be a boolean")
        logs = data.get("logs") or []
        if not isinstance(logs, list) or not all(isinstance(line, str) for line in logs):
            raise InvalidInputError("logs must be a list of strings")
        error = data.get("error")
        if error is not None and not isinstance(error, str):
            error = str(error)
        if data.get("balanceChanges") is None:
            return cls.from_logs(logs, success=success, error=error)
        raw_changes = data["balanceChanges"]
        if not isinstance(raw_changes, list):
            raise InvalidInputError("balanceChanges must be a list")
        return cls(
            success=success,
            logs=tuple(logs),
            balance_changes=tuple(BalanceChange.from_dict(c) for c in raw_changes),
            error=error,
        )


@dataclass(frozen=True)
class SafetyFlag:
    """One explainable finding; appended in evaluation order."""

    type: FlagType
    severity: Severity
    description: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.type.value,
            "severity": self.severity.value,
            "description": self.description,
        }


@dataclass(frozen=True)
class SafetyAnalysis:
    """
    Verdict for one transaction.

    score is 0-100, higher is safer. flags and reasons are in the order the
    checks ran. transaction_simulation echoes the analysed input, if any.
    """

    level: SafetyLevel
    score: int
    flags: tuple[SafetyFlag, ...] = ()
    reasons: tuple[str, ...] = ()
    transaction_simulation: TransactionSimulation | None = field(default=None, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "flags", tuple(self.flags))
        object.__setattr__(self, "reasons", tuple(self.reasons))

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {
            "level": self.level.value,
            "score": self.score,
            "flags": [f.to_dict() for f in self.flags],
            "reasons": list(self.reasons),
        }
        if self.transaction_simulation is not None:
            out["transactionSimulation"] = self.transaction_simulation.to_dict()
        return out
