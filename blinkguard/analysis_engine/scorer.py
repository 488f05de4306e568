"""
Transaction safety score: rules and aggregation.

Starts at 100 and runs four independent checks in a fixed order (balance
transfer, approval, unknown contract, domain trust). Each check that fires
appends one flag and one reason and subtracts a fixed deduction. The score
is clamped to 0-100 and mapped to a level. Deductions, thresholds and order
are fixed; only the heuristic pattern tables are configurable.
"""

from __future__ import annotations

from blinkguard.analysis_engine.balance import (
    CAUTION_THRESHOLD,
    HIGH_TRANSFER_THRESHOLD,
    analyze_balance_transfers,
)
from blinkguard.analysis_engine.models import (
    FlagType,
    SafetyAnalysis,
    SafetyFlag,
    SafetyLevel,
    Severity,
    TransactionSimulation,
)
from blinkguard.analysis_engine.signals import (
    DEFAULT_HEURISTIC_CONFIG,
    HeuristicConfig,
    classify_contracts,
    classify_domain,
    detect_approval_pattern,
)
from blinkguard.guard_logging import get_logger

logger = get_logger(__name__)

BASE_SCORE = 100
MIN_SCORE = 0
MAX_SCORE = 100

DRAINER_PENALTY = 50
HIGH_TRANSFER_PENALTY = 30
MODERATE_TRANSFER_PENALTY = 15
CRITICAL_APPROVAL_PENALTY = 40
APPROVAL_PENALTY = 20
UNKNOWN_CONTRACT_PENALTY = 10
DOMAIN_RISK_PENALTY = 5

SAFE_MIN_SCORE = 80
CAUTION_MIN_SCORE = 50


def level_for_score(score: int) -> SafetyLevel:
    """>=80 safe, 50-79 caution, anything below 50 high_risk."""
    if score >= SAFE_MIN_SCORE:
        return SafetyLevel.SAFE
    if score >= CAUTION_MIN_SCORE:
        return SafetyLevel.CAUTION
    return SafetyLevel.HIGH_RISK


def clamp_score(score: int) -> int:
    return max(MIN_SCORE, min(MAX_SCORE, score))


def _transfer_description(percentage: float) -> str:
    return f"Transaction transfers {percentage * 100:.1f}% of balance"


def _format_percent(percentage: float) -> str:
    """Percent as the extension prints it: 95 not 95.0, 37.5 stays 37.5."""
    value = percentage * 100
    if value.is_integer() and abs(value) < 1e21:
        return str(int(value))
    return repr(value)


def analyze_transaction_safety(
    simulation: TransactionSimulation,
    domain: str,
    config: HeuristicConfig | None = None,
) -> SafetyAnalysis:
    """
    Score a simulated transaction requested from domain.

    Args:
        simulation: Simulator output (logs and balance changes); not modified.
        domain: Hostname of the requesting site, "unknown" when not known.
        config: Pattern tables for the classifiers; defaults when None.

    Returns:
        SafetyAnalysis echoing the simulation, flags and reasons in check order.
    """
    config = config or DEFAULT_HEURISTIC_CONFIG
    flags: list[SafetyFlag] = []
    reasons: list[str] = []
    score = BASE_SCORE

    # 1. Balance transfer: exactly one of the three bands, or none
    transfer = analyze_balance_transfers(simulation.balance_changes)
    pct = transfer.percentage
    if transfer.is_drainer:
        flags.append(SafetyFlag(FlagType.DRAINER, Severity.CRITICAL, _transfer_description(pct)))
        reasons.append(f"High balance transfer detected: {_format_percent(pct)}%")
        score -= DRAINER_PENALTY
    elif pct > HIGH_TRANSFER_THRESHOLD:
        flags.append(SafetyFlag(FlagType.HIGH_TRANSFER, Severity.HIGH, _transfer_description(pct)))
        reasons.append(f"Significant balance transfer: {_format_percent(pct)}%")
        score -= HIGH_TRANSFER_PENALTY
    elif pct > CAUTION_THRESHOLD:
        flags.append(SafetyFlag(FlagType.HIGH_TRANSFER, Severity.MEDIUM, _transfer_description(pct)))
        reasons.append(f"Moderate balance transfer: {_format_percent(pct)}%")
        score -= MODERATE_TRANSFER_PENALTY

    # 2. Approvals
    approval = detect_approval_pattern(simulation.logs, config.approval)
    if approval.has_suspicious_approval:
        flags.append(SafetyFlag(FlagType.APPROVAL, approval.severity, approval.description))
        reasons.append(approval.description)
        if approval.severity is Severity.CRITICAL:
            score -= CRITICAL_APPROVAL_PENALTY
        else:
            score -= APPROVAL_PENALTY

    # 3. Programs outside the allow-list
    contracts = classify_contracts(simulation.logs, config.contracts)
    if contracts.has_unknown_contract:
        flags.append(
            SafetyFlag(
                FlagType.UNKNOWN_CONTRACT,
                Severity.MEDIUM,
                "Transaction interacts with unknown or unverified contract",
            )
        )
        reasons.append("Unknown contract detected")
        score -= UNKNOWN_CONTRACT_PENALTY

    # 4. Domain trust
    domain_trust = classify_domain(domain, config.domains)
    if not domain_trust.is_trusted:
        flags.append(
            SafetyFlag(
                FlagType.DOMAIN_RISK,
                Severity.LOW,
                f"Domain {domain} has limited trust signals",
            )
        )
        reasons.append("Domain trust check failed")
        score -= DOMAIN_RISK_PENALTY

    score = clamp_score(score)
    level = level_for_score(score)
    logger.debug(
        "safety_score_computed",
        domain=domain,
        score=score,
        safety_level=level.value,
        flags=[f.type.value for f in flags],
        transfer_pct=round(pct, 4),
        unknown_contracts=list(contracts.unknown_contracts),
    )
    return SafetyAnalysis(
        level=level,
        score=score,
        flags=tuple(flags),
        reasons=tuple(reasons),
        transaction_simulation=simulation,
    )
