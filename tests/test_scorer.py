"""
Tests for the safety score aggregator (scorer.analyze_transaction_safety):
deductions per check, check order, clamping, and level bands.
"""

from __future__ import annotations

import pytest

from blinkguard.analysis_engine.models import (
    BalanceChange,
    FlagType,
    SafetyLevel,
    Severity,
    TransactionSimulation,
)
from blinkguard.analysis_engine.scorer import (
    CAUTION_MIN_SCORE,
    SAFE_MIN_SCORE,
    analyze_transaction_safety,
    clamp_score,
    level_for_score,
)
from blinkguard.analysis_engine.signals import HeuristicConfig

USER = "7xKXtg2CW87d97TXJSDpbD5jBkheTqA83TZRuJosgAsU"
UNKNOWN_PROGRAM = "11111111111111111111111111111111"
TRUSTED_DOMAIN = "jup.ag"


def _sim(pre: int = 1000, post: int = 1000, logs: list[str] | None = None) -> TransactionSimulation:
    return TransactionSimulation(
        success=True,
        logs=logs or [],
        balance_changes=[BalanceChange(USER, pre_balance=pre, post_balance=post)],
    )


def test_clean_transaction_is_safe():
    result = analyze_transaction_safety(_sim(), TRUSTED_DOMAIN)
    assert result.score == 100
    assert result.level is SafetyLevel.SAFE
    assert result.flags == ()
    assert result.reasons == ()


@pytest.mark.parametrize(
    "post, expected_score, flag_type, severity, reason",
    [
        (100, 50, FlagType.DRAINER, Severity.CRITICAL, "High balance transfer detected: 90%"),
        (400, 70, FlagType.HIGH_TRANSFER, Severity.HIGH, "Significant balance transfer: 60%"),
        (500, 85, FlagType.HIGH_TRANSFER, Severity.MEDIUM, "Moderate balance transfer: 50%"),
        (625, 85, FlagType.HIGH_TRANSFER, Severity.MEDIUM, "Moderate balance transfer: 37.5%"),
    ],
)
def test_balance_transfer_bands(post, expected_score, flag_type, severity, reason):
    result = analyze_transaction_safety(_sim(pre=1000, post=post), TRUSTED_DOMAIN)
    assert result.score == expected_score
    assert len(result.flags) == 1
    assert result.flags[0].type is flag_type
    assert result.flags[0].severity is severity
    assert result.reasons == (reason,)


def test_ten_percent_transfer_is_not_flagged():
    result = analyze_transaction_safety(_sim(pre=1000, post=900), TRUSTED_DOMAIN)
    assert result.score == 100
    assert result.flags == ()


def test_drainer_flag_description():
    result = analyze_transaction_safety(_sim(pre=1000, post=50), TRUSTED_DOMAIN)
    assert result.flags[0].description == "Transaction transfers 95.0% of balance"


def test_drainer_from_unknown_domain_is_high_risk():
    """95% drain requested from an unknown site: drainer plus domain risk."""
    result = analyze_transaction_safety(_sim(pre=1000, post=50), "unknown")
    assert result.score <= 50
    assert result.score == 45
    assert result.level is SafetyLevel.HIGH_RISK
    assert [f.type for f in result.flags] == [FlagType.DRAINER, FlagType.DOMAIN_RISK]
    assert result.reasons[0] == "High balance transfer detected: 95%"
    assert result.reasons[1] == "Domain trust check failed"


def test_unlimited_approval_deducts_forty():
    result = analyze_transaction_safety(
        _sim(logs=["Program log: approve delegate unlimited amount"]), TRUSTED_DOMAIN
    )
    assert result.score == 60
    assert result.level is SafetyLevel.CAUTION
    assert result.flags[0].type is FlagType.APPROVAL
    assert result.flags[0].severity is Severity.CRITICAL
    assert result.reasons == ("Unlimited or suspicious token approval detected",)


def test_plain_approval_deducts_twenty():
    result = analyze_transaction_safety(_sim(logs=["Program log: Instruction: Approve"]), TRUSTED_DOMAIN)
    assert result.score == 80
    assert result.level is SafetyLevel.SAFE
    assert result.flags[0].severity is Severity.MEDIUM


def test_unknown_contract_deducts_ten():
    result = analyze_transaction_safety(_sim(logs=[f"Program {UNKNOWN_PROGRAM} invoke [1]"]), TRUSTED_DOMAIN)
    assert result.score == 90
    assert result.flags[0].type is FlagType.UNKNOWN_CONTRACT
    assert result.flags[0].severity is Severity.MEDIUM
    assert result.reasons == ("Unknown contract detected",)


def test_untrusted_domain_deducts_five():
    result = analyze_transaction_safety(_sim(), "evil.example")
    assert result.score == 95
    assert result.flags[0].type is FlagType.DOMAIN_RISK
    assert result.flags[0].severity is Severity.LOW
    assert result.flags[0].description == "Domain evil.example has limited trust signals"


def test_all_checks_fire_in_order_and_score_clamps_to_zero():
    logs = [
        f"Program {UNKNOWN_PROGRAM} invoke [1]",
        "Program log: Instruction: Approve unlimited",
    ]
    result = analyze_transaction_safety(_sim(pre=1000, post=0, logs=logs), "evil.example")
    assert result.score == 0
    assert result.level is SafetyLevel.HIGH_RISK
    assert [f.type for f in result.flags] == [
        FlagType.DRAINER,
        FlagType.APPROVAL,
        FlagType.UNKNOWN_CONTRACT,
        FlagType.DOMAIN_RISK,
    ]
    assert len(result.reasons) == len(result.flags)


def test_simulation_is_echoed():
    simulation = _sim(pre=1000, post=300)
    result = analyze_transaction_safety(simulation, TRUSTED_DOMAIN)
    assert result.transaction_simulation is simulation
    assert result.to_dict()["transactionSimulation"]["balanceChanges"][0]["change"] == -700


def test_empty_simulation():
    result = analyze_transaction_safety(TransactionSimulation(success=True), TRUSTED_DOMAIN)
    assert result.score == 100


def test_configured_extras_change_verdict():
    config = HeuristicConfig().with_extras(trusted_programs=[UNKNOWN_PROGRAM], trusted_domains=["evil.example"])
    result = analyze_transaction_safety(
        _sim(logs=[f"Program {UNKNOWN_PROGRAM} invoke [1]"]), "evil.example", config
    )
    assert result.score == 100


def test_level_bands():
    assert level_for_score(100) is SafetyLevel.SAFE
    assert level_for_score(SAFE_MIN_SCORE) is SafetyLevel.SAFE
    assert level_for_score(SAFE_MIN_SCORE - 1) is SafetyLevel.CAUTION
    assert level_for_score(CAUTION_MIN_SCORE) is SafetyLevel.CAUTION
    assert level_for_score(CAUTION_MIN_SCORE - 1) is SafetyLevel.HIGH_RISK
    assert level_for_score(0) is SafetyLevel.HIGH_RISK


def test_level_is_monotonic_in_score():
    order = [SafetyLevel.HIGH_RISK, SafetyLevel.CAUTION, SafetyLevel.SAFE]
    ranks = [order.index(level_for_score(score)) for score in range(0, 101)]
    assert ranks == sorted(ranks)


def test_clamp_score():
    assert clamp_score(-5) == 0
    assert clamp_score(105) == 100
    assert clamp_score(42) == 42
