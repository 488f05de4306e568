"""
Transaction safety analysis engine.

Balance transfer analysis, heuristic classifiers, score aggregation and the
orchestrating SafetyAnalysisService.
"""

from blinkguard.analysis_engine.balance import (
    BalanceTransferAnalysis,
    analyze_balance_transfers,
    parse_balance_changes,
)
from blinkguard.analysis_engine.models import (
    BalanceChange,
    FlagType,
    SafetyAnalysis,
    SafetyFlag,
    SafetyLevel,
    Severity,
    TransactionSimulation,
)
from blinkguard.analysis_engine.scorer import analyze_transaction_safety, level_for_score
from blinkguard.analysis_engine.service import SafetyAnalysisService
from blinkguard.analysis_engine.signals import (
    ApprovalPatterns,
    ContractPatterns,
    DomainPatterns,
    HeuristicConfig,
    classify_contracts,
    classify_domain,
    detect_approval_pattern,
)

__all__ = [
    "ApprovalPatterns",
    "BalanceChange",
    "BalanceTransferAnalysis",
    "ContractPatterns",
    "DomainPatterns",
    "FlagType",
    "HeuristicConfig",
    "SafetyAnalysis",
    "SafetyAnalysisService",
    "SafetyFlag",
    "SafetyLevel",
    "Severity",
    "TransactionSimulation",
    "analyze_balance_transfers",
    "analyze_transaction_safety",
    "classify_contracts",
    "classify_domain",
    "detect_approval_pattern",
    "level_for_score",
    "parse_balance_changes",
]
