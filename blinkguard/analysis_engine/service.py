"""
Safety analysis orchestration.

Registry first: a verified registry hit on the URL is a high-risk verdict
and skips scoring. Otherwise a simulation is scored; with neither, the
verdict is unknown. The service owns no global state; the registry store
is injected and its lifecycle belongs to the caller.
"""

from __future__ import annotations

from blinkguard.analysis_engine.models import (
    FlagType,
    SafetyAnalysis,
    SafetyFlag,
    SafetyLevel,
    Severity,
    TransactionSimulation,
)
from blinkguard.analysis_engine.scorer import analyze_transaction_safety
from blinkguard.analysis_engine.signals import DEFAULT_HEURISTIC_CONFIG, HeuristicConfig
from blinkguard.core.exceptions import AnalysisError, BlinkGuardError
from blinkguard.guard_logging import get_logger, short_url
from blinkguard.registry.matcher import RegistryCheck, RegistryMatcher
from blinkguard.registry.models import MaliciousUrlEntry
from blinkguard.registry.store import RegistryStore

logger = get_logger(__name__)

UNKNOWN_DOMAIN = "unknown"
UNKNOWN_SCORE = 50
NO_DATA_REASON = "No transaction data available for analysis"
REGISTRY_FLAG_DESCRIPTION = "URL flagged in community registry"


def flagged_analysis(check: RegistryCheck) -> SafetyAnalysis:
    """Verdict for a URL found in the registry."""
    return SafetyAnalysis(
        level=SafetyLevel.HIGH_RISK,
        score=0,
        flags=(SafetyFlag(FlagType.FLAGGED_ADDRESS, Severity.CRITICAL, REGISTRY_FLAG_DESCRIPTION),),
        reasons=(f"Flagged as malicious: {check.reason}",),
    )


def unknown_analysis() -> SafetyAnalysis:
    return SafetyAnalysis(level=SafetyLevel.UNKNOWN, score=UNKNOWN_SCORE, reasons=(NO_DATA_REASON,))


class SafetyAnalysisService:
    """
    Entry point for verdicts and registry operations.

    Safe to call from many threads at once: scoring is pure and the store
    serializes its own writes.
    """

    def __init__(self, store: RegistryStore, config: HeuristicConfig | None = None) -> None:
        self._store = store
        self._matcher = RegistryMatcher(store)
        self._config = config or DEFAULT_HEURISTIC_CONFIG

    @property
    def store(self) -> RegistryStore:
        return self._store

    @property
    def config(self) -> HeuristicConfig:
        return self._config

    def analyze(
        self,
        url: str | None = None,
        simulation: TransactionSimulation | None = None,
        domain: str | None = None,
    ) -> SafetyAnalysis:
        """
        Produce a verdict.

        Raises:
            RegistryStorageError: the registry could not be read.
            AnalysisError: scoring failed unexpectedly.
        """
        if url:
            check = self._matcher.check(url)
            if check.is_malicious:
                logger.warning("analysis_registry_flagged", url=short_url(url), reason=check.reason)
                return flagged_analysis(check)

        if simulation is None:
            logger.info("analysis_no_simulation", url=short_url(url))
            return unknown_analysis()

        domain = domain or UNKNOWN_DOMAIN
        try:
            analysis = analyze_transaction_safety(simulation, domain, self._config)
        except BlinkGuardError:
            raise
        except Exception as e:
            logger.exception("analysis_failed", domain=domain, error=str(e))
            raise AnalysisError(f"transaction analysis failed: {e}") from e

        logger.info(
            "analysis_completed",
            url=short_url(url),
            domain=domain,
            safety_level=analysis.level.value,
            score=analysis.score,
            flags=[f.type.value for f in analysis.flags],
        )
        return analysis

    def check_url(self, url: str) -> RegistryCheck:
        return self._matcher.check(url)

    def report_url(
        self,
        url: str,
        reason: str,
        reported_by: str,
        *,
        now: int | None = None,
    ) -> MaliciousUrlEntry:
        """Record an unverified report; an existing report for the same URL is replaced."""
        entry = MaliciousUrlEntry.from_report(url, reason, reported_by, reported_at=now)
        self._store.upsert(entry)
        logger.info("registry_report_received", url=short_url(url), reported_by=reported_by)
        return entry

    def verify_url(self, url: str, verified: bool = True) -> bool:
        return self._store.set_verified(url, verified)

    def registry(self) -> list[MaliciousUrlEntry]:
        return self._store.read()
