"""
Heuristic classifiers over simulation logs and the requesting domain.

Each classifier is a pure function taking its pattern table explicitly, so
severity rules can be tested without the aggregator. Defaults mirror the
rules the browser extension shipped with; HeuristicConfig bundles the three
tables and lets deployments extend the allow-lists.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field, replace
from typing import Iterable, Sequence

from blinkguard.analysis_engine.models import Severity

# -----------------------------------------------------------------------------
# Pattern tables
# -----------------------------------------------------------------------------

JUPITER_PROGRAM_ID = "JUP6LkbZbjS1jKKwapdHNy74zcZ3tLUZoi5QNyVTaV4"
HELIUM_PROGRAM_ID = "hadeK9DLv9eA7ya5KCTqSvSvRZeJC3JgD5a9Y3CNbvu"


@dataclass(frozen=True)
class ApprovalPatterns:
    """
    Approval detection rules.

    keywords are matched case-insensitively as substrings; suspicious
    patterns are case-insensitive regexes run on the original log line and
    mean "approve an unlimited/maximum amount".
    """

    keywords: tuple[str, ...] = ("approve", "setAuthority", "authorize")
    suspicious: tuple[str, ...] = (
        r"approve.*unlimited",
        r"approve.*max",
        r"approve.*0xffff",
    )
    critical_description: str = "Unlimited or suspicious token approval detected"
    keyword_description: str = "Token approval operation detected"

    def compiled(self) -> tuple[re.Pattern[str], ...]:
        return _compile(self.suspicious)


@dataclass(frozen=True)
class ContractPatterns:
    """Program ID extraction regex (group 1 = ID) and the trusted program allow-list."""

    program_pattern: str = r"Program\s+([A-Za-z0-9]{32,44})"
    trusted_programs: frozenset[str] = frozenset({JUPITER_PROGRAM_ID, HELIUM_PROGRAM_ID})


@dataclass(frozen=True)
class DomainPatterns:
    """
    Trusted first-party domains. Matching is substring containment, so
    "jup.ag.evil.com" counts as trusted; kept that way for compatibility.
    """

    trusted_substrings: tuple[str, ...] = ("jup.ag", "helium.com", "dialect.to", "solana.com")


@dataclass(frozen=True)
class HeuristicConfig:
    approval: ApprovalPatterns = field(default_factory=ApprovalPatterns)
    contracts: ContractPatterns = field(default_factory=ContractPatterns)
    domains: DomainPatterns = field(default_factory=DomainPatterns)

    def with_extras(
        self,
        *,
        trusted_programs: Iterable[str] = (),
        trusted_domains: Iterable[str] = (),
    ) -> HeuristicConfig:
        """Return a copy with additional trusted programs and domain substrings."""
        contracts = replace(
            self.contracts,
            trusted_programs=self.contracts.trusted_programs | frozenset(trusted_programs),
        )
        extra_domains = tuple(d for d in trusted_domains if d not in self.domains.trusted_substrings)
        domains = replace(
            self.domains,
            trusted_substrings=self.domains.trusted_substrings + extra_domains,
        )
        return replace(self, contracts=contracts, domains=domains)


DEFAULT_APPROVAL_PATTERNS = ApprovalPatterns()
DEFAULT_CONTRACT_PATTERNS = ContractPatterns()
DEFAULT_DOMAIN_PATTERNS = DomainPatterns()
DEFAULT_HEURISTIC_CONFIG = HeuristicConfig()

_PATTERN_CACHE: dict[tuple[str, ...], tuple[re.Pattern[str], ...]] = {}


def _compile(patterns: tuple[str, ...]) -> tuple[re.Pattern[str], ...]:
    compiled = _PATTERN_CACHE.get(patterns)
    if compiled is None:
        compiled = tuple(re.compile(p, re.IGNORECASE) for p in patterns)
        _PATTERN_CACHE[patterns] = compiled
    return compiled


# -----------------------------------------------------------------------------
# Results
# -----------------------------------------------------------------------------


@dataclass(frozen=True)
class ApprovalAnalysis:
    has_suspicious_approval: bool
    severity: Severity
    description: str


@dataclass(frozen=True)
class ContractAnalysis:
    has_unknown_contract: bool
    unknown_contracts: tuple[str, ...] = ()


@dataclass(frozen=True)
class DomainAnalysis:
    is_trusted: bool
    reasons: tuple[str, ...] = ()


# -----------------------------------------------------------------------------
# Classifiers
# -----------------------------------------------------------------------------


def detect_approval_pattern(
    logs: Sequence[str],
    patterns: ApprovalPatterns = DEFAULT_APPROVAL_PATTERNS,
) -> ApprovalAnalysis:
    """
    First log line containing an approval keyword decides the result:
    critical if it also matches an unlimited-amount pattern, medium otherwise.
    Later approval lines are not considered.
    """
    keywords = tuple(k.lower() for k in patterns.keywords)
    suspicious = patterns.compiled()
    for line in logs:
        lowered = line.lower()
        if not any(keyword in lowered for keyword in keywords):
            continue
        if any(pattern.search(line) for pattern in suspicious):
            return ApprovalAnalysis(
                has_suspicious_approval=True,
                severity=Severity.CRITICAL,
                description=patterns.critical_description,
            )
        return ApprovalAnalysis(
            has_suspicious_approval=True,
            severity=Severity.MEDIUM,
            description=patterns.keyword_description,
        )
    return ApprovalAnalysis(has_suspicious_approval=False, severity=Severity.LOW, description="")


def extract_program_ids(
    logs: Sequence[str],
    patterns: ContractPatterns = DEFAULT_CONTRACT_PATTERNS,
) -> set[str]:
    """All program IDs mentioned as "Program <id>" across the logs (deduplicated)."""
    program_re = re.compile(patterns.program_pattern)
    program_ids: set[str] = set()
    for line in logs:
        for match in program_re.finditer(line):
            program_ids.add(match.group(1))
    return program_ids


def classify_contracts(
    logs: Sequence[str],
    patterns: ContractPatterns = DEFAULT_CONTRACT_PATTERNS,
) -> ContractAnalysis:
    unknown = extract_program_ids(logs, patterns) - patterns.trusted_programs
    return ContractAnalysis(
        has_unknown_contract=bool(unknown),
        unknown_contracts=tuple(sorted(unknown)),
    )


def classify_domain(
    domain: str,
    patterns: DomainPatterns = DEFAULT_DOMAIN_PATTERNS,
) -> DomainAnalysis:
    if any(trusted in domain for trusted in patterns.trusted_substrings):
        return DomainAnalysis(is_trusted=True)
    return DomainAnalysis(is_trusted=False, reasons=("Domain not in trusted list",))
