"""Review helpers for scraped medical content.

Nothing here blocks publication.  :func:`sanitize_medical_content` annotates
text with warnings and sets ``review_required`` so an admin looks at it before
it is reused; the orchestrator logs the warnings and passes them on.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field

MARKETING_PHRASES = [
    re.compile(r"breakthrough", re.IGNORECASE),
    re.compile(r"miracle", re.IGNORECASE),
    re.compile(r"revolutionary", re.IGNORECASE),
    re.compile(r"life-changing", re.IGNORECASE),
    re.compile(r"guaranteed", re.IGNORECASE),
    re.compile(r"clinically proven", re.IGNORECASE),
]

UNSUBSTANTIATED_CLAIMS = [
    re.compile(r"cures? (cancer|diabetes|alzheimer)", re.IGNORECASE),
    re.compile(r"prevents? all", re.IGNORECASE),
    re.compile(r"100% effective", re.IGNORECASE),
    re.compile(r"no side effects", re.IGNORECASE),
]

REQUIRES_EVIDENCE = [
    "reduces risk",
    "improves outcomes",
    "clinically significant",
    "statistically significant",
    "evidence-based",
]

QUALITY_INDICATORS: dict[str, list[str]] = {
    "high": [
        "peer-reviewed",
        "randomized controlled trial",
        "systematic review",
        "meta-analysis",
        "published in",
        "doi:",
        "pmid:",
    ],
    "medium": [
        "observational study",
        "case series",
        "expert opinion",
        "clinical experience",
        "preliminary findings",
    ],
    "low": [
        "anecdotal",
        "testimonial",
        "no references",
        "blog post",
        "advertisement",
    ],
}

REMOVED_CLAIM = "[UNSUBSTANTIATED CLAIM REMOVED]"


@dataclass
class SanitizationReport:
    sanitized: str
    warnings: list[str] = field(default_factory=list)

    @property
    def review_required(self) -> bool:
        return bool(self.warnings)


def sanitize_medical_content(content: str) -> SanitizationReport:
    """Flag marketing language and unsupported claims in *content*.

    ``sanitized`` is *content* with unsubstantiated claims replaced by
    ``[UNSUBSTANTIATED CLAIM REMOVED]``; marketing phrases are only flagged.
    """
    sanitized = content
    warnings: list[str] = []
    lowered = content.lower()

    for pattern in MARKETING_PHRASES:
        if pattern.search(content):
            warnings.append(f"Contains marketing language: {pattern.pattern}")

    for pattern in UNSUBSTANTIATED_CLAIMS:
        if pattern.search(content):
            warnings.append(f"Contains unsubstantiated claim: {pattern.pattern}")
            sanitized = pattern.sub(REMOVED_CLAIM, sanitized)

    has_evidence = any(i in lowered for i in QUALITY_INDICATORS["high"])
    for phrase in REQUIRES_EVIDENCE:
        if phrase in lowered and not has_evidence:
            warnings.append(f'Claim "{phrase}" lacks supporting evidence')

    return SanitizationReport(sanitized=sanitized, warnings=warnings)


def assess_source_quality(content: str) -> str:
    """Return ``high``/``medium``/``low`` for the best tier of indicator found.

    ``unknown`` when no indicator appears at all.
    """
    lowered = content.lower()
    for tier in ("high", "medium", "low"):
        if any(i in lowered for i in QUALITY_INDICATORS[tier]):
            return tier
    return "unknown"
