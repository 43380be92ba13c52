"""
Document Classifier
===================

Keyword/phrase/pattern scoring over the profile table.

Scoring per profile:
    +2 per indicator keyword found in the text
    +3 per indicator phrase found in the text
    +2 per indicator regex that matches
    +1 per keyword or filename hint found in the filename
confidence = min(score / 10, 1.0)

When the best content score is below the acceptance threshold the filename
heuristics decide; when those fail too the generic profile is returned.
"""

import logging
import re
from dataclasses import dataclass, field
from typing import Any, Optional, Protocol

from app.services.document_profiles import DocumentTypeProfile, ProfileRegistry

logger = logging.getLogger(__name__)


KEYWORD_POINTS = 2
PHRASE_POINTS = 3
PATTERN_POINTS = 2
FILENAME_POINTS = 1
SCORE_SCALE = 10.0
GENERIC_CONFIDENCE = 0.3

# Ordered: first match wins
FILENAME_HEURISTICS: tuple[tuple[str, str, float], ...] = (
    (r"waiver", "Fee Waiver Request", 0.95),
    (r"\ba2\b", "A2 Form (Landlord and Tenant Board)", 0.90),
    (r"\bl1\b", "L1 Form (Landlord and Tenant Board)", 0.90),
    (r"\bltb\b|\b[nt]\d{1,2}\b", "Landlord and Tenant Board Form", 0.90),
    (r"lease|rental|tenancy", "Residential Lease Agreement", 0.85),
    (r"purchase|\bsale\b|\baps\b|\borea\b", "Agreement of Purchase and Sale (APS)", 0.90),
    (r"mortgage|\bcharge\b", "Mortgage Document", 0.88),
    (r"\bnoa\b|assessment", "Notice of Assessment (CRA)", 0.92),
    (r"appraisal", "Property Appraisal", 0.85),
    (r"insurance|\bpolicy\b", "Insurance Policy", 0.80),
)

JURISDICTION_PATTERNS: tuple[tuple[str, str, str], ...] = (
    ("Ontario", r"\bOntario\b|\bToronto\b|\bOttawa\b", "ON"),
    ("British Columbia", r"\bBritish\s+Columbia\b|\bVancouver\b", "BC"),
    ("Alberta", r"\bAlberta\b|\bCalgary\b|\bEdmonton\b", "AB"),
    ("Quebec", r"\bQu[eé]bec\b|\bMontr[eé]al\b", "QC"),
)


@dataclass
class ClassificationResult:
    document_type: str
    confidence: float
    method: str  # content | filename | fallback
    jurisdiction: str
    matches: list[str] = field(default_factory=list)
    scores: dict[str, int] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "document_type": self.document_type,
            "confidence": self.confidence,
            "method": self.method,
            "jurisdiction": self.jurisdiction,
            "matches": list(self.matches),
            "scores": dict(self.scores),
        }


class Classifier(Protocol):
    def classify(self, text: str, filename: str = "") -> ClassificationResult:
        ...


def normalize_filename(filename: str) -> str:
    """'Lease_Agreement-2024.PDF' -> 'lease agreement 2024 pdf'"""
    return re.sub(r"[^a-z0-9]+", " ", (filename or "").lower()).strip()


def _contains(haystack: str, needle: str) -> bool:
    return re.search(rf"\b{re.escape(needle.lower())}\b", haystack) is not None


def detect_jurisdiction(text: str, default: str = "Unknown") -> str:
    """Earliest mention wins. Province codes only count in an address position."""
    text = text or ""
    earliest: Optional[tuple[int, str]] = None
    for name, pattern, code in JURISDICTION_PATTERNS:
        hits = [
            re.search(pattern, text, re.IGNORECASE),
            re.search(rf"[,(]\s*{code}\b", text),
        ]
        for hit in hits:
            if hit and (earliest is None or hit.start() < earliest[0]):
                earliest = (hit.start(), name)
    return earliest[1] if earliest else default


class KeywordClassifier:
    """Deterministic classifier over a ProfileRegistry. Never raises."""

    def __init__(self, registry: ProfileRegistry, acceptance_threshold: float = 0.4):
        self.registry = registry
        self.acceptance_threshold = acceptance_threshold

    def score_profile(self, profile: DocumentTypeProfile, text: str, filename: str) -> tuple[int, list[str]]:
        """Score one profile. text and filename must already be lower-cased/normalized."""
        score = 0
        matches: list[str] = []
        ind = profile.indicators

        for keyword in ind.keywords:
            if _contains(text, keyword):
                score += KEYWORD_POINTS
                matches.append(f"keyword:{keyword}")

        for phrase in ind.phrases:
            if _contains(text, phrase):
                score += PHRASE_POINTS
                matches.append(f"phrase:{phrase}")

        for pattern in ind.patterns:
            if re.search(pattern, text, re.IGNORECASE):
                score += PATTERN_POINTS
                matches.append(f"pattern:{pattern}")

        if filename:
            for hint in dict.fromkeys(ind.keywords + profile.filename_hints):
                if _contains(filename, hint):
                    score += FILENAME_POINTS
                    matches.append(f"filename:{hint}")

        return score, matches

    def classify(self, text: str, filename: str = "") -> ClassificationResult:
        lowered = (text or "").lower()
        normalized_name = normalize_filename(filename)

        scores: dict[str, int] = {}
        best: Optional[DocumentTypeProfile] = None
        best_score = 0
        best_matches: list[str] = []

        for profile in self.registry.specific():
            score, matches = self.score_profile(profile, lowered, normalized_name)
            scores[profile.name] = score
            # Strict comparison keeps table order on ties
            if score > best_score:
                best, best_score, best_matches = profile, score, matches

        confidence = min(best_score / SCORE_SCALE, 1.0)
        if best is not None and confidence >= self.acceptance_threshold:
            logger.debug(f"Classified as {best.name} (score={best_score}, confidence={confidence:.2f})")
            return ClassificationResult(
                document_type=best.name,
                confidence=round(confidence, 2),
                method="content",
                jurisdiction=detect_jurisdiction(text, best.jurisdiction),
                matches=best_matches,
                scores=scores,
            )

        for pattern, name, heuristic_confidence in FILENAME_HEURISTICS:
            profile = self.registry.find(name)
            if profile is not None and re.search(pattern, normalized_name):
                logger.debug(f"Content score {best_score} below threshold, filename matched {name}")
                return ClassificationResult(
                    document_type=profile.name,
                    confidence=heuristic_confidence,
                    method="filename",
                    jurisdiction=detect_jurisdiction(text, profile.jurisdiction),
                    matches=[f"filename:{pattern}"],
                    scores=scores,
                )

        generic = self.registry.generic
        return ClassificationResult(
            document_type=generic.name,
            confidence=GENERIC_CONFIDENCE,
            method="fallback",
            jurisdiction=detect_jurisdiction(text, generic.jurisdiction),
            matches=[],
            scores=scores,
        )
