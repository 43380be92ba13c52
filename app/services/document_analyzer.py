"""
Document Analyzer
=================

Orchestrates one analysis:

    bytes -> TextExtractor -> Classifier -> FieldCompletenessChecker
          -> ValidityChecker -> AnalysisResult

The result is a read-only record. It is reported to the injected
LearningRepository as an "analysis" event and never stored by the analyzer.
"""

import logging
import uuid
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Optional

from app.core.utc import utc_now_iso
from app.services.document_classifier import Classifier, ClassificationResult, KeywordClassifier
from app.services.document_profiles import DocumentTypeProfile, ProfileRegistry
from app.services.field_completeness import CompletenessReport, FieldCompletenessChecker
from app.services.learning_store import LearningEvent, LearningRepository, NullLearningRepository
from app.services.text_extraction import PlainTextExtractor, TextExtractor
from app.services.validity_checker import ValidityChecker, ValidityReport

logger = logging.getLogger(__name__)


LOW_CONFIDENCE = 0.7
LOW_COMPLETENESS = 50
MANY_MISSING_FIELDS = 3


# ============================================================================
# RESULT
# ============================================================================

@dataclass
class AnalysisResult:
    """Everything one analysis produced."""
    document_type: str
    confidence: float
    method: str
    description: str
    category: str
    jurisdiction: str
    completeness: CompletenessReport
    validity: ValidityReport
    extracted_fields: dict[str, str] = field(default_factory=dict)
    issue_date: Optional[str] = None
    expiry_date: Optional[str] = None
    reasons: list[str] = field(default_factory=list)
    suggested_actions: list[str] = field(default_factory=list)
    legal_references: list[str] = field(default_factory=list)
    filename: str = ""
    correlation_id: str = ""
    timestamp: str = ""

    @property
    def completeness_score(self) -> int:
        return self.completeness.score

    @property
    def validity_status(self) -> str:
        return self.validity.status

    def to_dict(self) -> dict[str, Any]:
        return {
            "document_type": self.document_type,
            "confidence": self.confidence,
            "method": self.method,
            "description": self.description,
            "category": self.category,
            "jurisdiction": self.jurisdiction,
            "completeness": self.completeness.to_dict(),
            "validity": self.validity.to_dict(),
            "extracted_fields": dict(self.extracted_fields),
            "issue_date": self.issue_date,
            "expiry_date": self.expiry_date,
            "reasons": list(self.reasons),
            "suggested_actions": list(self.suggested_actions),
            "legal_references": list(self.legal_references),
            "filename": self.filename,
            "correlation_id": self.correlation_id,
            "timestamp": self.timestamp,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "AnalysisResult":
        return cls(
            document_type=data.get("document_type", ""),
            confidence=float(data.get("confidence", 0.0)),
            method=data.get("method", ""),
            description=data.get("description", ""),
            category=data.get("category", ""),
            jurisdiction=data.get("jurisdiction", "Unknown"),
            completeness=CompletenessReport.from_dict(data.get("completeness") or {}),
            validity=ValidityReport.from_dict(data.get("validity") or {}),
            extracted_fields=dict(data.get("extracted_fields") or {}),
            issue_date=data.get("issue_date"),
            expiry_date=data.get("expiry_date"),
            reasons=list(data.get("reasons", [])),
            suggested_actions=list(data.get("suggested_actions", [])),
            legal_references=list(data.get("legal_references", [])),
            filename=data.get("filename", ""),
            correlation_id=data.get("correlation_id", ""),
            timestamp=data.get("timestamp", ""),
        )


@dataclass
class DetectedError:
    type: str
    severity: str  # high | medium | low
    message: str

    def to_dict(self) -> dict[str, str]:
        return {"type": self.type, "severity": self.severity, "message": self.message}


# ============================================================================
# REASONS / ACTIONS
# ============================================================================

def build_reasons(completeness: CompletenessReport, validity: ValidityReport) -> list[str]:
    reasons = []
    if completeness.score == 100:
        reasons.append("All required fields are present")
    else:
        reasons.append(f"Document completeness: {completeness.score}%")
    reasons.extend(validity.issues)
    reasons.extend(validity.warnings)
    return reasons


def build_suggested_actions(
    profile: DocumentTypeProfile,
    completeness: CompletenessReport,
    validity: ValidityReport,
) -> list[str]:
    actions = []
    if completeness.missing_required:
        labels = [completeness.fields[name].label for name in completeness.missing_required]
        actions.append(f"Complete missing fields: {', '.join(labels)}")
    if validity.signatures.missing:
        actions.append(f"Obtain signatures from: {', '.join(validity.signatures.missing)}")
    if validity.expiry.is_expired:
        actions.append("Obtain a current version of this document")
    if validity.issues:
        actions.append("Address validity issues before proceeding")
    if profile.is_generic:
        actions.append("Upload a clearer copy or specify the document type")
    if not actions:
        actions.append("Document appears complete and valid")
    return actions


# ============================================================================
# ANALYZER
# ============================================================================

class DocumentAnalyzer:
    """
    Usage:
        analyzer = DocumentAnalyzer(registry, learning=InMemoryLearningRepository())
        result = await analyzer.analyze(content, "lease.pdf")
    """

    def __init__(
        self,
        registry: ProfileRegistry,
        classifier: Optional[Classifier] = None,
        extractor: Optional[TextExtractor] = None,
        completeness_checker: Optional[FieldCompletenessChecker] = None,
        validity_checker: Optional[ValidityChecker] = None,
        learning: Optional[LearningRepository] = None,
    ):
        self.registry = registry
        self.classifier = classifier or KeywordClassifier(registry)
        self.extractor = extractor or PlainTextExtractor()
        self.completeness_checker = completeness_checker or FieldCompletenessChecker()
        self.validity_checker = validity_checker or ValidityChecker()
        self.learning = learning if learning is not None else NullLearningRepository()

    async def analyze(self, content: bytes, filename: str, today: Optional[date] = None) -> AnalysisResult:
        """Extract text from an upload, analyze it and record the analysis."""
        text = await self.extractor.extract(content, filename)
        result = self.analyze_text(text, filename, today=today)
        await self.learning.record(LearningEvent(
            kind="analysis",
            document_type=result.document_type,
            payload={
                "confidence": result.confidence,
                "method": result.method,
                "completeness_score": result.completeness.score,
                "validity_score": result.validity.score,
                "validity_status": result.validity.status,
                "correlation_id": result.correlation_id,
            },
        ))
        return result

    def analyze_text(self, text: str, filename: str = "", today: Optional[date] = None) -> AnalysisResult:
        classification: ClassificationResult = self.classifier.classify(text, filename)
        profile = self.registry.find(classification.document_type) or self.registry.generic

        completeness = self.completeness_checker.check(text, profile)
        validity = self.validity_checker.check(text, profile, today=today)
        expiry = validity.expiry

        result = AnalysisResult(
            document_type=profile.name,
            confidence=classification.confidence,
            method=classification.method,
            description=profile.description,
            category=profile.category,
            jurisdiction=classification.jurisdiction,
            completeness=completeness,
            validity=validity,
            extracted_fields=completeness.values(),
            issue_date=expiry.issue_date.isoformat() if expiry.issue_date else None,
            expiry_date=expiry.expiry_date.isoformat() if expiry.expiry_date else None,
            reasons=build_reasons(completeness, validity),
            suggested_actions=build_suggested_actions(profile, completeness, validity),
            legal_references=list(profile.legal_references),
            filename=filename,
            correlation_id=f"doc_{uuid.uuid4().hex}",
            timestamp=utc_now_iso(),
        )
        logger.info(
            f"Analyzed {filename or '<text>'}: {result.document_type} "
            f"(confidence={result.confidence}, completeness={completeness.score}, "
            f"validity={validity.score} {validity.status})",
            extra={"correlation_id": result.correlation_id},
        )
        return result


def detect_errors(result: AnalysisResult, expected_type: Optional[str] = None) -> list[DetectedError]:
    """Flag results that need a human look."""
    errors = []

    if result.confidence < LOW_CONFIDENCE:
        errors.append(DetectedError(
            type="low_confidence",
            severity="medium",
            message=f"Classification confidence {result.confidence:.0%} is below {LOW_CONFIDENCE:.0%}",
        ))

    if expected_type and result.document_type != expected_type:
        errors.append(DetectedError(
            type="misclassification",
            severity="high",
            message=f"Expected {expected_type}, got {result.document_type}",
        ))

    if result.completeness.score < LOW_COMPLETENESS:
        errors.append(DetectedError(
            type="low_completeness",
            severity="medium",
            message=f"Only {result.completeness.score}% of required fields were found",
        ))

    if result.validity.issues:
        errors.append(DetectedError(
            type="validity_issues",
            severity="high",
            message=f"{len(result.validity.issues)} validity issue(s): {'; '.join(result.validity.issues)}",
        ))

    if len(result.completeness.missing_required) > MANY_MISSING_FIELDS:
        errors.append(DetectedError(
            type="missing_fields",
            severity="low",
            message=f"{len(result.completeness.missing_required)} required fields missing",
        ))

    return errors
