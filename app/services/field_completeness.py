"""
Field completeness checking.

For each required/optional field of a profile: run the presence patterns,
then try to pull out the filled-in value.

    score = round(100 * (w * required_ratio + (1 - w) * optional_ratio))

w is the configured required weight (1.0 = required fields only). Profiles
without optional fields use the required ratio alone; profiles without
required fields (the generic one) score 0.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Optional

from app.services.document_profiles import DocumentTypeProfile
from app.services.field_patterns import extract_value, field_label, is_present

logger = logging.getLogger(__name__)


CONFIDENCE_WITH_VALUE = 0.9
CONFIDENCE_PRESENT = 0.7
CONFIDENCE_ABSENT = 0.0

UNKNOWN_TYPE_STATUS = "Unknown Document Type"


@dataclass
class FieldMatch:
    name: str
    value: Optional[str]
    present: bool
    required: bool
    confidence: float

    @property
    def label(self) -> str:
        return field_label(self.name)

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "label": self.label,
            "value": self.value,
            "present": self.present,
            "required": self.required,
            "confidence": self.confidence,
        }


@dataclass
class CompletenessReport:
    score: int
    status: str
    present_required: list[str] = field(default_factory=list)
    missing_required: list[str] = field(default_factory=list)
    present_optional: list[str] = field(default_factory=list)
    missing_optional: list[str] = field(default_factory=list)
    fields: dict[str, FieldMatch] = field(default_factory=dict)

    def values(self) -> dict[str, str]:
        """Extracted values of the fields that have one."""
        return {name: m.value for name, m in self.fields.items() if m.value is not None}

    def to_dict(self) -> dict[str, Any]:
        return {
            "score": self.score,
            "status": self.status,
            "present_required": list(self.present_required),
            "missing_required": list(self.missing_required),
            "present_optional": list(self.present_optional),
            "missing_optional": list(self.missing_optional),
            "fields": {name: m.to_dict() for name, m in self.fields.items()},
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "CompletenessReport":
        return cls(
            score=int(data.get("score", 0)),
            status=data.get("status", UNKNOWN_TYPE_STATUS),
            present_required=list(data.get("present_required", [])),
            missing_required=list(data.get("missing_required", [])),
            present_optional=list(data.get("present_optional", [])),
            missing_optional=list(data.get("missing_optional", [])),
            fields={
                name: FieldMatch(
                    name=item.get("name", name),
                    value=item.get("value"),
                    present=bool(item.get("present", False)),
                    required=bool(item.get("required", False)),
                    confidence=float(item.get("confidence", 0.0)),
                )
                for name, item in (data.get("fields") or {}).items()
            },
        )


def completeness_status(score: int) -> str:
    """The only place completeness buckets are defined."""
    if score >= 90:
        return "Complete"
    if score >= 70:
        return "Mostly Complete"
    if score >= 50:
        return "Partially Complete"
    return "Incomplete"


def match_field(text: str, name: str, required: bool) -> FieldMatch:
    if not is_present(text, name):
        return FieldMatch(name=name, value=None, present=False, required=required,
                          confidence=CONFIDENCE_ABSENT)
    value = extract_value(text, name)
    return FieldMatch(
        name=name,
        value=value,
        present=True,
        required=required,
        confidence=CONFIDENCE_WITH_VALUE if value is not None else CONFIDENCE_PRESENT,
    )


class FieldCompletenessChecker:

    def __init__(self, required_weight: float = 1.0):
        if not 0.0 <= required_weight <= 1.0:
            raise ValueError("required_weight must be between 0.0 and 1.0")
        self.required_weight = required_weight

    def check(self, text: str, profile: DocumentTypeProfile) -> CompletenessReport:
        text = text or ""
        report = CompletenessReport(score=0, status=UNKNOWN_TYPE_STATUS)

        for name in profile.required_fields:
            match = match_field(text, name, required=True)
            report.fields[name] = match
            (report.present_required if match.present else report.missing_required).append(name)

        for name in profile.optional_fields:
            match = match_field(text, name, required=False)
            report.fields[name] = match
            (report.present_optional if match.present else report.missing_optional).append(name)

        if not profile.required_fields:
            return report

        report.score = self.score(
            len(report.present_required), len(profile.required_fields),
            len(report.present_optional), len(profile.optional_fields),
        )
        report.status = completeness_status(report.score)
        logger.debug(
            f"{profile.name}: {len(report.present_required)}/{len(profile.required_fields)} required, "
            f"{len(report.present_optional)}/{len(profile.optional_fields)} optional -> {report.score}"
        )
        return report

    def score(self, present_required: int, total_required: int,
              present_optional: int, total_optional: int) -> int:
        if total_required == 0:
            return 0
        required_ratio = present_required / total_required
        if total_optional == 0:
            blended = required_ratio
        else:
            w = self.required_weight
            blended = w * required_ratio + (1 - w) * (present_optional / total_optional)
        return max(0, min(100, round(100 * blended)))
