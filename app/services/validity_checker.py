"""
Validity checking.

Starts every document at 100 and subtracts fixed penalties:

    missing signature (per required role)    issue    -20
    issue date older than max age            issue    -30 (expired)
    issue date older than 80% of max age     warning  -10
    no issue date found                      warning   -5
    deposit below minimum % of price         issue    -15
    lease term shorter than minimum          issue    -15
    form number not a valid form             issue    -25
    incomplete-section markers               warning  -10

The score is clamped to [0, 100] and bucketed by validity_status().
"""

import logging
import re
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Any, Optional

from app.core.utc import utc_today
from app.services.document_profiles import DocumentTypeProfile
from app.services.field_patterns import (
    INCOMPLETE_SECTION_PATTERNS,
    extract_value,
    find_issue_date,
    has_signature,
    parse_date,
    parse_money,
)

logger = logging.getLogger(__name__)


SIGNATURE_PENALTY = 20
EXPIRED_PENALTY = 30
NEAR_EXPIRY_PENALTY = 10
NEAR_EXPIRY_FRACTION = 0.8
NO_DATE_PENALTY = 5
DEPOSIT_PENALTY = 15
LEASE_TERM_PENALTY = 15
FORM_NUMBER_PENALTY = 25
INCOMPLETE_PENALTY = 10

DAYS_PER_MONTH = 30
DAYS_PER_YEAR = 365


@dataclass
class ExpiryInfo:
    issue_date: Optional[date] = None
    age_days: Optional[int] = None
    days_until_expiry: Optional[int] = None
    is_expired: bool = False

    @property
    def expiry_date(self) -> Optional[date]:
        if self.issue_date is None or self.age_days is None or self.days_until_expiry is None:
            return None
        return self.issue_date + timedelta(days=self.age_days + self.days_until_expiry)

    def to_dict(self) -> dict[str, Any]:
        return {
            "issue_date": self.issue_date.isoformat() if self.issue_date else None,
            "expiry_date": self.expiry_date.isoformat() if self.expiry_date else None,
            "age_days": self.age_days,
            "days_until_expiry": self.days_until_expiry,
            "is_expired": self.is_expired,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ExpiryInfo":
        issue = data.get("issue_date")
        return cls(
            issue_date=date.fromisoformat(issue) if issue else None,
            age_days=data.get("age_days"),
            days_until_expiry=data.get("days_until_expiry"),
            is_expired=bool(data.get("is_expired", False)),
        )


@dataclass
class SignatureCheck:
    required: list[str] = field(default_factory=list)
    present: list[str] = field(default_factory=list)
    missing: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {"required": list(self.required), "present": list(self.present), "missing": list(self.missing)}


@dataclass
class ValidityReport:
    score: int
    status: str
    issues: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    expiry: ExpiryInfo = field(default_factory=ExpiryInfo)
    signatures: SignatureCheck = field(default_factory=SignatureCheck)

    def to_dict(self) -> dict[str, Any]:
        return {
            "score": self.score,
            "status": self.status,
            "issues": list(self.issues),
            "warnings": list(self.warnings),
            "expiry": self.expiry.to_dict(),
            "signatures": self.signatures.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ValidityReport":
        signatures = data.get("signatures") or {}
        return cls(
            score=int(data.get("score", 0)),
            status=data.get("status", "Invalid"),
            issues=list(data.get("issues", [])),
            warnings=list(data.get("warnings", [])),
            expiry=ExpiryInfo.from_dict(data.get("expiry") or {}),
            signatures=SignatureCheck(
                required=list(signatures.get("required", [])),
                present=list(signatures.get("present", [])),
                missing=list(signatures.get("missing", [])),
            ),
        )


def clamp_score(score: float) -> int:
    return int(max(0, min(100, round(score))))


def validity_status(score: int, has_issues: bool) -> str:
    """The only place validity buckets are defined."""
    if score < 50:
        return "Invalid"
    if score < 80:
        return "Potentially Invalid"
    return "Valid with Issues" if has_issues else "Valid"


def parse_term_days(value: str) -> Optional[int]:
    """'12 months' -> 360, '1 year' -> 365"""
    match = re.match(r"(\d+)\s*(month|year)", value or "", re.IGNORECASE)
    if not match:
        return None
    unit = DAYS_PER_MONTH if match.group(2).lower() == "month" else DAYS_PER_YEAR
    return int(match.group(1)) * unit


class ValidityChecker:

    def check(self, text: str, profile: DocumentTypeProfile, today: Optional[date] = None) -> ValidityReport:
        text = text or ""
        today = today or utc_today()
        rules = profile.validity

        score = 100
        issues: list[str] = []
        warnings: list[str] = []

        # Signatures
        signatures = SignatureCheck(required=list(rules.required_signatures))
        for role in rules.required_signatures:
            if has_signature(text, role):
                signatures.present.append(role)
            else:
                signatures.missing.append(role)
                issues.append(f"Missing {role} signature")
                score -= SIGNATURE_PENALTY

        # Issue date and age
        expiry = ExpiryInfo()
        if rules.max_age_days is not None:
            found = find_issue_date(text)
            if found is None:
                warnings.append("No issue date found in document")
                score -= NO_DATE_PENALTY
            else:
                _, issued = found
                age = (today - issued).days
                expiry = ExpiryInfo(
                    issue_date=issued,
                    age_days=age,
                    days_until_expiry=rules.max_age_days - age,
                    is_expired=age > rules.max_age_days,
                )
                if expiry.is_expired:
                    issues.append(
                        f"Document is expired: issued {age} days ago (maximum {rules.max_age_days} days)"
                    )
                    score -= EXPIRED_PENALTY
                elif age > NEAR_EXPIRY_FRACTION * rules.max_age_days:
                    warnings.append(f"Document expires in {expiry.days_until_expiry} days")
                    score -= NEAR_EXPIRY_PENALTY

        # Deposit percentage (APS)
        if rules.min_deposit_percent is not None:
            problem = self._check_deposit(text, rules.min_deposit_percent)
            if problem:
                issues.append(problem)
                score -= DEPOSIT_PENALTY

        # Lease term
        if rules.min_lease_term_days is not None:
            problem = self._check_lease_term(text, rules.min_lease_term_days)
            if problem:
                issues.append(problem)
                score -= LEASE_TERM_PENALTY

        # Form number (LTB)
        if rules.valid_form_numbers:
            form_number = extract_value(text, "form_number")
            if form_number and form_number.upper() not in rules.valid_form_numbers:
                issues.append(f"Form {form_number.upper()} is not a valid {profile.name} number")
                score -= FORM_NUMBER_PENALTY

        if any(pattern.search(text) for pattern in INCOMPLETE_SECTION_PATTERNS):
            warnings.append("Some sections appear incomplete")
            score -= INCOMPLETE_PENALTY

        final = clamp_score(score)
        report = ValidityReport(
            score=final,
            status=validity_status(final, bool(issues)),
            issues=issues,
            warnings=warnings,
            expiry=expiry,
            signatures=signatures,
        )
        logger.debug(f"{profile.name}: validity {final} ({report.status}), {len(issues)} issue(s)")
        return report

    @staticmethod
    def _check_deposit(text: str, min_percent: float) -> Optional[str]:
        price_raw = extract_value(text, "purchase_price")
        deposit_raw = extract_value(text, "deposit_amount")
        price = parse_money(price_raw) if price_raw else None
        deposit = parse_money(deposit_raw) if deposit_raw else None
        if not price or deposit is None:
            return None
        percent = deposit / price * 100
        if percent < min_percent:
            return f"Deposit is {percent:.1f}% of the purchase price (minimum {min_percent:g}%)"
        return None

    @staticmethod
    def _check_lease_term(text: str, min_days: int) -> Optional[str]:
        start_raw = extract_value(text, "lease_start_date")
        end_raw = extract_value(text, "lease_end_date")
        start = parse_date(start_raw) if start_raw else None
        end = parse_date(end_raw) if end_raw else None

        if start and end:
            term_days: Optional[int] = (end - start).days
        else:
            term_days = parse_term_days(extract_value(text, "term_length") or "")

        if term_days is not None and term_days < min_days:
            return f"Lease term of {term_days} days is shorter than the {min_days}-day minimum"
        return None
