"""
DocScan - Field, signature and date patterns
=============================================

Regex tables shared by the completeness and validity checkers.

Every field has two kinds of patterns:
- presence: loose label/keyword patterns. Any hit means the field is present.
- value: stricter patterns whose first group is the filled-in value.

All patterns are matched case-insensitively.
"""

import re
from dataclasses import dataclass
from datetime import date
from typing import Optional


# =============================================================================
# BUILDING BLOCKS
# =============================================================================

MONTHS = {
    'january': 1, 'jan': 1, 'february': 2, 'feb': 2,
    'march': 3, 'mar': 3, 'april': 4, 'apr': 4,
    'may': 5, 'june': 6, 'jun': 6, 'july': 7, 'jul': 7,
    'august': 8, 'aug': 8, 'september': 9, 'sep': 9, 'sept': 9,
    'october': 10, 'oct': 10, 'november': 11, 'nov': 11,
    'december': 12, 'dec': 12,
}

_MONTH_NAMES = "jan|feb|mar|apr|may|jun|jul|aug|sep|sept|oct|nov|dec"

DATE = (
    r"(\d{4}-\d{2}-\d{2}"
    r"|\d{1,2}/\d{1,2}/\d{4}"
    rf"|(?:{_MONTH_NAMES})[a-z]*\.?\s+\d{{1,2}}(?:st|nd|rd|th)?,?\s+\d{{4}})"
)
MONEY = r"(\$\s?\d[\d,]*(?:\.\d{2})?)"
NAME = r"([A-Za-z][A-Za-z.,'&\-]*(?:[ ][A-Za-z.,'&\-]+)*)"
LINE = r"([^\n_][^\n]*)"
SEP = r"[ \t]*[:\-][ \t]*"
OPT_SEP = r"[ \t]*[:\-]?[ \t]*"


@dataclass(frozen=True)
class FieldPattern:
    """Detection rules for one named field."""
    label: str
    presence: tuple[str, ...]
    value: tuple[str, ...] = ()


def _label(*alternatives: str) -> str:
    return "(?:" + "|".join(alternatives) + ")"


def _money_field(label: str, *labels: str) -> FieldPattern:
    return FieldPattern(
        label=label,
        presence=labels,
        value=(_label(*labels) + r"[^$\n]*?" + MONEY,),
    )


def _date_field(label: str, *labels: str) -> FieldPattern:
    return FieldPattern(
        label=label,
        presence=labels,
        value=(_label(*labels) + OPT_SEP + DATE,),
    )


def _name_field(label: str, *roles: str) -> FieldPattern:
    return FieldPattern(
        label=label,
        presence=tuple(rf"\b{role}" for role in roles),
        value=(rf"\b{_label(*roles)}(?:'s)?(?:[ \t]+(?:full[ \t]+)?name)?" + SEP + NAME,),
    )


def _line_field(label: str, *labels: str) -> FieldPattern:
    return FieldPattern(
        label=label,
        presence=labels,
        value=(_label(*labels) + SEP + LINE,),
    )


# =============================================================================
# FIELD TABLE
# =============================================================================

FIELD_PATTERNS: dict[str, FieldPattern] = {
    # Parties
    "buyer_name": _name_field("Buyer", "buyer", "purchaser"),
    "seller_name": _name_field("Seller", "seller", "vendor"),
    "tenant_name": _name_field("Tenant", "tenant", "lessee"),
    "landlord_name": _name_field("Landlord", "landlord", "lessor"),
    "applicant_name": _name_field("Applicant", "applicant"),
    "borrower_name": _name_field("Borrower", "borrower", "mortgagor"),
    "lender_name": _name_field("Lender", "lender", "mortgagee"),
    "insured_name": _name_field("Insured", "insured", "policy[ \t]*holder"),
    "appraiser_name": _name_field("Appraiser", "appraiser"),

    # Property
    "property_address": FieldPattern(
        label="Property Address",
        presence=(r"address", r"property\s*located", r"located\s*at", r"premises"),
        value=(_label(r"property\s*address", r"premises", r"property", r"address") + SEP + LINE,),
    ),
    "property_type": _line_field("Property Type", r"property\s*type", r"type\s*of\s*property"),

    # Money
    "purchase_price": FieldPattern(
        label="Purchase Price",
        presence=(r"purchase\s*price", r"price\s*of\s*purchase", r"\$\s?\d[\d,]*"),
        value=(
            r"purchase\s*price[^$\n]*?" + MONEY,
            r"\bprice[^$\n]*?" + MONEY,
        ),
    ),
    "deposit_amount": _money_field(
        "Deposit", r"(?<!security\s)deposit", r"down\s*payment", r"earnest\s*money"
    ),
    "rent_amount": _money_field("Rent", r"monthly\s*rent", r"rental\s*amount", r"\brent\b"),
    "current_rent": _money_field("Current Rent", r"current\s*rent"),
    "proposed_rent": _money_field("Proposed Rent", r"proposed\s*rent", r"new\s*rent"),
    "security_deposit": _money_field("Security Deposit", r"security\s*deposit", r"damage\s*deposit"),
    "amount": _money_field("Amount", r"amount\s*owing", r"arrears", r"amount"),
    "principal_amount": _money_field("Principal", r"principal(?:\s*amount|\s*balance)?", r"loan\s*amount"),
    "payment_amount": _money_field("Payment", r"monthly\s*payment", r"payment\s*amount"),
    "coverage_amount": _money_field("Coverage Amount", r"coverage\s*amount", r"limit\s*of\s*liability"),
    "premium_amount": _money_field("Premium", r"annual\s*premium", r"premium"),
    "deductible": _money_field("Deductible", r"deductible"),
    "appraised_value": _money_field("Appraised Value", r"appraised\s*value", r"market\s*value"),
    "total_income": _money_field("Total Income", r"total\s*income", r"net\s*income"),
    "tax_owed": _money_field("Balance Owing", r"balance\s*owing", r"tax\s*owed", r"amount\s*due"),
    "refund_amount": _money_field("Refund", r"refund"),

    # Dates
    "closing_date": _date_field("Closing Date", r"closing\s*date", r"clos(?:es|ing)\s*on", r"completion\s*date"),
    "irrevocable_date": _date_field("Irrevocable Date", r"irrevocable(?:\s*date)?(?:\s*until)?"),
    "lease_start_date": _date_field(
        "Lease Start", r"lease\s*start(?:\s*date)?", r"commencing(?:\s*on)?", r"beginning(?:\s*on)?"
    ),
    "lease_end_date": _date_field(
        "Lease End", r"lease\s*end(?:\s*date)?", r"expiring(?:\s*on)?", r"terminating(?:\s*on)?", r"ending(?:\s*on)?"
    ),
    "issue_date": _date_field("Issue Date", r"issue\s*date", r"date\s*issued", r"\bdated"),
    "application_date": _date_field("Application Date", r"application\s*date"),
    "hearing_date": _date_field("Hearing Date", r"hearing(?:\s*date)?"),
    "notice_date": _date_field("Notice Date", r"notice\s*date", r"date\s*of\s*notice"),
    "effective_date": _date_field("Effective Date", r"effective\s*date", r"policy\s*period"),
    "expiration_date": _date_field("Expiration Date", r"expiration\s*date", r"expiry\s*date"),
    "maturity_date": _date_field("Maturity Date", r"maturity\s*date"),
    "assessment_date": _date_field("Assessment Date", r"assessment\s*date", r"date\s*of\s*assessment"),
    "appraisal_date": _date_field("Appraisal Date", r"appraisal\s*date", r"date\s*of\s*appraisal"),
    "date_of_request": _date_field("Request Date", r"date\s*of\s*request", r"request\s*date"),

    # Identifiers
    "form_number": FieldPattern(
        label="Form Number",
        presence=(r"\bform\s*[a-z]\d{1,2}\b", r"form\s*number"),
        value=(r"\bform\s*(?:number\s*[:\-]?\s*)?([a-z]\d{1,2})\b",),
    ),
    "policy_number": _line_field("Policy Number", r"policy\s*(?:number|no\.?|#)"),
    "account_number": _line_field("Account Number", r"account\s*(?:number|no\.?|#)", r"mortgage\s*number"),
    "case_number": _line_field("Case Number", r"case\s*(?:number|no\.?|#)", r"file\s*number"),
    "tax_year": FieldPattern(
        label="Tax Year",
        presence=(r"tax\s*year", r"year\s*ending", r"filing\s*year"),
        value=(r"(?:tax\s*year|year\s*ending|filing\s*year)" + OPT_SEP + r"(\d{4})",),
    ),
    "sin": FieldPattern(
        label="SIN",
        presence=(r"social\s*insurance\s*number", r"\bsin\b"),
        value=(r"\bsin" + OPT_SEP + r"([\dX*]{3}[ \-]?[\dX*]{3}[ \-]?[\dX*]{3})",),
    ),

    # Terms
    "interest_rate": FieldPattern(
        label="Interest Rate",
        presence=(r"interest\s*rate",),
        value=(r"interest\s*rate" + OPT_SEP + r"(\d+(?:\.\d+)?\s*%)",),
    ),
    "amortization_period": FieldPattern(
        label="Amortization",
        presence=(r"amortization",),
        value=(r"amortization(?:\s*period)?" + OPT_SEP + r"(\d+\s*years?)",),
    ),
    "term_length": FieldPattern(
        label="Term",
        presence=(r"\bterm\b",),
        value=(r"\b(?:lease\s*)?term" + OPT_SEP + r"(\d+\s*(?:months?|years?))",),
    ),
    "coverage_type": _line_field("Coverage Type", r"coverage\s*type", r"type\s*of\s*coverage", r"coverage"),
    "appraisal_method": _line_field("Appraisal Method", r"appraisal\s*method", r"valuation\s*method", r"approach"),

    # Clauses and free text
    "schedule_a": FieldPattern(
        label="Schedule A",
        presence=(r"schedule\s*a\b",),
        value=(r"schedule\s*a" + OPT_SEP + r"(attached|included|yes|no)",),
    ),
    "conditions": FieldPattern(label="Conditions", presence=(r"\bconditions?\b",)),
    "chattels": FieldPattern(label="Chattels", presence=(r"chattels",)),
    "fixtures": FieldPattern(label="Fixtures", presence=(r"fixtures",)),
    "utilities": _line_field("Utilities", r"utilit(?:y|ies)"),
    "pets": FieldPattern(
        label="Pets",
        presence=(r"\bpets?\b",),
        value=(r"\bpets?" + SEP + r"(allowed|not\s+allowed|no\s+pets\s+allowed|yes|no)",),
    ),
    "parking": _line_field("Parking", r"parking"),
    "maintenance": FieldPattern(label="Maintenance", presence=(r"maintenance", r"repairs")),
    "reason": _line_field("Reason", r"reason(?:\s*for\s*(?:application|termination|increase|request))?"),
    "increase_reason": _line_field("Reason for Increase", r"reason\s*for\s*increase", r"above\s*(?:the\s*)?guideline"),
    "termination_reason": _line_field(
        "Reason for Termination", r"reason\s*for\s*termination", r"non-?payment", r"persistent\s*late"
    ),
    "reason_for_request": _line_field(
        "Reason for Request", r"reason\s*for\s*(?:the\s*)?request", r"financial\s*hardship", r"inability\s*to\s*pay"
    ),
    "financial_information": FieldPattern(
        label="Financial Information",
        presence=(r"monthly\s*income", r"household\s*income", r"expenses", r"assets"),
    ),
    "supporting_documents": FieldPattern(
        label="Supporting Documents",
        presence=(r"supporting\s*documents?", r"attached\s*(?:documents|evidence)", r"proof\s*of\s*income"),
    ),
    "comparable_properties": FieldPattern(label="Comparables", presence=(r"comparable",)),
    "market_conditions": FieldPattern(label="Market Conditions", presence=(r"market\s*conditions",)),
}


# =============================================================================
# SIGNATURES
# =============================================================================

SIGNATURE_ROLE_ALIASES: dict[str, tuple[str, ...]] = {
    "buyer": ("buyer", "purchaser"),
    "seller": ("seller", "vendor"),
    "tenant": ("tenant", "lessee"),
    "landlord": ("landlord", "lessor"),
    "applicant": ("applicant",),
    "borrower": ("borrower", "mortgagor"),
    "lender": ("lender", "mortgagee"),
    "appraiser": ("appraiser",),
}


def signature_pattern(role: str) -> re.Pattern:
    """
    Pattern for a signature line of one signer role.

    Group "mark" holds whatever follows the label on the same line, so
    callers can tell "Buyer Signature: [Signed]" from "Buyer Signature: ____".
    """
    names = _label(*SIGNATURE_ROLE_ALIASES.get(role.lower(), (re.escape(role.lower()),)))
    label = _label(
        rf"{names}(?:'s)?\s+signature",
        rf"signed\s+by\s+(?:the\s+)?{names}",
        rf"signature\s+of\s+(?:the\s+)?{names}",
    )
    return re.compile(label + r"[ \t]*:?[ \t]*(?P<mark>[^\n]*)", re.IGNORECASE)


def has_signature(text: str, role: str) -> bool:
    """True when a signature line for the role exists and is not a blank rule."""
    for match in signature_pattern(role).finditer(text):
        if not match.group("mark").strip().startswith("_"):
            return True
    return False


# =============================================================================
# DATES AND AMOUNTS
# =============================================================================

ISSUE_DATE_PATTERNS = (
    re.compile(
        _label(
            r"issue\s*date", r"date\s*issued", r"issued\s*on", r"\bdated",
            r"created\s*on", r"date\s*created", r"application\s*date",
            r"statement\s*date", r"assessment\s*date", r"date\s*of\s*assessment",
            r"agreement\s*date", r"date\s*of\s*agreement", r"effective\s*date",
            r"date\s*of\s*request", r"appraisal\s*date",
        ) + OPT_SEP + DATE,
        re.IGNORECASE,
    ),
    re.compile(r"^[ \t]*date" + SEP + DATE, re.IGNORECASE | re.MULTILINE),
)

INCOMPLETE_SECTION_PATTERNS = (
    re.compile(r"\[\s*\]"),
    re.compile(r"\bto\s+be\s+completed\b", re.IGNORECASE),
    re.compile(r"\bTBD\b"),
)


def parse_date(value: str) -> Optional[date]:
    """
    Parse the date formats DATE recognizes.

    Slash dates are read month first (06/15/2024).
    """
    value = value.strip()
    try:
        iso = re.fullmatch(r"(\d{4})-(\d{2})-(\d{2})", value)
        if iso:
            return date(int(iso.group(1)), int(iso.group(2)), int(iso.group(3)))

        slash = re.fullmatch(r"(\d{1,2})/(\d{1,2})/(\d{4})", value)
        if slash:
            return date(int(slash.group(3)), int(slash.group(1)), int(slash.group(2)))

        named = re.fullmatch(
            r"([a-z]+)\.?\s+(\d{1,2})(?:st|nd|rd|th)?,?\s+(\d{4})", value, re.IGNORECASE
        )
        if named:
            month = MONTHS.get(named.group(1).lower()) or MONTHS.get(named.group(1).lower()[:3])
            if month:
                return date(int(named.group(3)), month, int(named.group(2)))
    except ValueError:
        # Matched the shape but not a real calendar date (02/30/2024)
        return None
    return None


def find_issue_date(text: str) -> Optional[tuple[str, date]]:
    """First labelled issue/creation date in the text, raw and parsed."""
    for pattern in ISSUE_DATE_PATTERNS:
        for match in pattern.finditer(text):
            parsed = parse_date(match.group(1))
            if parsed is not None:
                return match.group(1), parsed
    return None


def parse_money(value: str) -> Optional[float]:
    """'$37,500.00' -> 37500.0"""
    cleaned = re.sub(r"[^\d.]", "", value)
    if not cleaned or cleaned == ".":
        return None
    try:
        return float(cleaned)
    except ValueError:
        return None


def extract_value(text: str, field_name: str) -> Optional[str]:
    """Run a field's value patterns and return the first captured value."""
    entry = FIELD_PATTERNS.get(field_name)
    if entry is None:
        return None
    for pattern in entry.value:
        match = re.search(pattern, text, re.IGNORECASE)
        if match and match.group(1).strip():
            return match.group(1).strip().rstrip(",;")
    return None


def is_present(text: str, field_name: str) -> bool:
    """Run a field's presence patterns."""
    entry = FIELD_PATTERNS.get(field_name)
    if entry is None:
        return False
    return any(re.search(pattern, text, re.IGNORECASE | re.MULTILINE) for pattern in entry.presence)


def field_label(name: str) -> str:
    """Human label for a field name."""
    entry = FIELD_PATTERNS.get(name)
    return entry.label if entry else name.replace("_", " ").title()
