"""
Document Type Profiles
======================

Static table of the legal document types DocScan knows about:
- expected required/optional fields (keys into field_patterns.FIELD_PATTERNS)
- validity thresholds (max age, signer roles, per-type numeric rules)
- recognition indicators used by the classifier

Profiles are frozen. Configured threshold overrides are applied once, when
a ProfileRegistry is built, and never afterwards.
"""

import dataclasses
import logging
from dataclasses import dataclass, field
from typing import Any, Iterator, Mapping, Optional

from app.services.errors import UnknownProfileError

logger = logging.getLogger(__name__)


GENERIC_DOCUMENT_TYPE = "Legal Document"


# ============================================================================
# PROFILE MODEL
# ============================================================================

@dataclass(frozen=True)
class ValidityRules:
    """Thresholds the validity checker applies to one document type."""
    max_age_days: Optional[int] = 365
    required_signatures: tuple[str, ...] = ()
    min_deposit_percent: Optional[float] = None
    min_lease_term_days: Optional[int] = None
    valid_form_numbers: tuple[str, ...] = ()


@dataclass(frozen=True)
class Indicators:
    """Recognition cues: bare keywords, multi-word phrases and regexes."""
    keywords: tuple[str, ...] = ()
    phrases: tuple[str, ...] = ()
    patterns: tuple[str, ...] = ()


@dataclass(frozen=True)
class DocumentTypeProfile:
    name: str
    category: str
    jurisdiction: str
    description: str
    required_fields: tuple[str, ...] = ()
    optional_fields: tuple[str, ...] = ()
    validity: ValidityRules = field(default_factory=ValidityRules)
    indicators: Indicators = field(default_factory=Indicators)
    filename_hints: tuple[str, ...] = ()
    common_issues: tuple[str, ...] = ()
    legal_references: tuple[str, ...] = ()

    @property
    def is_generic(self) -> bool:
        return not self.required_fields

    def to_dict(self) -> dict[str, Any]:
        return dataclasses.asdict(self)


# ============================================================================
# PROFILE TABLE
# ============================================================================

LTB_NOTICE_FORMS = tuple(f"N{i}" for i in range(1, 15)) + tuple(f"T{i}" for i in range(1, 8))

PROFILES: tuple[DocumentTypeProfile, ...] = (
    DocumentTypeProfile(
        name="Agreement of Purchase and Sale (APS)",
        category="Real Estate",
        jurisdiction="Ontario",
        description="Legal contract between buyer and seller for property purchase, "
                    "outlining purchase terms, conditions and closing details.",
        required_fields=(
            "purchase_price", "closing_date", "buyer_name", "seller_name",
            "property_address", "deposit_amount", "irrevocable_date",
        ),
        optional_fields=("schedule_a", "conditions", "chattels", "fixtures"),
        validity=ValidityRules(
            max_age_days=365,
            required_signatures=("buyer", "seller"),
            min_deposit_percent=5.0,
        ),
        indicators=Indicators(
            keywords=(
                "agreement of purchase and sale", "aps", "purchase price", "closing date",
                "buyer", "seller", "deposit", "irrevocable",
            ),
            phrases=(
                "this agreement is made between", "purchase price of", "closing date of",
                "deposit amount of", "irrevocable until",
            ),
            patterns=(
                r"purchase\s+price\s*:?\s*\$?[\d,]+",
                r"closing\s+date\s*:?\s*\S+",
                r"between\s+[^()\n]{1,200}?\(buyer\)\s+and\s+[^()\n]{1,200}?\(seller\)",
            ),
        ),
        filename_hints=("aps", "purchase", "sale", "orea"),
        common_issues=(
            "Missing irrevocable date",
            "Schedule A not attached",
            "Incomplete party information",
            "Missing property description",
        ),
        legal_references=(
            "Real Estate and Business Brokers Act, 2002 (REBBA)",
            "Standard Form 100 Agreement of Purchase and Sale",
            "Ontario Real Estate Association (OREA) guidelines",
        ),
    ),
    DocumentTypeProfile(
        name="Residential Lease Agreement",
        category="Rental",
        jurisdiction="Ontario",
        description="Contract between landlord and tenant for residential rental.",
        required_fields=(
            "rent_amount", "lease_start_date", "lease_end_date", "tenant_name",
            "landlord_name", "property_address", "security_deposit",
        ),
        optional_fields=("utilities", "parking", "pets", "maintenance", "term_length"),
        validity=ValidityRules(
            max_age_days=365,
            required_signatures=("tenant", "landlord"),
            min_lease_term_days=30,
        ),
        indicators=Indicators(
            keywords=(
                "lease agreement", "rental agreement", "tenant", "landlord", "rent",
                "lease term", "security deposit", "utilities",
            ),
            phrases=(
                "residential lease agreement", "lease agreement between", "monthly rent of",
                "lease term of", "security deposit of", "tenant responsibilities",
            ),
            patterns=(
                r"monthly\s+rent\s*:?\s*\$?[\d,]+",
                r"lease\s+term\s*:?\s*\d+\s+months?",
                r"security\s+deposit\s*:?\s*\$?[\d,]+",
            ),
        ),
        filename_hints=("lease", "rental", "tenancy"),
        common_issues=(
            "Missing lease term dates",
            "Incomplete rent amount",
            "Missing security deposit details",
            "Unclear maintenance responsibilities",
        ),
        legal_references=(
            "Residential Tenancies Act, 2006",
            "Landlord and Tenant Board guidelines",
            "Ontario Human Rights Code",
        ),
    ),
    DocumentTypeProfile(
        name="Landlord and Tenant Board Form",
        category="Legal Form",
        jurisdiction="Ontario",
        description="Official form for Landlord and Tenant Board notices, applications and disputes.",
        required_fields=("form_number", "tenant_name", "landlord_name", "property_address", "issue_date"),
        optional_fields=("hearing_date", "reason", "amount"),
        validity=ValidityRules(
            max_age_days=30,
            required_signatures=("applicant",),
            valid_form_numbers=LTB_NOTICE_FORMS,
        ),
        indicators=Indicators(
            keywords=("landlord and tenant board", "ltb", "hearing", "dispute", "eviction", "respondent"),
            phrases=("landlord and tenant board", "form number", "notice to end", "hearing date"),
            patterns=(r"\bform\s+[nt]\d{1,2}\b", r"\bnotice\s+to\s+end\s+(?:your|a)\s+tenancy\b"),
        ),
        filename_hints=("ltb", "n4", "n12", "t2"),
        common_issues=(
            "Missing form number",
            "Incomplete party information",
            "Missing application reason",
            "Outdated form version",
        ),
        legal_references=(
            "Residential Tenancies Act, 2006",
            "Landlord and Tenant Board Rules",
            "Statutory Powers Procedure Act",
        ),
    ),
    DocumentTypeProfile(
        name="A2 Form (Landlord and Tenant Board)",
        category="Legal Form",
        jurisdiction="Ontario",
        description="LTB application form for rent increases above guideline, requiring board approval.",
        required_fields=(
            "landlord_name", "tenant_name", "property_address", "current_rent",
            "proposed_rent", "increase_reason", "application_date",
        ),
        optional_fields=("hearing_date", "supporting_documents"),
        validity=ValidityRules(
            max_age_days=90,
            required_signatures=("landlord",),
            valid_form_numbers=("A2",),
        ),
        indicators=Indicators(
            keywords=("rent increase", "above guideline"),
            phrases=("application to increase rent", "landlord and tenant board", "above guideline increase"),
            patterns=(r"\bform\s+a2\b", r"application\s+to\s+increase\s+rent"),
        ),
        filename_hints=("a2",),
        common_issues=("Missing justification for the increase", "Proposed rent not stated"),
        legal_references=("Residential Tenancies Act, 2006, s. 126", "Landlord and Tenant Board Rules"),
    ),
    DocumentTypeProfile(
        name="L1 Form (Landlord and Tenant Board)",
        category="Legal Form",
        jurisdiction="Ontario",
        description="LTB application form for terminating a tenancy and evicting a tenant.",
        required_fields=(
            "landlord_name", "tenant_name", "property_address", "termination_reason",
            "notice_date", "hearing_date",
        ),
        optional_fields=("amount", "case_number"),
        validity=ValidityRules(
            max_age_days=30,
            required_signatures=("landlord",),
            valid_form_numbers=("L1",),
        ),
        indicators=Indicators(
            keywords=("eviction", "arrears"),
            phrases=("application to terminate a tenancy", "application to evict"),
            patterns=(r"\bform\s+l1\b", r"application\s+to\s+terminate\s+a\s+tenancy"),
        ),
        filename_hints=("l1", "eviction"),
        common_issues=("Arrears amount not itemized", "Missing N4 notice date"),
        legal_references=("Residential Tenancies Act, 2006, s. 69", "Landlord and Tenant Board Rules"),
    ),
    DocumentTypeProfile(
        name="Fee Waiver Request",
        category="Administrative",
        jurisdiction="Ontario",
        description="Request for exemption from court or administrative fees.",
        required_fields=(
            "applicant_name", "reason_for_request", "financial_information",
            "supporting_documents", "date_of_request",
        ),
        optional_fields=("case_number", "hearing_date"),
        validity=ValidityRules(max_age_days=90, required_signatures=("applicant",)),
        indicators=Indicators(
            keywords=("fee waiver", "waiver request", "financial hardship", "court fees", "administrative fees"),
            phrases=("request for fee waiver", "inability to pay", "supporting documentation", "income verification"),
            patterns=(r"fee\s+waiver",),
        ),
        filename_hints=("waiver",),
        common_issues=(
            "Missing financial information",
            "Incomplete reason for request",
            "Missing supporting documentation",
            "Insufficient income verification",
        ),
        legal_references=("Courts of Justice Act", "Family Law Rules", "Rules of Civil Procedure"),
    ),
    DocumentTypeProfile(
        name="Mortgage Document",
        category="Financial",
        jurisdiction="Ontario",
        description="Legal document securing a loan with property as collateral.",
        required_fields=(
            "borrower_name", "lender_name", "property_address", "principal_amount",
            "interest_rate", "term_length", "payment_amount",
        ),
        optional_fields=("amortization_period", "maturity_date", "account_number"),
        validity=ValidityRules(max_age_days=365, required_signatures=("borrower", "lender")),
        indicators=Indicators(
            keywords=("mortgage", "principal amount", "interest rate", "amortization", "lender", "borrower"),
            phrases=("mortgage agreement", "charge/mortgage of land"),
            patterns=(
                r"principal\s+amount\s*:?\s*\$?[\d,]+",
                r"interest\s+rate\s*:?\s*[\d.]+\s*%",
                r"amortization\s+period\s*:?\s*\d+\s+years?",
            ),
        ),
        filename_hints=("mortgage", "charge"),
        common_issues=(
            "Missing interest rate",
            "Incomplete loan terms",
            "Missing property description",
            "Unclear payment schedule",
        ),
        legal_references=("Mortgages Act", "Interest Act", "Bank Act"),
    ),
    DocumentTypeProfile(
        name="Insurance Policy",
        category="Insurance",
        jurisdiction="Ontario",
        description="Contract providing financial protection against specified risks.",
        required_fields=(
            "policy_number", "insured_name", "coverage_type", "coverage_amount",
            "premium_amount", "effective_date", "expiration_date",
        ),
        optional_fields=("deductible", "property_address"),
        validity=ValidityRules(max_age_days=365),
        indicators=Indicators(
            keywords=("insurance", "policy number", "coverage", "premium", "deductible", "insured"),
            phrases=("insurance policy", "policy period", "limit of liability"),
            patterns=(r"policy\s+number\s*:?\s*[\w-]+", r"annual\s+premium\s*:?\s*\$?[\d,]+"),
        ),
        filename_hints=("insurance", "policy"),
        common_issues=("Policy period has ended", "Coverage amount missing"),
        legal_references=("Insurance Act (Ontario)",),
    ),
    DocumentTypeProfile(
        name="Notice of Assessment (CRA)",
        category="Tax",
        jurisdiction="Canada",
        description="Canada Revenue Agency assessment of an income tax return.",
        required_fields=("tax_year", "assessment_date", "total_income", "tax_owed", "refund_amount"),
        optional_fields=("sin",),
        validity=ValidityRules(max_age_days=1095),
        indicators=Indicators(
            keywords=("canada revenue agency", "cra", "notice of assessment", "tax year", "refund"),
            phrases=("notice of assessment", "balance owing", "we assessed your return"),
            patterns=(r"tax\s+year\s*:?\s*\d{4}", r"line\s+\d{5}"),
        ),
        filename_hints=("noa", "assessment", "cra"),
        common_issues=("Assessment older than three years", "Tax year not shown"),
        legal_references=("Income Tax Act (Canada)",),
    ),
    DocumentTypeProfile(
        name="Property Appraisal",
        category="Valuation",
        jurisdiction="Ontario",
        description="Professional assessment of property value.",
        required_fields=(
            "appraiser_name", "property_address", "appraised_value", "appraisal_date",
            "property_type", "appraisal_method",
        ),
        optional_fields=("comparable_properties", "market_conditions"),
        validity=ValidityRules(max_age_days=180, required_signatures=("appraiser",)),
        indicators=Indicators(
            keywords=("appraisal", "appraiser", "appraised value", "market value", "comparable"),
            phrases=("appraisal report", "direct comparison approach", "effective date of appraisal"),
            patterns=(r"appraised\s+value\s*:?\s*\$?[\d,]+",),
        ),
        filename_hints=("appraisal",),
        common_issues=(
            "Outdated appraisal",
            "Missing appraiser credentials",
            "Incomplete property description",
            "Unclear valuation method",
        ),
        legal_references=(
            "Appraisal Institute of Canada standards",
            "Real Estate and Business Brokers Act, 2002",
        ),
    ),
    DocumentTypeProfile(
        name=GENERIC_DOCUMENT_TYPE,
        category="General",
        jurisdiction="Unknown",
        description="Unrecognized legal document; no field expectations apply.",
        validity=ValidityRules(max_age_days=None),
    ),
)


# ============================================================================
# REGISTRY
# ============================================================================

class ProfileRegistry:
    """
    Read-only lookup over the profile table.

    overrides maps a profile name to ValidityRules fields, e.g.
    {"Agreement of Purchase and Sale (APS)": {"min_deposit_percent": 3}}.
    """

    def __init__(
        self,
        profiles: tuple[DocumentTypeProfile, ...] = PROFILES,
        overrides: Optional[Mapping[str, Mapping[str, Any]]] = None,
    ):
        self._profiles: dict[str, DocumentTypeProfile] = {p.name: p for p in profiles}
        if GENERIC_DOCUMENT_TYPE not in self._profiles:
            raise ValueError(f"Profile table must include '{GENERIC_DOCUMENT_TYPE}'")

        for name, changes in (overrides or {}).items():
            profile = self._profiles.get(name)
            if profile is None:
                logger.warning(f"Ignoring overrides for unknown document type: {name}")
                continue
            self._profiles[name] = _apply_override(profile, changes)
            logger.info(f"Applied validity overrides to {name}: {sorted(changes)}")

    def __iter__(self) -> Iterator[DocumentTypeProfile]:
        return iter(self._profiles.values())

    def __len__(self) -> int:
        return len(self._profiles)

    def __contains__(self, name: object) -> bool:
        return self.find(name) is not None if isinstance(name, str) else False

    @property
    def generic(self) -> DocumentTypeProfile:
        return self._profiles[GENERIC_DOCUMENT_TYPE]

    def names(self) -> list[str]:
        return list(self._profiles)

    def specific(self) -> list[DocumentTypeProfile]:
        """Every profile except the generic fallback, in table order."""
        return [p for p in self._profiles.values() if not p.is_generic]

    def find(self, name: str) -> Optional[DocumentTypeProfile]:
        """Exact name first, then case-insensitive."""
        profile = self._profiles.get(name)
        if profile is not None:
            return profile
        lowered = name.strip().lower()
        for candidate in self._profiles.values():
            if candidate.name.lower() == lowered:
                return candidate
        return None

    def get(self, name: str) -> DocumentTypeProfile:
        profile = self.find(name)
        if profile is None:
            raise UnknownProfileError(name)
        return profile


def _apply_override(profile: DocumentTypeProfile, changes: Mapping[str, Any]) -> DocumentTypeProfile:
    known = {f.name for f in dataclasses.fields(ValidityRules)}
    unknown = set(changes) - known
    if unknown:
        raise ValueError(f"Unknown validity rule(s) for {profile.name}: {sorted(unknown)}")

    normalized = {
        key: tuple(value) if isinstance(value, list) else value
        for key, value in changes.items()
    }
    return dataclasses.replace(profile, validity=dataclasses.replace(profile.validity, **normalized))


def build_registry(settings) -> ProfileRegistry:
    """Registry with the configured overrides applied."""
    return ProfileRegistry(overrides=settings.profile_overrides)
