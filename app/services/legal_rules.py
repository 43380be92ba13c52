"""
Legal Rules Repository
======================

Jurisdiction-specific rule records (required fields, signature
requirements, red flags, statute references) stored in the legal_rules
table, plus the legal_references excerpts used by brief search.

The analyzer does not consult these tables; they back GET /api/rules and
POST /api/search/brief.
"""

import json
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.models.models import LegalReference, LegalRule

logger = logging.getLogger(__name__)


JURISDICTION_CODES = {
    "ontario": "ON",
    "british columbia": "BC",
    "alberta": "AB",
    "quebec": "QC",
    "québec": "QC",
    "canada": "CA",
    "federal": "CA",
}


def normalize_jurisdiction(jurisdiction: str) -> str:
    """'Ontario' -> 'ON', 'on' -> 'ON'"""
    cleaned = (jurisdiction or "").strip()
    return JURISDICTION_CODES.get(cleaned.lower(), cleaned.upper())


@dataclass
class RuleRecord:
    id: str
    jurisdiction: str
    document_type: str
    version: str = "1.0"
    effective_date: str = ""
    required_fields: list[dict[str, Any]] = field(default_factory=list)
    signature_requirements: list[dict[str, Any]] = field(default_factory=list)
    expiry_rules: Optional[str] = None
    format_rules: list[dict[str, Any]] = field(default_factory=list)
    red_flags: list[str] = field(default_factory=list)
    legal_references: list[dict[str, Any]] = field(default_factory=list)
    last_updated: Optional[datetime] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "jurisdiction": self.jurisdiction,
            "document_type": self.document_type,
            "version": self.version,
            "effective_date": self.effective_date,
            "required_fields": self.required_fields,
            "signature_requirements": self.signature_requirements,
            "expiry_rules": self.expiry_rules,
            "format_rules": self.format_rules,
            "red_flags": self.red_flags,
            "legal_references": self.legal_references,
            "last_updated": self.last_updated.isoformat() if self.last_updated else None,
        }

    @classmethod
    def from_row(cls, row: LegalRule) -> "RuleRecord":
        return cls(
            id=row.id,
            jurisdiction=row.jurisdiction,
            document_type=row.document_type,
            version=row.version,
            effective_date=row.effective_date,
            required_fields=json.loads(row.required_fields or "[]"),
            signature_requirements=json.loads(row.signature_requirements or "[]"),
            expiry_rules=row.expiry_rules,
            format_rules=json.loads(row.format_rules or "[]"),
            red_flags=json.loads(row.red_flags or "[]"),
            legal_references=json.loads(row.legal_references or "[]"),
            last_updated=row.last_updated,
        )


@dataclass
class ReferenceRecord:
    title: str
    jurisdiction: str
    document_type: str
    source_url: str
    effective_date: str
    content: str
    key_phrases: list[str] = field(default_factory=list)


class SqlRuleRepository:

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self.session_factory = session_factory

    async def save(self, record: RuleRecord) -> RuleRecord:
        """Insert or replace a rule by id."""
        async with self.session_factory() as session:
            row = await session.get(LegalRule, record.id)
            if row is None:
                row = LegalRule(id=record.id)
                session.add(row)

            row.jurisdiction = normalize_jurisdiction(record.jurisdiction)
            row.document_type = record.document_type
            row.version = record.version
            row.effective_date = record.effective_date
            row.required_fields = json.dumps(record.required_fields)
            row.signature_requirements = json.dumps(record.signature_requirements)
            row.expiry_rules = record.expiry_rules
            row.format_rules = json.dumps(record.format_rules)
            row.red_flags = json.dumps(record.red_flags)
            row.legal_references = json.dumps(record.legal_references)
            if record.last_updated is not None:
                row.last_updated = record.last_updated

            await session.commit()
            await session.refresh(row)
            return RuleRecord.from_row(row)

    async def query(self, jurisdiction: str, document_type: str) -> Optional[RuleRecord]:
        """Newest-version rule for a jurisdiction and document type, or None."""
        async with self.session_factory() as session:
            result = await session.execute(
                select(LegalRule)
                .where(LegalRule.jurisdiction == normalize_jurisdiction(jurisdiction))
                .where(func.lower(LegalRule.document_type) == document_type.strip().lower())
                .order_by(LegalRule.version.desc())
                .limit(1)
            )
            row = result.scalar_one_or_none()
            return RuleRecord.from_row(row) if row else None

    async def references(self) -> list[ReferenceRecord]:
        async with self.session_factory() as session:
            result = await session.execute(select(LegalReference).order_by(LegalReference.id))
            return [
                ReferenceRecord(
                    title=row.title,
                    jurisdiction=row.jurisdiction or "",
                    document_type=row.document_type or "",
                    source_url=row.source_url or "",
                    effective_date=row.effective_date or "",
                    content=row.content,
                    key_phrases=json.loads(row.key_phrases or "[]"),
                )
                for row in result.scalars().all()
            ]


# =============================================================================
# Built-in rules and references
# =============================================================================

_SEED_DATE = datetime(2024, 1, 15, tzinfo=timezone.utc)

DEFAULT_RULES: tuple[RuleRecord, ...] = (
    RuleRecord(
        id="lease-ontario-v1",
        jurisdiction="ON",
        document_type="Residential Lease Agreement",
        effective_date="2024-01-01",
        required_fields=[
            {"name": "rent_amount", "type": "number", "description": "Monthly rent amount"},
            {"name": "lease_start_date", "type": "date", "description": "Lease start date"},
            {"name": "lease_end_date", "type": "date", "description": "Lease end date"},
            {"name": "property_address", "type": "string", "description": "Full property address"},
            {"name": "landlord_name", "type": "string", "description": "Landlord full name"},
            {"name": "tenant_name", "type": "string", "description": "Tenant full name"},
        ],
        signature_requirements=[
            {"role": "Landlord", "type": "wet_or_electronic"},
            {"role": "Tenant", "type": "wet_or_electronic"},
        ],
        expiry_rules="Lease term must be clearly defined. Standard lease is 12 months.",
        format_rules=[
            {"field": "rent_amount", "pattern": r"^[0-9]+(\.[0-9]{2})?$",
             "message": "Rent must be a valid currency amount"},
        ],
        red_flags=[
            "Unsigned document",
            "Missing deposit receipt",
            "No lease term specified",
            "Incomplete property address",
        ],
        legal_references=[
            {"title": "Residential Tenancies Act, 2006", "section": "S.2, S.17",
             "source": "https://www.ontario.ca/laws/statute/06r17"},
        ],
        last_updated=_SEED_DATE,
    ),
    RuleRecord(
        id="aps-ontario-v1",
        jurisdiction="ON",
        document_type="Agreement of Purchase and Sale (APS)",
        effective_date="2024-01-01",
        required_fields=[
            {"name": "purchase_price", "type": "number", "description": "Total purchase price"},
            {"name": "closing_date", "type": "date", "description": "Transaction closing date"},
            {"name": "property_address", "type": "string", "description": "Full property address"},
            {"name": "deposit_amount", "type": "number", "description": "Initial deposit amount"},
            {"name": "legal_description", "type": "string", "description": "Legal description of property"},
        ],
        signature_requirements=[
            {"role": "Buyer", "type": "wet_or_electronic"},
            {"role": "Seller", "type": "wet_or_electronic"},
        ],
        expiry_rules="Completion date must be on or after today for validity.",
        format_rules=[
            {"field": "purchase_price", "pattern": r"^[0-9]+(\.[0-9]{2})?$",
             "message": "Purchase price must be a valid currency amount"},
            {"field": "deposit_amount", "pattern": r"^[0-9]+(\.[0-9]{2})?$",
             "message": "Deposit amount must be a valid currency amount"},
        ],
        red_flags=[
            "Missing mandatory Schedule A",
            "Alterations to OREA Form 100 without initials",
            "Incomplete legal description",
            "No completion date specified",
        ],
        legal_references=[
            {"title": "Real Estate and Business Brokers Act, 2002", "section": "S.21, S.22",
             "source": "https://www.ontario.ca/laws/statute/02r30"},
            {"title": "OREA Standard Form 100", "source": "https://www.orea.com/"},
        ],
        last_updated=_SEED_DATE,
    ),
    RuleRecord(
        id="cra-noa-v1",
        jurisdiction="CA",
        document_type="Notice of Assessment (CRA)",
        effective_date="2024-01-01",
        required_fields=[
            {"name": "tax_year", "type": "number", "description": "Tax year being assessed"},
            {"name": "total_income", "type": "number", "description": "Total income reported"},
            {"name": "assessment_date", "type": "date", "description": "Date of assessment"},
            {"name": "sin", "type": "string", "description": "Masked SIN number"},
        ],
        expiry_rules="Valid if dated within 18 months unless a recency requirement is specified.",
        red_flags=["Missing SIN", "No tax year specified", "Assessment date missing"],
        legal_references=[
            {"title": "Income Tax Act", "section": "S.150, S.152",
             "source": "https://laws-lois.justice.gc.ca/eng/acts/I-3.3/"},
        ],
        last_updated=_SEED_DATE,
    ),
)

DEFAULT_REFERENCES: tuple[ReferenceRecord, ...] = (
    ReferenceRecord(
        title="Residential Tenancies Act, 2006",
        jurisdiction="ON",
        document_type="Residential Lease Agreement",
        source_url="https://www.ontario.ca/laws/statute/06r17",
        effective_date="2006-01-01",
        content="The Residential Tenancies Act governs the rights and responsibilities of landlords "
                "and tenants in Ontario. It establishes rules for rent increases, evictions, "
                "maintenance obligations, and lease agreements.",
        key_phrases=["lease", "tenant", "landlord", "rent", "eviction", "maintenance"],
    ),
    ReferenceRecord(
        title="Real Estate and Business Brokers Act, 2002",
        jurisdiction="ON",
        document_type="Agreement of Purchase and Sale (APS)",
        source_url="https://www.ontario.ca/laws/statute/02r30",
        effective_date="2002-01-01",
        content="This Act regulates real estate brokerage activities in Ontario, including "
                "requirements for agreements of purchase and sale, deposit handling, professional "
                "conduct, and client representation.",
        key_phrases=["purchase", "sale", "deposit", "broker", "agent", "representation"],
    ),
    ReferenceRecord(
        title="OREA Standard Form 100",
        jurisdiction="ON",
        document_type="Agreement of Purchase and Sale (APS)",
        source_url="https://www.orea.com/",
        effective_date="2024-01-01",
        content="The standard form for agreements of purchase and sale used by Ontario real estate "
                "professionals. Includes required clauses, conditions, and legal protections for "
                "both buyers and sellers.",
        key_phrases=["OREA", "form", "standard", "clauses", "conditions"],
    ),
    ReferenceRecord(
        title="Income Tax Act",
        jurisdiction="CA",
        document_type="Notice of Assessment (CRA)",
        source_url="https://laws-lois.justice.gc.ca/eng/acts/I-3.3/",
        effective_date="1985-01-01",
        content="The federal Income Tax Act governs income tax assessment and collection in Canada. "
                "It establishes the framework for tax returns, assessments, appeals, and enforcement.",
        key_phrases=["tax", "assessment", "income", "CRA", "return"],
    ),
)


async def seed_default_rules(session_factory: async_sessionmaker[AsyncSession]) -> None:
    """Load the built-in rules and references. Existing rows are left alone."""
    repository = SqlRuleRepository(session_factory)
    added_rules = 0
    for record in DEFAULT_RULES:
        if await repository.query(record.jurisdiction, record.document_type) is None:
            await repository.save(record)
            added_rules += 1

    added_refs = 0
    async with session_factory() as session:
        existing = set((await session.execute(select(LegalReference.title))).scalars().all())
        for ref in DEFAULT_REFERENCES:
            if ref.title in existing:
                continue
            session.add(LegalReference(
                title=ref.title,
                jurisdiction=ref.jurisdiction,
                document_type=ref.document_type,
                source_url=ref.source_url,
                effective_date=ref.effective_date,
                content=ref.content,
                key_phrases=json.dumps(ref.key_phrases),
            ))
            added_refs += 1
        await session.commit()

    if added_rules or added_refs:
        logger.info(f"Seeded {added_rules} legal rule(s) and {added_refs} reference(s)")
