"""
DocScan Database Models
SQLAlchemy ORM models for the optional collaborators: legal rules,
legal references and the learning event log.

All datetime columns use DateTime(timezone=True) for proper UTC handling.
Use utc_now() from app.core.utc for all timestamp defaults.
"""

from datetime import datetime
from typing import Optional
from sqlalchemy import String, Text, Integer, DateTime
from sqlalchemy.orm import Mapped, mapped_column

from app.core.database import Base
from app.core.utc import utc_now


# Type alias for timezone-aware DateTime columns
DateTimeTZ = DateTime(timezone=True)


# =============================================================================
# Legal Rules
# =============================================================================

class LegalRule(Base):
    """
    Validation rule set for one document type in one jurisdiction.

    List-valued columns hold JSON text; SqlRuleRepository encodes/decodes them.
    """
    __tablename__ = "legal_rules"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)  # e.g. lease-ontario-v1
    jurisdiction: Mapped[str] = mapped_column(String(8), index=True)  # ON, BC, CA
    document_type: Mapped[str] = mapped_column(String(100), index=True)
    version: Mapped[str] = mapped_column(String(20), default="1.0")
    effective_date: Mapped[str] = mapped_column(String(10))  # YYYY-MM-DD

    required_fields: Mapped[str] = mapped_column(Text, default="[]")  # JSON array of {name, type, description}
    signature_requirements: Mapped[str] = mapped_column(Text, default="[]")  # JSON array of {role, type}
    expiry_rules: Mapped[Optional[str]] = mapped_column(Text, nullable=True)  # free text
    format_rules: Mapped[str] = mapped_column(Text, default="[]")  # JSON array of {field, pattern, message}
    red_flags: Mapped[str] = mapped_column(Text, default="[]")  # JSON array of strings
    legal_references: Mapped[str] = mapped_column(Text, default="[]")  # JSON array of {title, section, source}

    last_updated: Mapped[datetime] = mapped_column(DateTimeTZ, default=utc_now, onupdate=utc_now)


class LegalReference(Base):
    """Statute/guideline excerpt searched by the local brief search."""
    __tablename__ = "legal_references"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    title: Mapped[str] = mapped_column(String(255), unique=True)
    jurisdiction: Mapped[Optional[str]] = mapped_column(String(8), nullable=True, index=True)
    document_type: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    source_url: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    effective_date: Mapped[Optional[str]] = mapped_column(String(10), nullable=True)
    content: Mapped[str] = mapped_column(Text, default="")
    key_phrases: Mapped[str] = mapped_column(Text, default="[]")  # JSON array of strings
    created_at: Mapped[datetime] = mapped_column(DateTimeTZ, default=utc_now)


# =============================================================================
# Learning Events
# =============================================================================

class LearningEventRecord(Base):
    """One analysis, question or feedback event."""
    __tablename__ = "learning_events"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    kind: Mapped[str] = mapped_column(String(20), index=True)  # analysis, question, feedback
    document_type: Mapped[Optional[str]] = mapped_column(String(100), nullable=True, index=True)
    payload: Mapped[str] = mapped_column(Text, default="{}")  # JSON object
    created_at: Mapped[datetime] = mapped_column(DateTimeTZ, default=utc_now, index=True)
