"""
Q&A Formatter
=============

Answers questions about an AnalysisResult with canned Markdown.

Intent is picked by whole-word matching, first hit wins:

    document_purpose  "what" together with "document" or "for"
    completeness      missing / incomplete / complete
    validity          valid / invalid / ready
    financial         price / cost / amount / rent / deposit
    temporal          date / when / expire / deadline
    parties           who / party / parties
    location          where / address / located
    process           how / process / step / next
    general           anything else

Every answer ends with a "Next Steps" section and is recorded to the
learning log as a "question" event.
"""

import logging
import re
from dataclasses import dataclass
from typing import Any, Optional

from app.core.utc import utc_now_iso
from app.services.document_analyzer import AnalysisResult
from app.services.field_patterns import field_label
from app.services.learning_store import LearningEvent, LearningRepository, NullLearningRepository

logger = logging.getLogger(__name__)


INTENT_RULES: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("completeness", (r"missing", r"incomplete", r"complete(?:ness)?")),
    ("validity", (r"(?:in)?valid(?:ity)?", r"ready")),
    ("financial", (r"price", r"costs?", r"amounts?", r"rent", r"deposit")),
    ("temporal", (r"dates?", r"when", r"expir(?:e|es|y|ation)", r"deadline")),
    ("parties", (r"who", r"party", r"parties")),
    ("location", (r"where", r"address", r"located")),
    ("process", (r"how", r"process", r"steps?", r"next")),
)

FINANCIAL_FIELDS = (
    "purchase_price", "deposit_amount", "rent_amount", "current_rent", "proposed_rent",
    "security_deposit", "amount", "principal_amount", "payment_amount", "interest_rate",
    "coverage_amount", "premium_amount", "deductible", "appraised_value",
    "total_income", "tax_owed", "refund_amount",
)

PROCESS_STEPS: dict[str, tuple[str, ...]] = {
    "Real Estate": (
        "Confirm every party has signed and initialled each page",
        "Deliver the deposit within the time the agreement allows",
        "Satisfy or waive all conditions before their deadlines",
        "Have a real estate lawyer complete the closing",
    ),
    "Rental": (
        "Both landlord and tenant sign the lease",
        "Collect the deposit and give a receipt",
        "Keep a copy of the signed lease for your records",
    ),
    "Legal Form": (
        "Check the form number and version are current",
        "Serve the form on the other party as the Board's rules require",
        "File the form with the Landlord and Tenant Board with the filing fee",
        "Attend the hearing with your supporting evidence",
    ),
}

DEFAULT_PROCESS_STEPS = (
    "Review the document for missing information",
    "Have all parties sign where required",
    "Keep a copy for your records",
)


@dataclass
class QAAnswer:
    question: str
    intent: str
    markdown: str
    document_type: str
    timestamp: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "answerMarkdown": self.markdown,
            "intent": self.intent,
            "documentType": self.document_type,
            "timestamp": self.timestamp,
        }


def classify_intent(question: str) -> str:
    words = set(re.findall(r"[a-z]+", (question or "").lower()))
    if "what" in words and ({"document", "for"} & words):
        return "document_purpose"
    text = " ".join(sorted(words))
    for intent, patterns in INTENT_RULES:
        if any(re.search(rf"\b{p}\b", text) for p in patterns):
            return intent
    return "general"


def _bullets(items: list[str]) -> str:
    return "\n".join(f"- {item}" for item in items)


def _field_lines(result: AnalysisResult, names) -> list[str]:
    return [
        f"**{field_label(name)}:** {result.extracted_fields[name]}"
        for name in names
        if name in result.extracted_fields
    ]


# =============================================================================
# Intent templates
# =============================================================================

def _document_purpose(result: AnalysisResult) -> str:
    parts = [
        f"## 📄 {result.document_type}",
        result.description,
        f"**Category:** {result.category}  \n"
        f"**Jurisdiction:** {result.jurisdiction}  \n"
        f"**Classification confidence:** {result.confidence:.0%}",
    ]
    if result.legal_references:
        parts.append("### Governing law\n" + _bullets(result.legal_references))
    return "\n\n".join(parts)


def _completeness(result: AnalysisResult) -> str:
    report = result.completeness
    parts = [f"## ✅ Completeness: {report.score}% ({report.status})"]

    present = []
    for name in report.present_required + report.present_optional:
        value = report.fields[name].value if name in report.fields else None
        present.append(f"{field_label(name)}: {value}" if value else field_label(name))
    if present:
        parts.append("### Found\n" + _bullets(present))
    if report.missing_required:
        parts.append("### Missing required fields\n" + _bullets([field_label(n) for n in report.missing_required]))
    if report.missing_optional:
        parts.append("### Missing optional fields\n" + _bullets([field_label(n) for n in report.missing_optional]))
    if not report.missing_required and report.score:
        parts.append("All required fields were found.")
    return "\n\n".join(parts)


def _validity(result: AnalysisResult) -> str:
    report = result.validity
    parts = [f"## ⚖️ Validity: {report.status} ({report.score}/100)"]
    if report.issues:
        parts.append("### Issues\n" + _bullets(report.issues))
    if report.warnings:
        parts.append("### Warnings\n" + _bullets(report.warnings))

    signatures = report.signatures
    if signatures.required:
        lines = [f"{role.title()}: {'✓ signed' if role in signatures.present else '✗ missing'}"
                 for role in signatures.required]
        parts.append("### Signatures\n" + _bullets(lines))

    if result.issue_date:
        expiry = f"Issued {result.issue_date}"
        if result.expiry_date:
            expiry += f", {'expired' if report.expiry.is_expired else 'valid until'} {result.expiry_date}"
        parts.append(expiry + ".")

    if not report.issues and not report.warnings:
        parts.append("No validity problems were detected.")
    return "\n\n".join(parts)


def _financial(result: AnalysisResult) -> str:
    lines = _field_lines(result, FINANCIAL_FIELDS)
    if not lines:
        return "## 💰 Financial details\n\nNo amounts were detected in this document."
    return "## 💰 Financial details\n\n" + _bullets(lines)


def _temporal(result: AnalysisResult) -> str:
    date_fields = [name for name in result.extracted_fields if name.endswith("_date")]
    lines = _field_lines(result, date_fields)
    if result.expiry_date and not result.validity.expiry.is_expired:
        lines.append(f"**Valid until:** {result.expiry_date}")
    elif result.expiry_date:
        lines.append(f"**Expired on:** {result.expiry_date}")
    if not lines:
        return "## 📅 Key dates\n\nNo dates were detected in this document."
    return "## 📅 Key dates\n\n" + _bullets(lines)


def _parties(result: AnalysisResult) -> str:
    names = [name for name in result.extracted_fields if name.endswith("_name")]
    lines = _field_lines(result, names)
    parts = ["## 👥 Parties"]
    parts.append(_bullets(lines) if lines else "No party names were detected in this document.")
    missing = result.validity.signatures.missing
    if missing:
        parts.append(f"Signatures still needed from: {', '.join(missing)}.")
    return "\n\n".join(parts)


def _location(result: AnalysisResult) -> str:
    address = result.extracted_fields.get("property_address")
    body = f"**Property address:** {address}" if address else "No property address was detected."
    return f"## 📍 Location\n\n{body}\n\n**Jurisdiction:** {result.jurisdiction}"


def _process(result: AnalysisResult) -> str:
    steps = PROCESS_STEPS.get(result.category, DEFAULT_PROCESS_STEPS)
    numbered = "\n".join(f"{i}. {step}" for i, step in enumerate(steps, 1))
    return f"## 🧭 Process for a {result.document_type}\n\n{numbered}"


def _general(result: AnalysisResult) -> str:
    return (
        f"## 📋 Summary\n\n"
        f"This looks like a **{result.document_type}** ({result.confidence:.0%} confidence).\n\n"
        f"- Completeness: {result.completeness.score}% ({result.completeness.status})\n"
        f"- Validity: {result.validity.status} ({result.validity.score}/100)\n"
        f"- Jurisdiction: {result.jurisdiction}"
    )


TEMPLATES = {
    "document_purpose": _document_purpose,
    "completeness": _completeness,
    "validity": _validity,
    "financial": _financial,
    "temporal": _temporal,
    "parties": _parties,
    "location": _location,
    "process": _process,
    "general": _general,
}


def next_steps(result: AnalysisResult) -> str:
    actions = result.suggested_actions or ["Document appears complete and valid"]
    return "### Next Steps\n" + _bullets(actions)


def render_answer(question: str, result: AnalysisResult) -> tuple[str, str]:
    """(intent, markdown) for a question. Pure."""
    intent = classify_intent(question)
    body = TEMPLATES[intent](result)
    return intent, f"{body}\n\n{next_steps(result)}"


def greeting(result: AnalysisResult) -> str:
    return (
        f"I've analyzed your **{result.document_type}** ({result.confidence:.0%} confidence). "
        f"It is {result.completeness.score}% complete and the validity check says "
        f"**{result.validity.status}**. What would you like to know?"
    )


def suggest_questions(result: AnalysisResult, limit: int = 4) -> list[str]:
    suggestions = []
    if result.completeness.missing_required:
        suggestions.append("What fields are missing?")
    if result.validity.issues or result.validity.warnings:
        suggestions.append("Is this document valid?")
    money = [name for name in FINANCIAL_FIELDS if name in result.extracted_fields]
    if money:
        suggestions.append(f"What is the {field_label(money[0]).lower()}?")
    if result.issue_date or any(n.endswith("_date") for n in result.extracted_fields):
        suggestions.append("When does this document expire?")
    for fallback in ("What is this document for?", "Who are the parties?", "What are the next steps?"):
        if fallback not in suggestions:
            suggestions.append(fallback)
    return suggestions[:limit]


class QAFormatter:
    """Renders answers and records each one to the learning log."""

    def __init__(self, learning: Optional[LearningRepository] = None):
        self.learning = learning if learning is not None else NullLearningRepository()

    async def answer(self, question: str, result: AnalysisResult) -> QAAnswer:
        intent, markdown = render_answer(question, result)
        answer = QAAnswer(
            question=question,
            intent=intent,
            markdown=markdown,
            document_type=result.document_type,
            timestamp=utc_now_iso(),
        )
        await self.learning.record(LearningEvent(
            kind="question",
            document_type=result.document_type,
            payload={"question": question, "intent": intent, "correlation_id": result.correlation_id},
        ))
        logger.debug(f"Answered '{question}' as {intent}")
        return answer
