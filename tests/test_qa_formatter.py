"""
Tests for question intent classification and canned Markdown answers.
"""

from datetime import date

import pytest

from app.services.document_analyzer import DocumentAnalyzer
from app.services.learning_store import InMemoryLearningRepository
from app.services.qa_formatter import (
    QAFormatter,
    classify_intent,
    greeting,
    render_answer,
    suggest_questions,
)
from app.services.text_extraction import SAMPLE_LEASE


@pytest.fixture
def aps_result(registry, aps_text):
    return DocumentAnalyzer(registry).analyze_text(aps_text, "offer.pdf", today=date(2024, 4, 1))


class TestClassifyIntent:

    @pytest.mark.parametrize("question,intent", [
        ("What is this document for?", "document_purpose"),
        ("What kind of document is this?", "document_purpose"),
        ("What fields are missing?", "completeness"),
        ("Is it complete?", "completeness"),
        ("Is this valid?", "validity"),
        ("Is it ready to sign?", "validity"),
        ("How much is the deposit?", "financial"),
        ("What is the purchase price?", "financial"),
        ("When does it expire?", "temporal"),
        ("Who are the parties?", "parties"),
        ("Where is the property located?", "location"),
        ("What are the next steps?", "process"),
        ("Tell me something interesting", "general"),
        ("", "general"),
    ])
    def test_intents(self, question, intent):
        assert classify_intent(question) == intent

    def test_whole_words_only(self):
        """'rented' must not hit the financial 'rent' rule."""
        assert classify_intent("Was it rented before?") == "general"


class TestRenderAnswer:

    def test_purchase_price(self, aps_result):
        intent, markdown = render_answer("What is the purchase price?", aps_result)
        assert intent == "financial"
        assert "**Purchase Price:** $750,000" in markdown
        assert "**Deposit:** $37,500" in markdown

    def test_every_answer_has_next_steps(self, aps_result):
        for question in ("What is this document for?", "Is this valid?", "Who signs?", "Hello"):
            _, markdown = render_answer(question, aps_result)
            assert "### Next Steps" in markdown

    def test_completeness_lists_missing_fields(self, aps_result):
        _, markdown = render_answer("What fields are missing?", aps_result)
        assert markdown.startswith("## ✅ Completeness: 86% (Mostly Complete)")
        assert "- Irrevocable Date" in markdown

    def test_validity(self, aps_result):
        _, markdown = render_answer("Is this valid?", aps_result)
        assert "Validity: Valid (95/100)" in markdown
        assert "No issue date found in document" in markdown
        assert "Buyer: ✓ signed" in markdown

    def test_parties(self, aps_result):
        _, markdown = render_answer("Who are the parties?", aps_result)
        assert "**Buyer:** John Smith" in markdown
        assert "**Seller:** Jane Doe" in markdown

    def test_location(self, aps_result):
        _, markdown = render_answer("Where is it?", aps_result)
        assert "123 Main Street, Toronto, ON" in markdown
        assert "**Jurisdiction:** Ontario" in markdown

    def test_process_steps_by_category(self, registry):
        result = DocumentAnalyzer(registry).analyze_text(SAMPLE_LEASE, today=date(2024, 6, 1))
        _, markdown = render_answer("What are the next steps?", result)
        assert "1. Both landlord and tenant sign the lease" in markdown

    def test_financial_without_amounts(self, registry):
        result = DocumentAnalyzer(registry).analyze_text("Lorem ipsum")
        _, markdown = render_answer("How much does it cost?", result)
        assert "No amounts were detected" in markdown


class TestChatHelpers:

    def test_greeting(self, aps_result):
        text = greeting(aps_result)
        assert "Agreement of Purchase and Sale (APS)" in text
        assert "86% complete" in text

    def test_suggested_questions(self, aps_result):
        questions = suggest_questions(aps_result)
        assert len(questions) == 4
        assert questions[0] == "What fields are missing?"
        assert "What is the purchase price?" in questions

    def test_suggestion_limit(self, aps_result):
        assert len(suggest_questions(aps_result, limit=2)) == 2


class TestQAFormatter:

    def test_keeps_empty_learning_repository(self):
        learning = InMemoryLearningRepository()
        assert QAFormatter(learning).learning is learning

    @pytest.mark.anyio
    async def test_answer_is_recorded(self, aps_result):
        learning = InMemoryLearningRepository()
        formatter = QAFormatter(learning)

        answer = await formatter.answer("What is the purchase price?", aps_result)

        assert answer.intent == "financial"
        data = answer.to_dict()
        assert set(data) == {"answerMarkdown", "intent", "documentType", "timestamp"}
        assert data["documentType"] == "Agreement of Purchase and Sale (APS)"

        stats = await learning.stats()
        assert stats["questions"] == 1
        assert stats["question_intents"] == {"financial": 1}
