"""
Tests for the learning event log and its repositories.
"""

import pytest

from app.core.config import Settings
from app.core.dependencies import build_learning_repository
from app.services.learning_store import (
    InMemoryLearningRepository,
    LearningEvent,
    NullLearningRepository,
    SqlLearningRepository,
    summarize,
)


def analysis(document_type: str, confidence: float, completeness: int) -> LearningEvent:
    return LearningEvent(
        kind="analysis",
        document_type=document_type,
        payload={"confidence": confidence, "completeness_score": completeness},
    )


class TestLearningEvent:

    def test_unknown_kind(self):
        with pytest.raises(ValueError):
            LearningEvent(kind="training")

    def test_to_dict(self):
        data = LearningEvent(kind="feedback", payload={"helpful": True}).to_dict()
        assert data["kind"] == "feedback"
        assert data["created_at"].endswith("+00:00")


class TestSummarize:

    def test_empty(self):
        stats = summarize([])
        assert stats["total_events"] == 0
        assert stats["average_confidence"] is None
        assert stats["helpful_ratio"] is None

    def test_counts_and_averages(self):
        events = [
            analysis("Residential Lease Agreement", 0.9, 100),
            analysis("Residential Lease Agreement", 0.6, 71),
            analysis("Legal Document", 0.3, 0),
            LearningEvent(kind="question", payload={"intent": "financial"}),
            LearningEvent(kind="question", payload={"intent": "financial"}),
            LearningEvent(kind="feedback", payload={"helpful": True}),
            LearningEvent(kind="feedback", payload={"helpful": False}),
            LearningEvent(kind="feedback", payload={"comment": "no rating"}),
        ]
        stats = summarize(events)

        assert stats["total_events"] == 8
        assert stats["analyses"] == 3
        assert stats["questions"] == 2
        assert stats["feedback"] == 3
        assert stats["document_types"] == {"Residential Lease Agreement": 2, "Legal Document": 1}
        assert stats["question_intents"] == {"financial": 2}
        assert stats["average_confidence"] == 0.6
        assert stats["average_completeness"] == 57.0
        assert stats["helpful_ratio"] == 0.5


class TestInMemoryLearningRepository:

    @pytest.mark.anyio
    async def test_keeps_most_recent(self):
        repo = InMemoryLearningRepository(limit=2)
        for confidence in (0.1, 0.5, 0.9):
            await repo.record(analysis("Mortgage Document", confidence, 50))

        assert len(repo) == 2
        assert [e.payload["confidence"] for e in repo.events] == [0.5, 0.9]
        assert (await repo.stats())["average_confidence"] == 0.7

    @pytest.mark.anyio
    async def test_null_repository_discards(self):
        repo = NullLearningRepository()
        await repo.record(analysis("Mortgage Document", 0.9, 100))
        assert (await repo.stats())["total_events"] == 0


class TestSqlLearningRepository:

    @pytest.mark.anyio
    async def test_record_and_stats(self, database):
        repo = SqlLearningRepository(database)
        await repo.record(analysis("Insurance Policy", 0.8, 86))
        await repo.record(LearningEvent(kind="question", document_type="Insurance Policy",
                                        payload={"intent": "temporal"}))

        stats = await repo.stats()
        assert stats["analyses"] == 1
        assert stats["questions"] == 1
        assert stats["document_types"] == {"Insurance Policy": 1}
        assert stats["average_completeness"] == 86.0

    @pytest.mark.anyio
    async def test_history_limit(self, database):
        repo = SqlLearningRepository(database, history_limit=1)
        await repo.record(analysis("Insurance Policy", 0.2, 10))
        await repo.record(analysis("Insurance Policy", 0.4, 20))

        stats = await repo.stats()
        assert stats["analyses"] == 1
        assert stats["average_confidence"] == 0.4


class TestBuildLearningRepository:

    @pytest.mark.parametrize("backend,cls", [
        ("memory", InMemoryLearningRepository),
        ("none", NullLearningRepository),
        ("sql", SqlLearningRepository),
    ])
    def test_backend_selection(self, backend, cls):
        assert isinstance(build_learning_repository(Settings(learning_backend=backend)), cls)
