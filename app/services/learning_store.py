"""
Learning event log.

Analyses, answered questions and user feedback are recorded as
LearningEvents through an injected LearningRepository. The log is
reporting only: nothing read from it changes how documents are classified.
"""

import json
import logging
from collections import Counter, deque
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Iterable, Optional, Protocol

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.core.utc import utc_now

logger = logging.getLogger(__name__)


EVENT_KINDS = ("analysis", "question", "feedback")


@dataclass
class LearningEvent:
    kind: str
    document_type: Optional[str] = None
    payload: dict[str, Any] = field(default_factory=dict)
    created_at: datetime = field(default_factory=utc_now)

    def __post_init__(self):
        if self.kind not in EVENT_KINDS:
            raise ValueError(f"Unknown learning event kind: {self.kind}")

    def to_dict(self) -> dict[str, Any]:
        return {
            "kind": self.kind,
            "document_type": self.document_type,
            "payload": dict(self.payload),
            "created_at": self.created_at.isoformat(),
        }


class LearningRepository(Protocol):
    async def record(self, event: LearningEvent) -> None:
        ...

    async def stats(self) -> dict[str, Any]:
        ...


def summarize(events: Iterable[LearningEvent]) -> dict[str, Any]:
    """Aggregate counts and averages over a set of events."""
    kinds: Counter = Counter()
    document_types: Counter = Counter()
    intents: Counter = Counter()
    confidences: list[float] = []
    completeness: list[float] = []
    helpful = 0
    rated = 0

    for event in events:
        kinds[event.kind] += 1
        payload = event.payload
        if event.kind == "analysis":
            if event.document_type:
                document_types[event.document_type] += 1
            if isinstance(payload.get("confidence"), (int, float)):
                confidences.append(float(payload["confidence"]))
            if isinstance(payload.get("completeness_score"), (int, float)):
                completeness.append(float(payload["completeness_score"]))
        elif event.kind == "question":
            intents[payload.get("intent", "general")] += 1
        elif event.kind == "feedback" and isinstance(payload.get("helpful"), bool):
            rated += 1
            helpful += payload["helpful"]

    return {
        "total_events": sum(kinds.values()),
        "analyses": kinds["analysis"],
        "questions": kinds["question"],
        "feedback": kinds["feedback"],
        "document_types": dict(document_types.most_common()),
        "question_intents": dict(intents.most_common()),
        "average_confidence": round(sum(confidences) / len(confidences), 3) if confidences else None,
        "average_completeness": round(sum(completeness) / len(completeness), 1) if completeness else None,
        "helpful_ratio": round(helpful / rated, 3) if rated else None,
    }


# =============================================================================
# Implementations
# =============================================================================

class InMemoryLearningRepository:
    """Keeps the most recent `limit` events in process memory."""

    def __init__(self, limit: int = 1000):
        self._events: deque[LearningEvent] = deque(maxlen=limit)

    def __len__(self) -> int:
        return len(self._events)

    @property
    def events(self) -> list[LearningEvent]:
        return list(self._events)

    async def record(self, event: LearningEvent) -> None:
        self._events.append(event)

    async def stats(self) -> dict[str, Any]:
        return summarize(self._events)


class NullLearningRepository:
    """Discards everything."""

    async def record(self, event: LearningEvent) -> None:
        return None

    async def stats(self) -> dict[str, Any]:
        return summarize(())


class SqlLearningRepository:
    """Persists events to the learning_events table."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession], history_limit: int = 1000):
        self.session_factory = session_factory
        self.history_limit = history_limit

    async def record(self, event: LearningEvent) -> None:
        from app.models.models import LearningEventRecord

        async with self.session_factory() as session:
            session.add(LearningEventRecord(
                kind=event.kind,
                document_type=event.document_type,
                payload=json.dumps(event.payload, default=str),
                created_at=event.created_at,
            ))
            await session.commit()

    async def stats(self) -> dict[str, Any]:
        from app.models.models import LearningEventRecord

        async with self.session_factory() as session:
            result = await session.execute(
                select(LearningEventRecord)
                .order_by(LearningEventRecord.id.desc())
                .limit(self.history_limit)
            )
            rows = result.scalars().all()

        return summarize(
            LearningEvent(
                kind=row.kind,
                document_type=row.document_type,
                payload=json.loads(row.payload or "{}"),
                created_at=row.created_at,
            )
            for row in rows
        )
