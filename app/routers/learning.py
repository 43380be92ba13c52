"""
📊 Learning Log - API Router
Usage statistics and answer feedback.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, ConfigDict, Field

from app.core.dependencies import get_learning
from app.services.learning_store import LearningEvent, LearningRepository

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Learning"])

HELPFUL_VALUES = {"helpful", "positive", "yes", "up", "thumbs_up", "true", "1"}


class FeedbackRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    question: str = Field(..., min_length=1)
    feedback: str = Field(..., description="helpful / not_helpful")
    document_type: Optional[str] = Field(None, alias="documentType")
    comment: Optional[str] = None


@router.get("/learning/stats")
async def learning_stats(learning: LearningRepository = Depends(get_learning)):
    try:
        return await learning.stats()
    except Exception as e:
        logger.error(f"Failed to load learning stats: {e}")
        raise HTTPException(status_code=500, detail=f"Failed to load learning stats: {e}")


@router.post("/feedback")
async def record_feedback(
    request: FeedbackRequest,
    learning: LearningRepository = Depends(get_learning),
):
    payload = {
        "question": request.question,
        "feedback": request.feedback,
        "helpful": request.feedback.strip().lower() in HELPFUL_VALUES,
    }
    if request.comment:
        payload["comment"] = request.comment

    try:
        await learning.record(LearningEvent(kind="feedback", document_type=request.document_type, payload=payload))
        return {"recorded": True}
    except Exception as e:
        logger.error(f"Failed to record feedback: {e}")
        raise HTTPException(status_code=500, detail=f"Failed to record feedback: {e}")
