"""
💬 Document Q&A - API Router
============================
Canned Markdown answers about a previous analysis.
"""

import logging
from typing import Any

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from app.core.dependencies import get_qa_formatter
from app.services.document_analyzer import AnalysisResult
from app.services.qa_formatter import QAFormatter, suggest_questions

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Document Q&A"])


class QuestionRequest(BaseModel):
    """A question about an analysis returned by /api/ScanDoc."""
    question: str = Field(..., min_length=1, description="Question about the document")
    analysis: dict[str, Any] = Field(..., description="AnalysisResult JSON from /api/ScanDoc")


@router.post("/qa")
async def answer_question(
    request: QuestionRequest,
    qa: QAFormatter = Depends(get_qa_formatter),
):
    try:
        result = AnalysisResult.from_dict(request.analysis)
        if not result.document_type:
            raise HTTPException(status_code=400, detail="Analysis is missing document_type")

        answer = await qa.answer(request.question, result)
        response = answer.to_dict()
        response["suggestedQuestions"] = suggest_questions(result)
        return response

    except HTTPException:
        raise
    except (TypeError, ValueError) as e:
        raise HTTPException(status_code=400, detail=f"Invalid analysis payload: {e}")
    except Exception as e:
        logger.exception("Q&A failed")
        raise HTTPException(status_code=500, detail=f"Q&A failed: {e}")
