"""
📄 Document Scan - API Router
=============================
Upload a document and get back its type, field completeness and validity.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile

from app.core.config import Settings
from app.core.dependencies import get_analyzer, get_app_settings
from app.services.document_analyzer import DocumentAnalyzer, detect_errors
from app.services.errors import ExtractionError
from app.services.qa_formatter import greeting, suggest_questions

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Document Scan"])


@router.post("/ScanDoc")
async def scan_document(
    file: Optional[UploadFile] = File(None),
    context: Optional[str] = Form(None, description="Expected document type, if known"),
    analyzer: DocumentAnalyzer = Depends(get_analyzer),
    settings: Settings = Depends(get_app_settings),
):
    """
    Analyze an uploaded legal document.

    Returns the AnalysisResult plus a chat greeting, suggested questions and
    any problems worth a second look.
    """
    if file is None:
        raise HTTPException(status_code=400, detail="No file uploaded")

    content = await file.read()
    filename = file.filename or "upload"
    if not content:
        raise HTTPException(status_code=400, detail="Uploaded file is empty")

    max_bytes = settings.max_upload_size_mb * 1024 * 1024
    if len(content) > max_bytes:
        raise HTTPException(
            status_code=413,
            detail=f"File too large. Maximum size is {settings.max_upload_size_mb}MB",
        )

    try:
        logger.info(f"Processing file: {filename} ({len(content)} bytes)")
        result = await analyzer.analyze(content, filename)

        expected = analyzer.registry.find(context) if context else None
        expected_type = expected.name if expected else None

        response = result.to_dict()
        response["greeting"] = greeting(result)
        response["suggested_questions"] = suggest_questions(result)
        response["errors"] = [e.to_dict() for e in detect_errors(result, expected_type)]
        return response

    except HTTPException:
        raise
    except ExtractionError as e:
        logger.error(f"Text extraction failed for {filename}: {e}")
        raise HTTPException(status_code=502, detail=f"Text extraction failed: {e}")
    except Exception as e:
        logger.exception(f"Document analysis failed for {filename}")
        raise HTTPException(status_code=500, detail=f"Document analysis failed: {e}")
