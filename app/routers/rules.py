"""
⚖️ Legal Rules & Brief Search - API Router
==========================================
Jurisdiction rule lookup and legal reference search.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, ConfigDict, Field

from app.core.dependencies import get_brief_search, get_rule_repository
from app.services.brief_search import BriefSearch
from app.services.legal_rules import SqlRuleRepository

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Legal Rules"])


class BriefSearchRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    query: str = Field("", description="Free-text search")
    jurisdiction: Optional[str] = Field(None, description="ON, Ontario, BC, ...")
    document_type: Optional[str] = Field(None, alias="documentType")
    limit: int = Field(5, ge=1, le=50)


@router.get("/rules")
async def get_rules(
    jurisdiction: str = Query(..., description="Jurisdiction code or name"),
    document_type: str = Query(..., alias="documentType", description="Document type name"),
    rules: SqlRuleRepository = Depends(get_rule_repository),
):
    try:
        rule = await rules.query(jurisdiction, document_type)
        if rule is None:
            raise HTTPException(
                status_code=404,
                detail=f"No rules found for {document_type} in {jurisdiction}",
            )
        return {"rule": rule.to_dict(), "found": True}

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Rule lookup failed: {e}")
        raise HTTPException(status_code=500, detail=f"Rule lookup failed: {e}")


@router.post("/search/brief")
async def search_briefs(
    request: BriefSearchRequest,
    search: BriefSearch = Depends(get_brief_search),
):
    filters = {}
    if request.jurisdiction:
        filters["jurisdiction"] = request.jurisdiction
    if request.document_type:
        filters["document_type"] = request.document_type

    try:
        hits = await search.search(request.query, filters, limit=request.limit)
        return {"briefs": [hit.to_dict() for hit in hits], "source": search.name}
    except Exception as e:
        logger.error(f"Brief search failed: {e}")
        raise HTTPException(status_code=500, detail=f"Brief search failed: {e}")
