"""
Health check endpoint.
"""

from fastapi import APIRouter, Depends

from app.core.config import Settings
from app.core.dependencies import get_app_settings, get_registry
from app.core.utc import utc_now_iso
from app.services.document_profiles import ProfileRegistry

router = APIRouter(prefix="/api", tags=["Health"])


@router.get("/health")
async def health(
    settings: Settings = Depends(get_app_settings),
    registry: ProfileRegistry = Depends(get_registry),
):
    return {
        "status": "healthy",
        "service": settings.app_name,
        "version": settings.app_version,
        "timestamp": utc_now_iso(),
        "document_types": registry.names(),
        "text_extraction": "azure" if settings.document_intelligence_configured else "plain",
        "brief_search": "azure" if settings.search_configured else "local",
    }
