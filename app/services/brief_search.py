"""
Legal brief search.

LocalBriefSearch ranks the stored legal references by overlap with the
query. AzureBriefSearch queries an Azure AI Search index and drops back to
a local search when the service errors.
"""

import logging
import re
from dataclasses import dataclass
from typing import Any, Optional, Protocol, Sequence

import httpx
from sqlalchemy.exc import SQLAlchemyError

from app.core.config import Settings
from app.services.legal_rules import (
    DEFAULT_REFERENCES,
    ReferenceRecord,
    SqlRuleRepository,
    normalize_jurisdiction,
)

logger = logging.getLogger(__name__)


EXCERPT_LENGTH = 200
DEFAULT_LIMIT = 5
KEY_PHRASE_POINTS = 2


@dataclass
class BriefHit:
    title: str
    excerpt: str
    url: str
    score: float = 0.0
    jurisdiction: str = ""
    document_type: str = ""
    source: str = "local"

    def to_dict(self) -> dict[str, Any]:
        return {
            "title": self.title,
            "excerpt": self.excerpt,
            "url": self.url,
            "score": self.score,
            "jurisdiction": self.jurisdiction,
            "document_type": self.document_type,
            "source": self.source,
        }


class BriefSearch(Protocol):
    name: str

    async def search(self, query: str, filters: Optional[dict[str, str]] = None,
                     limit: int = DEFAULT_LIMIT) -> list[BriefHit]:
        ...


def _odata_literal(value: str) -> str:
    escaped = value.replace("'", "''")
    return f"'{escaped}'"


def _terms(text: str) -> set[str]:
    return {word for word in re.findall(r"[a-z0-9]+", text.lower()) if len(word) > 2}


def _excerpt(content: str) -> str:
    if len(content) <= EXCERPT_LENGTH:
        return content
    return content[:EXCERPT_LENGTH].rsplit(" ", 1)[0] + "..."


class LocalBriefSearch:
    """
    Term-overlap ranking over ReferenceRecords.

    score = 2 per key phrase in the query + 1 per query term found in the
    title or content. With an empty query every reference passing the
    filters is returned in table order.
    """

    name = "local"

    def __init__(
        self,
        references: Sequence[ReferenceRecord] = DEFAULT_REFERENCES,
        repository: Optional[SqlRuleRepository] = None,
    ):
        self.references = list(references)
        self.repository = repository
        self._loaded = repository is None

    async def load_references(self) -> None:
        """Replace the built-in table with the stored references, once."""
        if self._loaded:
            return
        try:
            stored = await self.repository.references()
        except SQLAlchemyError as e:
            logger.warning(f"Legal references unavailable ({e}), using built-in table")
            return
        if stored:
            self.references = stored
        self._loaded = True

    async def search(self, query: str, filters: Optional[dict[str, str]] = None,
                     limit: int = DEFAULT_LIMIT) -> list[BriefHit]:
        await self.load_references()
        filters = filters or {}
        jurisdiction = filters.get("jurisdiction")
        document_type = filters.get("document_type")
        query_terms = _terms(query or "")

        ranked: list[tuple[int, ReferenceRecord]] = []
        for ref in self.references:
            if jurisdiction and ref.jurisdiction != normalize_jurisdiction(jurisdiction):
                continue
            if document_type and ref.document_type.lower() != document_type.lower():
                continue

            if not query_terms:
                ranked.append((0, ref))
                continue

            phrases = sum(KEY_PHRASE_POINTS for p in ref.key_phrases if p.lower() in query_terms)
            overlap = len(query_terms & _terms(f"{ref.title} {ref.content}"))
            if phrases + overlap > 0:
                ranked.append((phrases + overlap, ref))

        # sorted() is stable, so equal scores keep table order
        ranked = sorted(ranked, key=lambda item: item[0], reverse=True)[:limit]
        return [
            BriefHit(
                title=ref.title,
                excerpt=_excerpt(ref.content),
                url=ref.source_url,
                score=float(score),
                jurisdiction=ref.jurisdiction,
                document_type=ref.document_type,
                source=self.name,
            )
            for score, ref in ranked
        ]


class AzureBriefSearch:
    """Azure AI Search index query over the REST API."""

    name = "azure"

    def __init__(
        self,
        endpoint: str,
        api_key: str,
        index: str = "legalrefs-index",
        api_version: str = "2023-11-01",
        fallback: Optional[BriefSearch] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.endpoint = endpoint.rstrip("/")
        self.api_key = api_key
        self.index = index
        self.api_version = api_version
        self.fallback = fallback or LocalBriefSearch()
        self._client = client

    @property
    def search_url(self) -> str:
        return f"{self.endpoint}/indexes/{self.index}/docs/search"

    @staticmethod
    def build_filter(filters: dict[str, str]) -> Optional[str]:
        clauses = []
        if filters.get("jurisdiction"):
            jurisdiction = _odata_literal(normalize_jurisdiction(filters["jurisdiction"]))
            clauses.append(f"jurisdiction eq {jurisdiction}")
        if filters.get("document_type"):
            clauses.append(f"documentType eq {_odata_literal(filters['document_type'])}")
        return " and ".join(clauses) or None

    async def search(self, query: str, filters: Optional[dict[str, str]] = None,
                     limit: int = DEFAULT_LIMIT) -> list[BriefHit]:
        filters = filters or {}
        body: dict[str, Any] = {"search": query or "*", "top": limit}
        odata_filter = self.build_filter(filters)
        if odata_filter:
            body["filter"] = odata_filter

        try:
            if self._client is not None:
                response = await self._client.post(
                    self.search_url, params={"api-version": self.api_version},
                    headers={"api-key": self.api_key}, json=body,
                )
            else:
                async with httpx.AsyncClient(timeout=15.0) as client:
                    response = await client.post(
                        self.search_url, params={"api-version": self.api_version},
                        headers={"api-key": self.api_key}, json=body,
                    )
            response.raise_for_status()
            documents = response.json().get("value", [])
        except (httpx.HTTPError, ValueError) as e:
            logger.warning(f"Azure AI Search failed ({e}), using local brief search")
            return await self.fallback.search(query, filters, limit)

        return [
            BriefHit(
                title=doc.get("title", "Untitled"),
                excerpt=_excerpt(doc.get("content", "")),
                url=doc.get("sourceUrl") or doc.get("url", ""),
                score=float(doc.get("@search.score", 0.0)),
                jurisdiction=doc.get("jurisdiction", ""),
                document_type=doc.get("documentType", ""),
                source=self.name,
            )
            for doc in documents
        ]


def build_brief_search(settings: Settings, repository: Optional[SqlRuleRepository] = None) -> BriefSearch:
    local = LocalBriefSearch(repository=repository)
    if settings.search_configured:
        logger.info(f"Brief search: Azure AI Search index {settings.search_index}")
        return AzureBriefSearch(
            endpoint=settings.search_endpoint,
            api_key=settings.search_key,
            index=settings.search_index,
            api_version=settings.search_api_version,
            fallback=local,
        )
    logger.warning("Azure AI Search not configured, falling back to local brief search")
    return local
