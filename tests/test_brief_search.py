"""
Tests for legal brief search: local term ranking and the Azure AI Search
client (against httpx.MockTransport).
"""

import json

import httpx
import pytest
from sqlalchemy.exc import OperationalError

from app.core.config import Settings
from app.models.models import LegalReference
from app.services.brief_search import AzureBriefSearch, LocalBriefSearch, build_brief_search
from app.services.legal_rules import DEFAULT_REFERENCES, SqlRuleRepository


SEARCH_ENDPOINT = "https://docscan-search.search.windows.net"


class TestLocalBriefSearch:

    @pytest.fixture
    def search(self):
        return LocalBriefSearch()

    @pytest.mark.anyio
    async def test_ranking(self, search):
        hits = await search.search("deposit purchase")

        assert [h.title for h in hits] == [
            "Real Estate and Business Brokers Act, 2002",
            "OREA Standard Form 100",
        ]
        assert hits[0].score == 6.0
        assert hits[0].source == "local"

    @pytest.mark.anyio
    async def test_jurisdiction_filter(self, search):
        hits = await search.search("", {"jurisdiction": "Canada"})
        assert [h.title for h in hits] == ["Income Tax Act"]

    @pytest.mark.anyio
    async def test_document_type_filter(self, search):
        hits = await search.search("", {"document_type": "residential lease agreement"})
        assert [h.title for h in hits] == ["Residential Tenancies Act, 2006"]

    @pytest.mark.anyio
    async def test_no_overlap(self, search):
        assert await search.search("zebra crossing") == []

    @pytest.mark.anyio
    async def test_limit(self, search):
        assert len(await search.search("", limit=2)) == 2


class TestStoredReferences:

    @pytest.mark.anyio
    async def test_reads_reference_table(self, database):
        async with database() as session:
            session.add(LegalReference(
                title="Condominium Act, 1998",
                jurisdiction="ON",
                document_type="Status Certificate",
                source_url="https://www.ontario.ca/laws/statute/98c19",
                effective_date="2001-05-05",
                content="Status certificates disclose common expense arrears.",
                key_phrases=json.dumps(["condominium"]),
            ))
            await session.commit()

        search = LocalBriefSearch(repository=SqlRuleRepository(database))
        hits = await search.search("condominium arrears")

        assert hits[0].title == "Condominium Act, 1998"
        assert len(search.references) == len(DEFAULT_REFERENCES) + 1

    @pytest.mark.anyio
    async def test_unavailable_table_keeps_built_in_references(self):
        class BrokenRepository:
            async def references(self):
                raise OperationalError("SELECT", {}, Exception("no such table: legal_references"))

        search = LocalBriefSearch(repository=BrokenRepository())
        hits = await search.search("deposit purchase")
        assert hits[0].title == "Real Estate and Business Brokers Act, 2002"


class TestAzureBriefSearch:

    def test_build_filter(self):
        odata = AzureBriefSearch.build_filter({"jurisdiction": "Ontario", "document_type": "Tenant's Notice"})
        assert odata == "jurisdiction eq 'ON' and documentType eq 'Tenant''s Notice'"
        assert AzureBriefSearch.build_filter({}) is None

    def test_build_filter_escapes_jurisdiction(self):
        odata = AzureBriefSearch.build_filter({"jurisdiction": "ON' or 1 eq 1 or '"})
        assert odata == "jurisdiction eq 'ON'' OR 1 EQ 1 OR '''"

    @pytest.mark.anyio
    async def test_search(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["path"] = request.url.path
            seen["api_key"] = request.headers["api-key"]
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json={"value": [{
                "title": "Residential Tenancies Act, 2006",
                "content": "Rules for rent increases.",
                "sourceUrl": "https://www.ontario.ca/laws/statute/06r17",
                "jurisdiction": "ON",
                "documentType": "Residential Lease Agreement",
                "@search.score": 3.5,
            }]})

        search = AzureBriefSearch(
            SEARCH_ENDPOINT, "search-key",
            client=httpx.AsyncClient(transport=httpx.MockTransport(handler)),
        )
        hits = await search.search("rent increase", {"jurisdiction": "ON"}, limit=3)

        assert seen["path"] == "/indexes/legalrefs-index/docs/search"
        assert seen["api_key"] == "search-key"
        assert seen["body"] == {"search": "rent increase", "top": 3, "filter": "jurisdiction eq 'ON'"}
        assert hits[0].score == 3.5
        assert hits[0].source == "azure"

    @pytest.mark.anyio
    async def test_falls_back_to_local_on_error(self):
        search = AzureBriefSearch(
            SEARCH_ENDPOINT, "search-key",
            client=httpx.AsyncClient(transport=httpx.MockTransport(lambda request: httpx.Response(503))),
        )
        hits = await search.search("deposit purchase")
        assert hits
        assert all(h.source == "local" for h in hits)


class TestBuildBriefSearch:

    def test_unconfigured(self):
        search = build_brief_search(Settings(search_endpoint="", search_key=""))
        assert search.name == "local"

    def test_configured(self):
        search = build_brief_search(Settings(search_endpoint=SEARCH_ENDPOINT, search_key="k", search_index="refs"))
        assert search.name == "azure"
        assert search.search_url.endswith("/indexes/refs/docs/search")
