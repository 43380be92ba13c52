"""
Tests for text extraction: plain decoding, sample documents and the
Azure Document Intelligence client (against httpx.MockTransport).
"""

import httpx
import pytest

from app.core.config import Settings
from app.services.errors import ExtractionError
from app.services.text_extraction import (
    SAMPLE_LEASE,
    AzureDocumentIntelligenceExtractor,
    PlainTextExtractor,
    SampleTextExtractor,
    build_text_extractor,
    decode_text,
    text_from_analyze_result,
)


ENDPOINT = "https://docscan-di.cognitiveservices.azure.com"
OPERATION_URL = f"{ENDPOINT}/formrecognizer/documentModels/prebuilt-layout/analyzeResults/abc123"


def make_extractor(handler, max_polls: int = 5) -> AzureDocumentIntelligenceExtractor:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return AzureDocumentIntelligenceExtractor(
        endpoint=ENDPOINT + "/",
        api_key="test-key",
        poll_interval=0,
        max_polls=max_polls,
        client=client,
    )


class TestPlainText:

    def test_utf8(self):
        assert decode_text("Montréal".encode("utf-8")) == "Montréal"

    def test_latin1_fallback(self):
        assert decode_text(b"caf\xe9") == "café"

    @pytest.mark.anyio
    async def test_extract(self):
        assert await PlainTextExtractor().extract(b"Tenant: A. Person", "x.txt") == "Tenant: A. Person"


class TestSampleText:

    @pytest.mark.anyio
    async def test_filename_selects_sample(self):
        assert await SampleTextExtractor().extract(b"", "My_Lease.pdf") == SAMPLE_LEASE

    @pytest.mark.anyio
    async def test_unknown_filename_decodes_content(self):
        assert await SampleTextExtractor().extract(b"hello", "notes.txt") == "hello"


class TestAzureDocumentIntelligence:

    @pytest.mark.anyio
    async def test_submit_then_poll(self):
        calls = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append((request.method, request.url.path))
            if request.method == "POST":
                assert request.headers["Ocp-Apim-Subscription-Key"] == "test-key"
                assert request.url.params["api-version"] == "2023-07-31"
                return httpx.Response(202, headers={"Operation-Location": OPERATION_URL})
            if len(calls) < 3:
                return httpx.Response(200, json={"status": "running"})
            return httpx.Response(200, json={
                "status": "succeeded",
                "analyzeResult": {"content": "Residential Lease Agreement"},
            })

        text = await make_extractor(handler).extract(b"%PDF", "lease.pdf")

        assert text == "Residential Lease Agreement"
        assert calls[0] == ("POST", "/formrecognizer/documentModels/prebuilt-layout:analyze")
        assert len(calls) == 3

    @pytest.mark.anyio
    async def test_rejected_upload(self):
        extractor = make_extractor(lambda request: httpx.Response(401, json={"error": "denied"}))
        with pytest.raises(ExtractionError, match="HTTP 401"):
            await extractor.extract(b"%PDF", "lease.pdf")

    @pytest.mark.anyio
    async def test_missing_operation_location(self):
        extractor = make_extractor(lambda request: httpx.Response(202))
        with pytest.raises(ExtractionError, match="Operation-Location"):
            await extractor.extract(b"%PDF", "lease.pdf")

    @pytest.mark.anyio
    async def test_failed_analysis(self):
        def handler(request):
            if request.method == "POST":
                return httpx.Response(202, headers={"Operation-Location": OPERATION_URL})
            return httpx.Response(200, json={"status": "failed", "error": {"code": "InvalidContent"}})

        with pytest.raises(ExtractionError, match="failed"):
            await make_extractor(handler).extract(b"%PDF", "lease.pdf")

    @pytest.mark.anyio
    async def test_timeout(self):
        def handler(request):
            if request.method == "POST":
                return httpx.Response(202, headers={"Operation-Location": OPERATION_URL})
            return httpx.Response(200, json={"status": "running"})

        with pytest.raises(ExtractionError, match="timed out after 2 polls"):
            await make_extractor(handler, max_polls=2).extract(b"%PDF", "lease.pdf")

    @pytest.mark.anyio
    async def test_transport_error(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(ExtractionError, match="request failed"):
            await make_extractor(handler).extract(b"%PDF", "lease.pdf")


class TestAnalyzeResult:

    def test_prefers_content(self):
        assert text_from_analyze_result({"content": "full", "pages": [{"lines": [{"content": "x"}]}]}) == "full"

    def test_lines_then_words(self):
        result = {
            "pages": [
                {"lines": [{"content": "Line one"}, {"content": "Line two"}]},
                {"words": [{"content": "word"}, {"content": "soup"}]},
            ]
        }
        assert text_from_analyze_result(result) == "Line one\nLine two\nword soup"

    def test_empty(self):
        assert text_from_analyze_result({}) == ""


class TestBuildTextExtractor:

    def test_unconfigured_uses_plain_text(self):
        settings = Settings(document_intelligence_endpoint="", document_intelligence_key="")
        assert isinstance(build_text_extractor(settings), PlainTextExtractor)

    def test_configured_uses_azure(self):
        settings = Settings(
            document_intelligence_endpoint=ENDPOINT,
            document_intelligence_key="k",
            document_intelligence_max_polls=7,
        )
        extractor = build_text_extractor(settings)
        assert isinstance(extractor, AzureDocumentIntelligenceExtractor)
        assert extractor.max_polls == 7
