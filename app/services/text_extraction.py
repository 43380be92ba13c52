"""
DocScan - Text Extraction
Turns uploaded bytes into plain text for the analyzer.

Extractors:
- PlainTextExtractor: UTF-8 decode with latin-1 fallback
- SampleTextExtractor: canned documents keyed by filename (demos, tests)
- AzureDocumentIntelligenceExtractor: Azure prebuilt-layout OCR over httpx
"""

import asyncio
import logging
from typing import Optional, Protocol

import httpx

from app.core.config import Settings
from app.services.errors import ExtractionError

logger = logging.getLogger(__name__)


class TextExtractor(Protocol):
    async def extract(self, content: bytes, filename: str) -> str:
        ...


def decode_text(content: bytes) -> str:
    try:
        return content.decode("utf-8")
    except UnicodeDecodeError:
        return content.decode("latin-1", errors="replace")


class PlainTextExtractor:
    """Treats every upload as text."""

    async def extract(self, content: bytes, filename: str) -> str:
        return decode_text(content)


# =============================================================================
# Sample documents
# =============================================================================

SAMPLE_APS = """AGREEMENT OF PURCHASE AND SALE
Property Address: 123 Main Street, Toronto, ON
Purchase Price: $750,000
Deposit: $37,500
Closing Date: June 15, 2024
Irrevocable until: March 20, 2024
Agreement Date: March 15, 2024
Buyer: John Smith
Seller: Jane Doe
Schedule A: Attached
Buyer Signature: [Signed]
Seller Signature: [Signed]
"""

SAMPLE_LEASE = """RESIDENTIAL LEASE AGREEMENT
Landlord: ABC Property Management Inc.
Tenant: Sarah Johnson
Property Address: 456 Oak Avenue, Unit 12, Toronto, ON
Monthly Rent: $2,500.00
Security Deposit: $2,500.00
Lease Start Date: January 1, 2024
Lease End Date: December 31, 2024
Lease Term: 12 months
Utilities: Tenant pays hydro
Parking: One spot included
Pets: Not allowed
Dated: December 1, 2023
Tenant Signature: [Signed]
Landlord Signature: [Signed]
"""

SAMPLE_A2 = """APPLICATION TO INCREASE RENT
FORM A2
Landlord and Tenant Board
Landlord: ABC Properties
Tenant: John Smith
Property Address: 456 Oak Street, Toronto, ON
Current Rent: $2,000
Proposed Rent: $2,200
Reason for Increase: Capital expenditures on building envelope
Application Date: February 1, 2024
Landlord Signature: [Signed]
"""

SAMPLE_LTB = """LANDLORD AND TENANT BOARD
Form N4 - Notice to End your Tenancy For Non-payment of Rent
Landlord: XYZ Rentals Ltd.
Tenant: Maria Garcia
Property Address: 789 Pine Road, Ottawa, ON
Amount owing: $3,600.00
Issue Date: March 1, 2024
Applicant Signature: [Signed]
"""

# Ordered: first key found in the lower-cased filename wins
SAMPLE_DOCUMENTS: tuple[tuple[tuple[str, ...], str], ...] = (
    (("aps", "purchase"), SAMPLE_APS),
    (("lease",), SAMPLE_LEASE),
    (("a2",), SAMPLE_A2),
    (("ltb", "n4"), SAMPLE_LTB),
)


class SampleTextExtractor:
    """
    Deterministic stand-in for OCR.

    Returns a canned document when the filename names one, otherwise
    decodes the upload as text.
    """

    def __init__(self, fallback: Optional[TextExtractor] = None):
        self.fallback = fallback or PlainTextExtractor()

    async def extract(self, content: bytes, filename: str) -> str:
        name = (filename or "").lower()
        for keys, text in SAMPLE_DOCUMENTS:
            if any(key in name for key in keys):
                logger.debug(f"Using sample text for {filename}")
                return text
        return await self.fallback.extract(content, filename)


# =============================================================================
# Azure Document Intelligence
# =============================================================================

class AzureDocumentIntelligenceExtractor:
    """
    Azure Document Intelligence (prebuilt-layout) client.

    Submits the document, then polls the Operation-Location URL until the
    analysis succeeds, fails or max_polls is reached.
    """

    def __init__(
        self,
        endpoint: str,
        api_key: str,
        api_version: str = "2023-07-31",
        poll_interval: float = 2.0,
        max_polls: int = 30,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.endpoint = endpoint.rstrip("/")
        self.api_key = api_key
        self.api_version = api_version
        self.poll_interval = poll_interval
        self.max_polls = max_polls
        self._client = client

    @property
    def analyze_url(self) -> str:
        return f"{self.endpoint}/formrecognizer/documentModels/prebuilt-layout:analyze"

    async def extract(self, content: bytes, filename: str) -> str:
        if self._client is not None:
            return await self._extract(self._client, content, filename)
        async with httpx.AsyncClient(timeout=60.0) as client:
            return await self._extract(client, content, filename)

    async def _extract(self, client: httpx.AsyncClient, content: bytes, filename: str) -> str:
        headers = {
            "Ocp-Apim-Subscription-Key": self.api_key,
            "Content-Type": "application/octet-stream",
        }
        try:
            response = await client.post(
                self.analyze_url,
                params={"api-version": self.api_version},
                headers=headers,
                content=content,
            )
            if response.status_code != 202:
                raise ExtractionError(
                    f"Document Intelligence rejected {filename}: HTTP {response.status_code}"
                )

            operation_url = response.headers.get("Operation-Location")
            if not operation_url:
                raise ExtractionError("Document Intelligence response has no Operation-Location")

            result = await self._poll_operation(client, operation_url)
        except httpx.HTTPError as e:
            raise ExtractionError(f"Document Intelligence request failed: {e}") from e

        text = text_from_analyze_result(result)
        logger.info(f"Extracted {len(text)} characters from {filename} via Document Intelligence")
        return text

    async def _poll_operation(self, client: httpx.AsyncClient, operation_url: str) -> dict:
        headers = {"Ocp-Apim-Subscription-Key": self.api_key}

        for _ in range(self.max_polls):
            response = await client.get(operation_url, headers=headers)
            result = response.json()

            status = result.get("status", "")
            if status == "succeeded":
                return result.get("analyzeResult", {})
            if status == "failed":
                raise ExtractionError(f"Document analysis failed: {result.get('error', 'unknown error')}")

            await asyncio.sleep(self.poll_interval)

        raise ExtractionError(f"Document analysis timed out after {self.max_polls} polls")


def text_from_analyze_result(result: dict) -> str:
    """Prefer full content, then page lines, then page words."""
    if result.get("content"):
        return result["content"]

    pages = []
    for page in result.get("pages", []):
        lines = [line.get("content", "") for line in page.get("lines", [])]
        if lines:
            pages.append("\n".join(lines))
        else:
            pages.append(" ".join(word.get("content", "") for word in page.get("words", [])))
    return "\n".join(pages)


def build_text_extractor(settings: Settings) -> TextExtractor:
    """Azure when configured, plain text decoding otherwise."""
    if settings.document_intelligence_configured:
        logger.info("Text extraction: Azure Document Intelligence")
        return AzureDocumentIntelligenceExtractor(
            endpoint=settings.document_intelligence_endpoint,
            api_key=settings.document_intelligence_key,
            api_version=settings.document_intelligence_api_version,
            poll_interval=settings.document_intelligence_poll_interval,
            max_polls=settings.document_intelligence_max_polls,
        )
    logger.warning("Document Intelligence not configured, falling back to plain text extraction")
    return PlainTextExtractor()
