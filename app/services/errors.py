"""Exceptions raised by the DocScan services."""


class DocScanError(Exception):
    """Base class for analysis failures."""


class ExtractionError(DocScanError):
    """Text could not be extracted from an upload (OCR service failure, timeout)."""


class UnknownProfileError(DocScanError, KeyError):
    """A document type name that is not in the profile registry."""

    def __init__(self, name: str):
        super().__init__(name)
        self.name = name

    def __str__(self) -> str:
        return f"Unknown document type: {self.name}"
