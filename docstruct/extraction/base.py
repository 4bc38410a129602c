from abc import ABC, abstractmethod

from docstruct.extraction.models import ExtractedDocument


class BaseExtractor(ABC):
    """Contract for all element extraction adapters."""

    mime_type: str = "application/octet-stream"

    @abstractmethod
    def extract(self, data: bytes, *, source_id: str = "") -> ExtractedDocument:
        """Turn raw document bytes into an ordered element list.

        Args:
            data: Raw file content.
            source_id: Caller-side identifier stored on the result.

        Returns:
            ExtractedDocument with elements in reading order.

        Raises:
            ExtractionError: if the bytes cannot be read.
        """
