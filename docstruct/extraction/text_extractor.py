import time

from docstruct.extraction.base import BaseExtractor
from docstruct.extraction.exceptions import ExtractionError
from docstruct.extraction.lines import split_elements
from docstruct.extraction.models import ExtractedDocument


class PlainTextExtractor(BaseExtractor):
    """Reads UTF-8 text (plain or light markdown) line by line."""

    mime_type = "text/plain"

    def extract(self, data: bytes, *, source_id: str = "") -> ExtractedDocument:
        try:
            text = data.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise ExtractionError(f"Text is not valid UTF-8: {exc}") from exc
        return self.extract_text(text, source_id=source_id)

    def extract_text(self, text: str, *, source_id: str = "") -> ExtractedDocument:
        started = time.perf_counter()
        elements = split_elements([text.lstrip("\ufeff")])
        return ExtractedDocument(
            source_id=source_id,
            mime_type=self.mime_type,
            elements=elements,
            total_pages=1,
            extraction_time=time.perf_counter() - started,
        )
