import io
import time

import pdfplumber

from docstruct.extraction.base import BaseExtractor
from docstruct.extraction.exceptions import ExtractionError
from docstruct.extraction.lines import split_elements
from docstruct.extraction.models import ExtractedDocument


class PdfPlumberExtractor(BaseExtractor):
    """Extracts line elements from PDF using pdfplumber."""

    mime_type = "application/pdf"

    def extract(self, data: bytes, *, source_id: str = "") -> ExtractedDocument:
        started = time.perf_counter()
        try:
            with pdfplumber.open(io.BytesIO(data)) as pdf:
                pages = [page.extract_text() or "" for page in pdf.pages]
        except ExtractionError:
            raise
        except Exception as exc:
            raise ExtractionError(f"pdfplumber extraction failed: {exc}") from exc
        return ExtractedDocument(
            source_id=source_id,
            mime_type=self.mime_type,
            elements=split_elements(pages),
            total_pages=len(pages),
            extraction_time=time.perf_counter() - started,
            metadata={"engine": "pdfplumber"},
        )
