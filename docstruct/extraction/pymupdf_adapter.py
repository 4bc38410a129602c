import time

import pymupdf

from docstruct.extraction.base import BaseExtractor
from docstruct.extraction.exceptions import ExtractionError
from docstruct.extraction.lines import split_elements
from docstruct.extraction.models import ExtractedDocument


class PyMuPdfExtractor(BaseExtractor):
    """Extracts line elements from PDF using PyMuPDF."""

    mime_type = "application/pdf"

    def extract(self, data: bytes, *, source_id: str = "") -> ExtractedDocument:
        started = time.perf_counter()
        try:
            with pymupdf.open(stream=data, filetype="pdf") as doc:  # type: ignore[no-untyped-call]
                pages = [page.get_text() for page in doc]
        except ExtractionError:
            raise
        except Exception as exc:
            raise ExtractionError(f"pymupdf extraction failed: {exc}") from exc
        return ExtractedDocument(
            source_id=source_id,
            mime_type=self.mime_type,
            elements=split_elements(pages),
            total_pages=len(pages),
            extraction_time=time.perf_counter() - started,
            metadata={"engine": "pymupdf"},
        )
