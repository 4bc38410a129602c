from docstruct.config.settings import Settings
from docstruct.extraction.base import BaseExtractor
from docstruct.extraction.exceptions import UnsupportedMimeTypeError
from docstruct.extraction.pdfplumber_adapter import PdfPlumberExtractor
from docstruct.extraction.pymupdf_adapter import PyMuPdfExtractor
from docstruct.extraction.text_extractor import PlainTextExtractor


class ExtractorFactory:
    """Creates the correct extractor based on settings and mime type."""

    ADAPTERS: dict[str, type[BaseExtractor]] = {
        "pdfplumber": PdfPlumberExtractor,
        "pymupdf": PyMuPdfExtractor,
    }

    TEXT_MIME_TYPES: frozenset[str] = frozenset({"text/plain", "text/markdown"})

    @classmethod
    def create(cls, settings: Settings) -> BaseExtractor:
        engine = settings.extraction_pdf_engine.lower()
        adapter_cls = cls.ADAPTERS.get(engine)
        if adapter_cls is None:
            raise ValueError(
                f"Unknown PDF engine '{engine}'. Choose from: {list(cls.ADAPTERS)}"
            )
        return adapter_cls()

    @classmethod
    def for_mime_type(cls, mime_type: str, settings: Settings) -> BaseExtractor:
        normalized = mime_type.split(";", 1)[0].strip().lower()
        if normalized in cls.TEXT_MIME_TYPES:
            return PlainTextExtractor()
        if normalized == "application/pdf":
            return cls.create(settings)
        raise UnsupportedMimeTypeError(f"Unsupported mime type '{mime_type}'")
