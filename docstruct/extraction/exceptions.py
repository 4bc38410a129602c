class ExtractionError(Exception):
    """Raised when a source document cannot be turned into elements."""


class UnsupportedMimeTypeError(ExtractionError, ValueError):
    """Raised when no extractor handles the requested mime type."""
