class StructureError(Exception):
    """Base exception for structure detection and analysis."""


class PatternConfigError(StructureError):
    """Raised when the section pattern configuration is unsafe or unreadable."""


class DocumentNotAnalyzableError(StructureError):
    """Raised by callers that require a document to pass the analysis gate."""
