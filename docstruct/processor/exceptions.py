class ProcessorError(Exception):
    """Base exception for all processor-related errors."""


class ResponseRejectedError(ProcessorError):
    """Raised when a model response fails reconciliation."""
