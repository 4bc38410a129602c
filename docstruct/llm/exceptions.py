class ModelClientError(Exception):
    """Raised when a text-generation model call fails."""


class ModelNetworkError(ModelClientError):
    """Raised when the model provider call fails due to network/infrastructure issues."""
