class AnchorError(Exception):
    """Base exception for anchor generation and parsing."""


class InvalidAnchorIdError(AnchorError):
    """Raised when a section id cannot be embedded in an anchor marker."""


class AnchorCollisionError(AnchorError):
    """Raised when a unique anchor cannot be produced within the attempt limit."""
