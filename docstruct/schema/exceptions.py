class SchemaError(Exception):
    """Base exception for schema definitions and lookups."""


class SchemaDefinitionError(SchemaError):
    """Raised when a schema definition uses an unsupported shape or type."""


class SchemaNotFoundError(SchemaError):
    """Raised when no schema is registered for a schema type."""
