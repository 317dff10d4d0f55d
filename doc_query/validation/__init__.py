"""Pre-execution validation."""

from doc_query.validation.validator import (
    ValidationPipeline,
    ValidationRule,
    validate_connection_overrides,
    validate_query,
)

__all__ = [
    "ValidationPipeline",
    "ValidationRule",
    "validate_connection_overrides",
    "validate_query",
]
