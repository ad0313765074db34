from typing import Any


class PipeRegistryError(Exception):
    """Base class for errors raised by the registry core."""


class NotFoundError(PipeRegistryError):
    def __init__(self, entity: str, record_id: str) -> None:
        super().__init__(f"{entity} {record_id} not found")
        self.entity = entity
        self.record_id = record_id


class RecordValidationError(PipeRegistryError):
    """Raised when a record is missing a required field or carries a malformed value."""

    def __init__(self, message: str, errors: list[dict[str, Any]] | None = None) -> None:
        super().__init__(message)
        self.errors = errors or []


class InvalidFilterError(PipeRegistryError, ValueError):
    """Raised when a ``filter``/``where`` object cannot be parsed or uses an unknown operator."""


class IngestionError(PipeRegistryError):
    def __init__(self, message: str, container_id: str | None = None) -> None:
        super().__init__(message)
        self.container_id = container_id
