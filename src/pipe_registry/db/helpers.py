import uuid
from typing import Any, TypeVar

from pydantic import BaseModel, ValidationError

from pipe_registry.core.errors import RecordValidationError

ModelT = TypeVar("ModelT", bound=BaseModel)

ID_FIELD = "_id"


def new_id() -> str:
    return uuid.uuid4().hex


def to_document(record: BaseModel, record_id: str) -> dict[str, Any]:
    """Serialize a record the way it is stored: wire names and JSON types.

    Null top-level fields are omitted; nested client documents such as ABI
    entries keep exactly the keys they were given.
    """
    document = record.model_dump(by_alias=True, mode="json")
    document[ID_FIELD] = record_id
    return document


def from_document(model: type[ModelT], document: dict[str, Any]) -> ModelT:
    return model.model_validate(document)


def merge_document(model: type[ModelT], document: dict[str, Any], changes: dict[str, Any]) -> dict[str, Any]:
    """Apply a partial update to a stored document and re-validate it.

    Top-level keys in ``changes`` replace the stored values; ``null`` removes
    a field. The id never changes.
    """
    merged = {**document, **{k: v for k, v in changes.items() if k != ID_FIELD}}
    try:
        validated = model.model_validate(merged)
    except ValidationError as exc:
        fields = sorted({".".join(str(p) for p in err["loc"]) for err in exc.errors()})
        raise RecordValidationError(
            f"Invalid {model.__name__} update: {', '.join(fields)}", errors=exc.errors()
        ) from exc
    return to_document(validated, document[ID_FIELD])
