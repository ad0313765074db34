"""LoopBack-style query filters evaluated against stored documents.

A ``where`` object maps field names (dotted paths reach into nested objects)
to either a literal, meaning equality, or an operator object such as
``{"like": "abc%"}``. ``and``/``or`` take a list of nested ``where`` objects.
``like`` patterns use SQL wildcards: ``%`` matches any run of characters and
``_`` a single character; a backslash escapes either.
"""

from __future__ import annotations

import json
import re
from collections.abc import Iterable
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from pipe_registry.core.errors import InvalidFilterError

Where = dict[str, Any]

COMPARISON_OPERATORS = frozenset({"eq", "neq", "gt", "gte", "lt", "lte", "between"})
PATTERN_OPERATORS = frozenset({"like", "nlike", "ilike", "nilike"})
SET_OPERATORS = frozenset({"inq", "nin"})
OPERATORS = COMPARISON_OPERATORS | PATTERN_OPERATORS | SET_OPERATORS | {"exists"}

_MISSING = object()


class Filter(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    where: Where | None = None
    limit: int | None = Field(default=None, ge=0)
    skip: int = Field(default=0, ge=0, validation_alias="offset")
    order: list[str] = Field(default_factory=list)

    @field_validator("order", mode="before")
    @classmethod
    def _split_order(cls, value: Any) -> Any:
        if value is None:
            return []
        if isinstance(value, str):
            return [part.strip() for part in value.split(",") if part.strip()]
        return value


def parse_filter(raw: str | dict[str, Any] | None) -> Filter:
    if raw is None or raw == "":
        return Filter()
    data = _load_json(raw, "filter")
    if not isinstance(data, dict):
        raise InvalidFilterError("filter must be a JSON object")
    try:
        parsed = Filter.model_validate(data)
    except ValidationError as exc:
        raise InvalidFilterError(f"Invalid filter: {exc.errors()[0]['msg']}") from exc
    validate_where(parsed.where)
    for entry in parsed.order:
        parse_order(entry)
    return parsed


def parse_where(raw: str | dict[str, Any] | None) -> Where | None:
    if raw is None or raw == "":
        return None
    data = _load_json(raw, "where")
    if not isinstance(data, dict):
        raise InvalidFilterError("where must be a JSON object")
    validate_where(data)
    return data


def _load_json(raw: str | dict[str, Any], label: str) -> Any:
    if isinstance(raw, dict):
        return raw
    try:
        return json.loads(raw)
    except json.JSONDecodeError as exc:
        raise InvalidFilterError(f"{label} is not valid JSON: {exc.msg}") from exc


def validate_where(where: Where | None) -> None:
    if not where:
        return
    for key, condition in where.items():
        if key in ("and", "or"):
            if not isinstance(condition, list):
                raise InvalidFilterError(f"'{key}' expects a list of conditions")
            for sub in condition:
                if not isinstance(sub, dict):
                    raise InvalidFilterError(f"'{key}' conditions must be objects")
                validate_where(sub)
        elif is_operator_object(condition):
            unknown = set(condition) - OPERATORS
            if unknown:
                raise InvalidFilterError(f"Unknown operator(s) for '{key}': {', '.join(sorted(unknown))}")
            if "between" in condition and not _is_pair(condition["between"]):
                raise InvalidFilterError(f"'between' for '{key}' expects two values")
            for op in SET_OPERATORS & condition.keys():
                if not isinstance(condition[op], list):
                    raise InvalidFilterError(f"'{op}' for '{key}' expects a list")


def is_operator_object(condition: Any) -> bool:
    # a nested literal object such as {"methods": {...}} is compared by equality
    return isinstance(condition, dict) and any(k in OPERATORS for k in condition)


def _is_pair(value: Any) -> bool:
    return isinstance(value, list) and len(value) == 2


def escape_like(value: str) -> str:
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def like_to_regex(pattern: str, ignore_case: bool = False) -> re.Pattern[str]:
    parts: list[str] = []
    chars = iter(pattern)
    for ch in chars:
        if ch == "\\":
            nxt = next(chars, "\\")
            parts.append(re.escape(nxt))
        elif ch == "%":
            parts.append(".*")
        elif ch == "_":
            parts.append(".")
        else:
            parts.append(re.escape(ch))
    flags = re.DOTALL | (re.IGNORECASE if ignore_case else 0)
    return re.compile("".join(parts), flags)


def lookup(document: dict[str, Any], path: str) -> Any:
    current: Any = document
    for part in path.split("."):
        if not isinstance(current, dict) or part not in current:
            return _MISSING
        current = current[part]
    return current


def matches(document: dict[str, Any], where: Where | None) -> bool:
    if not where:
        return True
    for key, condition in where.items():
        if key == "and":
            if not all(matches(document, sub) for sub in condition):
                return False
        elif key == "or":
            if not any(matches(document, sub) for sub in condition):
                return False
        elif not _match_field(lookup(document, key), condition):
            return False
    return True


def _equals(value: Any, expected: Any) -> bool:
    if value is _MISSING:
        return expected is None
    if isinstance(value, list) and not isinstance(expected, list):
        return expected in value
    return bool(value == expected)


def _compare(value: Any, op: str, operand: Any) -> bool:
    if value is _MISSING or value is None or operand is None:
        return False
    try:
        if op == "gt":
            return bool(value > operand)
        if op == "gte":
            return bool(value >= operand)
        if op == "lt":
            return bool(value < operand)
        return bool(value <= operand)
    except TypeError:
        return False


def _match_field(value: Any, condition: Any) -> bool:
    if not is_operator_object(condition):
        return _equals(value, condition)

    for op, operand in condition.items():
        if op == "eq":
            ok = _equals(value, operand)
        elif op == "neq":
            ok = not _equals(value, operand)
        elif op in ("gt", "gte", "lt", "lte"):
            ok = _compare(value, op, operand)
        elif op == "between":
            ok = _compare(value, "gte", operand[0]) and _compare(value, "lte", operand[1])
        elif op == "inq":
            ok = any(_equals(value, item) for item in operand)
        elif op == "nin":
            ok = not any(_equals(value, item) for item in operand)
        elif op == "exists":
            ok = (value is not _MISSING and value is not None) == bool(operand)
        else:
            ok = _match_pattern(value, op, str(operand))
        if not ok:
            return False
    return True


def _match_pattern(value: Any, op: str, pattern: str) -> bool:
    if not isinstance(value, str):
        return op.startswith("n")
    regex = like_to_regex(pattern, ignore_case=op in ("ilike", "nilike"))
    found = regex.fullmatch(value) is not None
    return not found if op.startswith("n") else found


def parse_order(entry: str) -> tuple[str, bool]:
    """Split ``"field DESC"`` into ``("field", True)``."""
    parts = entry.split()
    if not parts or len(parts) > 2:
        raise InvalidFilterError(f"Invalid order clause: {entry!r}")
    direction = parts[1].upper() if len(parts) == 2 else "ASC"
    if direction not in ("ASC", "DESC"):
        raise InvalidFilterError(f"Invalid order direction in {entry!r}")
    return parts[0], direction == "DESC"


def _has_value(value: Any) -> bool:
    return value is not _MISSING and value is not None


def _sort_key(value: Any) -> tuple[int, Any]:
    """Total order over JSON values, ranking types the way PostgreSQL orders ``jsonb``.

    Strings sort before numbers, then booleans, arrays and objects. Arrays and
    objects compare by their canonical JSON text.
    """
    if isinstance(value, str):
        return (0, value)
    if isinstance(value, bool):
        return (2, value)
    if isinstance(value, (int, float)):
        return (1, value)
    if isinstance(value, list):
        return (3, json.dumps(value, sort_keys=True))
    return (4, json.dumps(value, sort_keys=True))


def apply_filter(documents: Iterable[dict[str, Any]], flt: Filter | None) -> list[dict[str, Any]]:
    """Filter, sort and page documents in memory."""
    flt = flt or Filter()
    selected = [doc for doc in documents if matches(doc, flt.where)]

    for entry in reversed(flt.order):
        field, descending = parse_order(entry)

        present = [doc for doc in selected if _has_value(lookup(doc, field))]
        absent = [doc for doc in selected if not _has_value(lookup(doc, field))]
        present.sort(key=lambda doc, field=field: _sort_key(lookup(doc, field)), reverse=descending)
        # documents without the field sort last either way
        selected = present + absent

    selected = selected[flt.skip :]
    if flt.limit is not None:
        selected = selected[: flt.limit]
    return selected


def scope_where(where: Where | None, **fields: Any) -> Where:
    """Combine ``where`` with equality constraints on ``fields``."""
    scoped: Where = dict(fields)
    if where:
        return {"and": [scoped, where]}
    return scoped
