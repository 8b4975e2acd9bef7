"""Whitelist-driven partial updates.

Partial updates arrive as pydantic models or dicts keyed by API field names.
``build_updates`` turns the fields that were actually provided into an ordered
mapping of model columns to values, ignoring anything not in the whitelist.
The result is passed to ``Query.update`` so values are always bound
parameters.
"""

from __future__ import annotations

from collections.abc import Mapping
from enum import Enum
from typing import Any

from pydantic import BaseModel
from sqlalchemy.orm.attributes import InstrumentedAttribute


def provided_fields(data: BaseModel | Mapping[str, Any]) -> dict[str, Any]:
    """Return only the top-level fields the caller explicitly set.

    Nested models are returned whole, defaults included.
    """
    if isinstance(data, BaseModel):
        return {name: getattr(data, name) for name in data.model_fields_set}
    return dict(data)


def build_updates(
    data: BaseModel | Mapping[str, Any],
    field_map: Mapping[str, InstrumentedAttribute[Any]],
) -> dict[InstrumentedAttribute[Any], Any]:
    """Build an ordered column -> value mapping from provided fields.

    Order follows ``field_map``, not the input. Enum values are stored as
    their ``.value``; nested pydantic models are dumped to plain JSON data.
    """
    values = provided_fields(data)
    updates: dict[InstrumentedAttribute[Any], Any] = {}
    for key, column in field_map.items():
        if key not in values:
            continue
        updates[column] = _to_storage(values[key])
    return updates


def _to_storage(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json")
    if isinstance(value, list):
        return [_to_storage(v) for v in value]
    if isinstance(value, dict):
        return {k: _to_storage(v) for k, v in value.items()}
    return value
