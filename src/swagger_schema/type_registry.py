"""
Type registry: maps primitive kinds to their Swagger 2.0 {type, format} fragments.

Every builder returns a fresh dict, so callers are free to mutate the result.
Python types are aliases of a `PrimitiveKind` (looked up by exact type, so
`bool` never resolves as `int`).
"""

from typing import Any, Callable, Dict, Hashable, Optional
from datetime import date, datetime
from decimal import Decimal
import re
import uuid

from swagger_schema.schema_nodes import Primitive, PrimitiveKind


# Function registry for primitive fragment builders
__type_mapping_registry: Dict[Hashable, Callable[[Primitive], Dict[str, Any]]] = {}

# Literal to JSON value converters, for the kinds whose values are not JSON already
__json_value_registry: Dict[Hashable, Callable[[Any], Any]] = {}

PYTHON_TYPE_KINDS: Dict[type, PrimitiveKind] = {
    bool: PrimitiveKind.BOOLEAN,
    int: PrimitiveKind.INT64,
    float: PrimitiveKind.NUMBER,
    Decimal: PrimitiveKind.NUMBER,
    str: PrimitiveKind.STRING,
    datetime: PrimitiveKind.DATE_TIME,
    date: PrimitiveKind.DATE,
    uuid.UUID: PrimitiveKind.UUID,
    re.Pattern: PrimitiveKind.REGEX,
}


def _register_type_mapping(kind: Hashable):
    """Decorator to register a fragment builder for a primitive kind."""
    def decorator(func: Callable):
        __type_mapping_registry[kind] = func
        return func
    return decorator


def _register_json_value(kind: Hashable):
    """Decorator to register the JSON value converter for a primitive kind."""
    def decorator(func: Callable):
        __json_value_registry[kind] = func
        return func
    return decorator


def canonical_kind(kind: Hashable) -> Hashable:
    """Resolve a Python type alias to its PrimitiveKind; other kinds are returned as is."""
    if isinstance(kind, type) and kind in PYTHON_TYPE_KINDS:
        return PYTHON_TYPE_KINDS[kind]
    return kind


def kind_of_value(value: Any) -> Hashable:
    """Kind of a literal's runtime type. Unregistered runtime types come back as the type itself."""
    return canonical_kind(type(value))


def get_type_mapping(kind: Hashable) -> Optional[Callable[[Primitive], Dict[str, Any]]]:
    """Get the global fragment builder for a kind (or Python type alias)."""
    return __type_mapping_registry.get(canonical_kind(kind))


def json_value(value: Any) -> Any:
    """JSON form of a literal, looked up by its kind. Values of other kinds are returned as is."""
    converter = __json_value_registry.get(kind_of_value(value))
    return converter(value) if converter is not None else value


# ----------------------------- Default Type Mappings -----------------------------

@_register_type_mapping(PrimitiveKind.INT32)
def _int32_mapping(primitive: Primitive) -> Dict[str, Any]:
    return {"type": "integer", "format": "int32"}


@_register_type_mapping(PrimitiveKind.INT64)
def _int64_mapping(primitive: Primitive) -> Dict[str, Any]:
    """64-bit and arbitrary precision integers."""
    return {"type": "integer", "format": "int64"}


@_register_type_mapping(PrimitiveKind.NUMBER)
def _number_mapping(primitive: Primitive) -> Dict[str, Any]:
    return {"type": "number", "format": "double"}


@_register_type_mapping(PrimitiveKind.STRING)
def _string_mapping(primitive: Primitive) -> Dict[str, Any]:
    return {"type": "string"}


@_register_type_mapping(PrimitiveKind.KEYWORD)
def _keyword_mapping(primitive: Primitive) -> Dict[str, Any]:
    """Symbolic names travel as plain strings."""
    return {"type": "string"}


@_register_type_mapping(PrimitiveKind.BOOLEAN)
def _boolean_mapping(primitive: Primitive) -> Dict[str, Any]:
    return {"type": "boolean"}


@_register_type_mapping(PrimitiveKind.DATE_TIME)
def _date_time_mapping(primitive: Primitive) -> Dict[str, Any]:
    return {"type": "string", "format": "date-time"}


@_register_type_mapping(PrimitiveKind.DATE)
def _date_mapping(primitive: Primitive) -> Dict[str, Any]:
    return {"type": "string", "format": "date"}


@_register_type_mapping(PrimitiveKind.REGEX)
def _regex_mapping(primitive: Primitive) -> Dict[str, Any]:
    return {"type": "string", "format": "regex"}


@_register_type_mapping(PrimitiveKind.PATTERN)
def _pattern_mapping(primitive: Primitive) -> Dict[str, Any]:
    """A string that must match the primitive's own pattern."""
    return {"type": "string", "pattern": primitive.pattern}


@_register_type_mapping(PrimitiveKind.UUID)
def _uuid_mapping(primitive: Primitive) -> Dict[str, Any]:
    return {"type": "string", "format": "uuid"}


# ----------------------------- JSON Values -----------------------------

@_register_json_value(PrimitiveKind.DATE_TIME)
@_register_json_value(PrimitiveKind.DATE)
def _iso_json_value(value) -> str:
    return value.isoformat()


@_register_json_value(PrimitiveKind.UUID)
def _uuid_json_value(value: uuid.UUID) -> str:
    return str(value)


@_register_json_value(PrimitiveKind.NUMBER)
def _number_json_value(value) -> float:
    """Decimals become doubles, matching the number mapping."""
    return float(value)


@_register_json_value(PrimitiveKind.REGEX)
def _regex_json_value(value: "re.Pattern") -> str:
    return value.pattern
