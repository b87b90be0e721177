"""
Schema nodes: the immutable type-constraint values the engine translates.

The set of node kinds is closed. Every class listed in `NODE_TYPES` has exactly
one translator in `json_schema.py`; adding a kind means extending both.

Nodes are built by an authoring layer (or by hand in tests):

```python
from swagger_schema.schema_nodes import *

Pet = NamedModel("Pet", MapSchema([
    ("id", Primitive(PrimitiveKind.INT64)),
    ("name", Primitive(str)),
    (OptionalKey("tags"), Container(Primitive(str), unique=True)),
    (WILDCARD_KEY, ANY),
]))
```
"""

from dataclasses import dataclass, field
from enum import Enum as PyEnum
from typing import Any, Hashable, Iterable, Mapping, Optional, Tuple, Union
import re


class PrimitiveKind(PyEnum):
    INT32 = 'int32'
    INT64 = 'int64'
    NUMBER = 'number'
    STRING = 'string'
    BOOLEAN = 'boolean'
    DATE_TIME = 'date-time'
    DATE = 'date'
    REGEX = 'regex'        # "a regular expression" as the value type
    PATTERN = 'pattern'    # a string matching a given pattern
    UUID = 'uuid'
    KEYWORD = 'keyword'


class CombinatorKind(PyEnum):
    INTERSECTION = 'intersection'
    UNION = 'union'


class ParameterLocation(PyEnum):
    QUERY = 'query'
    FORM_DATA = 'formData'
    BODY = 'body'
    HEADER = 'header'
    PATH = 'path'


class SchemaNode:
    """Marker base class of all schema nodes."""
    __slots__ = ()


# ----------------------------- Key specs ---------------------------------

@dataclass(frozen=True)
class OptionalKey:
    name: str

    def __post_init__(self):
        if not isinstance(self.name, str):
            raise TypeError(f"OptionalKey name must be a str, got {type(self.name)}")


@dataclass(frozen=True)
class WildcardKey:
    """Matches any key: marks an open map."""


WILDCARD_KEY = WildcardKey()

KeySpec = Union[str, OptionalKey, WildcardKey]


def key_name(key: KeySpec) -> Optional[str]:
    """Property name of a key spec, None for the wildcard."""
    if isinstance(key, OptionalKey):
        return key.name
    if isinstance(key, WildcardKey):
        return None
    return key


# ----------------------------- Nodes --------------------------------------

@dataclass(frozen=True)
class Primitive(SchemaNode):
    kind: Hashable
    pattern: Optional[str] = None

    def __post_init__(self):
        if self.kind is PrimitiveKind.PATTERN and self.pattern is None:
            raise ValueError("PATTERN primitives need a pattern source")

    @staticmethod
    def regex(source: Union[str, "re.Pattern"]) -> "Primitive":
        """A string constrained by a regular expression."""
        if isinstance(source, re.Pattern):
            source = source.pattern
        return Primitive(PrimitiveKind.PATTERN, pattern=source)


@dataclass(frozen=True)
class Container(SchemaNode):
    element: Any
    unique: bool = False


@dataclass(frozen=True)
class SequenceElement(SchemaNode):
    inner: Any
    label: Optional[str] = None


@dataclass(frozen=True)
class MapSchema(SchemaNode):
    entries: Tuple[Tuple[KeySpec, Any], ...] = ()

    def __post_init__(self):
        entries = self.entries
        if isinstance(entries, Mapping):
            entries = entries.items()
        entries = tuple((key, value) for key, value in entries)
        for key, _ in entries:
            if not isinstance(key, (str, OptionalKey, WildcardKey)):
                raise TypeError(f"Map schema keys must be str, OptionalKey or WildcardKey, got {type(key)}")
        names = [key_name(key) for key, _ in entries if not isinstance(key, WildcardKey)]
        duplicates = sorted({name for name in names if names.count(name) > 1})
        if duplicates:
            raise ValueError(f"Map schema declares the same property more than once: {duplicates}")
        object.__setattr__(self, "entries", entries)

    def keys(self):
        return [key for key, _ in self.entries]


@dataclass(frozen=True)
class NamedModel(SchemaNode):
    name: str
    body: MapSchema = field(default_factory=MapSchema)

    def __post_init__(self):
        if not self.name or not isinstance(self.name, str):
            raise ValueError("Model name must be a non-empty string")
        if not isinstance(self.body, MapSchema):
            object.__setattr__(self, "body", MapSchema(self.body))


@dataclass(frozen=True)
class Nullable(SchemaNode):
    inner: Any


@dataclass(frozen=True)
class Named(SchemaNode):
    inner: Any
    label: Optional[str] = None


@dataclass(frozen=True)
class Combinator(SchemaNode):
    kind: CombinatorKind
    variants: Tuple[Any, ...]

    def __post_init__(self):
        variants = tuple(self.variants)
        if not variants:
            raise ValueError("Combinator needs at least one variant")
        object.__setattr__(self, "variants", variants)

    @staticmethod
    def both(*variants) -> "Combinator":
        return Combinator(CombinatorKind.INTERSECTION, variants)

    @staticmethod
    def either(*variants) -> "Combinator":
        return Combinator(CombinatorKind.UNION, variants)


@dataclass(frozen=True)
class Enumeration(SchemaNode):
    values: Tuple[Any, ...]

    def __post_init__(self):
        values = tuple(self.values)
        if not values:
            raise ValueError("Enumeration needs at least one value")
        # first occurrence wins; values may be unhashable and 1 is not True
        unique = []
        for value in values:
            if not any(type(seen) is type(value) and seen == value for seen in unique):
                unique.append(value)
        values = tuple(unique)
        object.__setattr__(self, "values", values)


@dataclass(frozen=True)
class FixedValue(SchemaNode):
    literal: Any


@dataclass(frozen=True)
class RecursiveRef(SchemaNode):
    target: str


@dataclass(frozen=True)
class AnyType(SchemaNode):
    pass


ANY = AnyType()


@dataclass(frozen=True)
class Described(SchemaNode):
    inner: Any
    meta_items: Tuple[Tuple[str, Any], ...] = ()

    @property
    def meta(self) -> dict:
        return dict(self.meta_items)


NODE_TYPES = (
    Primitive,
    Container,
    SequenceElement,
    MapSchema,
    NamedModel,
    Nullable,
    Named,
    Combinator,
    Enumeration,
    FixedValue,
    RecursiveRef,
    AnyType,
    Described,
)


def iter_children(node: Any) -> Iterable[Any]:
    """Direct child nodes, in declaration order."""
    if isinstance(node, Container):
        yield node.element
    elif isinstance(node, (SequenceElement, Nullable, Named, Described)):
        yield node.inner
    elif isinstance(node, MapSchema):
        for _, value in node.entries:
            yield value
    elif isinstance(node, NamedModel):
        yield node.body
    elif isinstance(node, Combinator):
        yield from node.variants
