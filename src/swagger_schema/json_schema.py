"""
JsonSchemaEngine: translates schema nodes into Swagger 2.0 Schema Object fragments.

Design highlights:
- Dispatch is a closed table: one translator per node class in
  `schema_nodes.NODE_TYPES`, registered with `_register_node_translator`.
  Values that are not schema nodes are a structural misuse.
- Wrappers are unwrapped down to a representable core:
  - `Nullable` adds `allowEmptyValue: true` only for `query` and `formData`
    parameters, and never to a model reference;
  - `Named` and `SequenceElement` are transparent, their labels are dropped;
  - `Combinator` (intersection and union alike) documents its first variant only,
    Swagger 2.0 has no union type;
  - `FixedValue` is documented as the runtime type of its literal;
  - `Enumeration` infers its type from its first value and adds `enum`;
  - `AnyType` is omitted (None).
- Named models and recursive references always become
  `{"$ref": "#/definitions/<name>"}`, never inlined.
- Described nodes merge their metadata over the translated fragment.
- The unknown-type policy travels in the `TranslationContext` passed to every
  call. Nothing is stored in module state, so an engine can be shared between
  threads once its registries are set up.

### Usage:
```python
engine = JsonSchemaEngine()

engine.translate(Container(Primitive(int), unique=True))
# {"type": "array", "items": {"type": "integer", "format": "int64"}, "uniqueItems": True}

engine.translate(Nullable(Primitive(int)), {"in": "query"})
# {"type": "integer", "format": "int64", "allowEmptyValue": True}

engine.properties(Pet, TranslationContext(ignore_missing_mappings=True))
```

Notes:
- Translator signature: `(engine, node, context) -> Optional[Dict[str, Any]]`
- Instance type mappings override the global type registry for that engine only.
"""

from dataclasses import dataclass, replace
from typing import Any, Callable, Dict, Hashable, Mapping, Optional, Union
import copy

from swagger_schema.errors import StructuralMisuseError, UnmappableTypeError
from swagger_schema.schema_nodes import (
    AnyType,
    Combinator,
    Container,
    Described,
    Enumeration,
    FixedValue,
    MapSchema,
    Named,
    NamedModel,
    Nullable,
    ParameterLocation,
    Primitive,
    RecursiveRef,
    SequenceElement,
    WildcardKey,
    key_name,
)
from swagger_schema.swagger_env import SwaggerSchemaEnv
from swagger_schema.swagger_logging import create_logger
from swagger_schema.type_registry import canonical_kind, get_type_mapping, json_value, kind_of_value


logger = create_logger(__name__)

DEFINITIONS_PREFIX = "#/definitions/"

# Parameter locations where an empty value is a legal way of sending "nothing"
_EMPTY_VALUE_LOCATIONS = (ParameterLocation.QUERY, ParameterLocation.FORM_DATA)

# Function registry for node translators
__node_translator_registry: Dict[type, Callable] = {}


def _register_node_translator(node_type: type):
    """Decorator to register the translator function for a node class."""
    def decorator(func: Callable):
        __node_translator_registry[node_type] = func
        return func
    return decorator


def _get_node_translator(node_type: type) -> Optional[Callable]:
    return __node_translator_registry.get(node_type)


def translated_node_types():
    return list(__node_translator_registry.keys())


def model_ref(name: str) -> Dict[str, Any]:
    return {"$ref": DEFINITIONS_PREFIX + name}


@dataclass(frozen=True)
class TranslationContext:
    """Per-call options: the parameter location and the unknown-type policy."""
    location: Optional[ParameterLocation] = None
    ignore_missing_mappings: bool = False

    @staticmethod
    def from_options(options: Mapping[str, Any], ignore_missing_mappings: bool = False) -> "TranslationContext":
        """Build a context from a plain option map such as {"in": "query"}.

        Raises:
            ValueError: If "in" names an unknown parameter location
        """
        location = options.get("in")
        if location is not None and not isinstance(location, ParameterLocation):
            location = ParameterLocation(location)
        return TranslationContext(
            location=location,
            ignore_missing_mappings=bool(options.get("ignore_missing_mappings", ignore_missing_mappings)),
        )

    def with_location(self, location: Optional[ParameterLocation]) -> "TranslationContext":
        return replace(self, location=location)

    def ignoring_missing_mappings(self, ignore: bool = True) -> "TranslationContext":
        return replace(self, ignore_missing_mappings=ignore)


ContextLike = Union[None, TranslationContext, Mapping[str, Any]]


class JsonSchemaEngine:
    """Engine that translates schema nodes into Swagger 2.0 JSON schema fragments."""

    def __init__(self, ignore_missing_mappings: Optional[bool] = None) -> None:
        """
        Args:
            ignore_missing_mappings: Default unknown-type policy for calls made without
                an explicit context. None reads SWAGGER_IGNORE_MISSING_MAPPINGS.
        """
        if ignore_missing_mappings is None:
            ignore_missing_mappings = SwaggerSchemaEnv.ignore_missing_mappings()
        self.__default_context = TranslationContext(ignore_missing_mappings=ignore_missing_mappings)
        self.__instance_type_mapping_registry: Dict[Hashable, Callable] = {}

    # ----------------------------- Public API ---------------------------------

    @property
    def default_context(self) -> TranslationContext:
        return self.__default_context

    def register_type_mapping(self, kind: Hashable, mapping: Union[Callable, Mapping[str, Any]]) -> None:
        """Register a type mapping for a primitive kind (instance-specific).

        The mapping is either a builder `func(primitive) -> Dict[str, Any]` or a
        fixed fragment, which is copied on every use. Instance mappings override
        global ones for this engine only. Register mappings at startup, before the
        engine is shared.

        Example:
            engine.register_type_mapping(bytes, {"type": "string", "format": "byte"})
        """
        if isinstance(mapping, Mapping):
            fragment = dict(mapping)

            def mapping(primitive: Primitive, _fragment=fragment) -> Dict[str, Any]:
                return copy.deepcopy(_fragment)
        elif not callable(mapping):
            raise ValueError(f"Type mapping for '{kind}' must be a callable or a mapping, got {type(mapping)}")

        self.__instance_type_mapping_registry[canonical_kind(kind)] = mapping
        logger.debug(f"Registered instance type mapping for kind='{kind}'")

    def translate(self, node: Any, context: ContextLike = None) -> Optional[Dict[str, Any]]:
        """Translate a schema node into a JSON schema fragment.

        Args:
            node: The schema node (None translates to None)
            context: TranslationContext, an option map like {"in": "query"}, or None
                for the engine's default context

        Returns:
            A fresh fragment dictionary, or None when the node documents nothing
            (AnyType, or an unmapped type under the ignore policy)

        Raises:
            UnmappableTypeError: A leaf type has no mapping and the policy is strict
            StructuralMisuseError: The value is not a schema node
        """
        return self._translate(node, self._resolve_context(context))

    def properties(self, schema: Union[MapSchema, NamedModel], context: ContextLike = None) -> Dict[str, Dict[str, Any]]:
        """Enumerate the documented properties of a map schema or model.

        The result keeps the declaration order. Wildcard keys and entries that
        translate to nothing (AnyType, ignored unmapped types) are left out.

        Raises:
            StructuralMisuseError: The schema is not map shaped, whatever the policy
            UnmappableTypeError: An entry has no mapping and the policy is strict
        """
        context = self._resolve_context(context)
        body = self._map_body(schema, "properties")
        entry_context = context.with_location(None)

        result: Dict[str, Dict[str, Any]] = {}
        for key, value in body.entries:
            name = key_name(key)
            if name is None:
                continue
            fragment = self._translate(value, entry_context)
            if fragment is None:
                if not isinstance(value, AnyType):
                    logger.info(f"Dropping property '{name}': nothing to document for {value!r}")
                continue
            result[name] = fragment
        return result

    def schema_object(self, schema: Union[MapSchema, NamedModel], context: ContextLike = None) -> Dict[str, Any]:
        """Build the object schema of a map schema or model body.

        Returns:
            {"type": "object", "properties": ..., "additionalProperties": ..., "required": [...]}
            with "required" left out when no plain key is documented
        """
        context = self._resolve_context(context)
        body = self._map_body(schema, "schema_object")
        props = self.properties(body, context)
        required = [key for key in body.keys() if isinstance(key, str) and key in props]

        fragment: Dict[str, Any] = {
            "type": "object",
            "properties": props,
            "additionalProperties": self._additional_properties(body, context),
        }
        if required:
            fragment["required"] = required
        return fragment

    # --------------------------- Translation ----------------------------------

    def _resolve_context(self, context: ContextLike) -> TranslationContext:
        if context is None:
            return self.__default_context
        if isinstance(context, TranslationContext):
            return context
        if isinstance(context, Mapping):
            return TranslationContext.from_options(context, self.__default_context.ignore_missing_mappings)
        raise ValueError(f"Context must be a TranslationContext or a mapping, got {type(context)}")

    def _translate(self, node: Any, context: TranslationContext) -> Optional[Dict[str, Any]]:
        if node is None:
            return None
        translator = _get_node_translator(type(node))
        if translator is None:
            raise StructuralMisuseError(f"Cannot translate {type(node).__name__} value {node!r}: not a schema node")
        return translator(self, node, context)

    def _translate_primitive(self, primitive: Primitive, context: TranslationContext) -> Optional[Dict[str, Any]]:
        kind = canonical_kind(primitive.kind)
        # Instance mappings override global ones
        builder = self.__instance_type_mapping_registry.get(kind) or get_type_mapping(kind)
        if builder is None:
            if context.ignore_missing_mappings:
                logger.debug(f"Ignoring unmapped type '{primitive.kind}'")
                return None
            raise UnmappableTypeError(primitive.kind)
        return builder(primitive)

    def _map_body(self, schema: Any, operation: str) -> MapSchema:
        if isinstance(schema, NamedModel):
            return schema.body
        if isinstance(schema, MapSchema):
            return schema
        raise StructuralMisuseError(f"{operation}() needs a map schema or a model, got {type(schema).__name__}")

    def _additional_properties(self, body: MapSchema, context: TranslationContext) -> Union[bool, Dict[str, Any]]:
        for key, value in body.entries:
            if not isinstance(key, WildcardKey):
                continue
            if isinstance(value, AnyType):
                return True
            fragment = self._translate(value, context.with_location(None))
            # an ignored unmapped type still leaves the map open
            return fragment if fragment is not None else True
        return False


# ----------------------------- Node Translators -----------------------------

@_register_node_translator(Primitive)
def _primitive_translator(engine: JsonSchemaEngine, node: Primitive, context: TranslationContext) -> Optional[Dict[str, Any]]:
    return engine._translate_primitive(node, context)


@_register_node_translator(Nullable)
def _nullable_translator(engine: JsonSchemaEngine, node: Nullable, context: TranslationContext) -> Optional[Dict[str, Any]]:
    fragment = engine._translate(node.inner, context)
    if fragment is None or "$ref" in fragment:
        return fragment
    if context.location in _EMPTY_VALUE_LOCATIONS:
        fragment["allowEmptyValue"] = True
    return fragment


@_register_node_translator(Named)
def _named_translator(engine: JsonSchemaEngine, node: Named, context: TranslationContext) -> Optional[Dict[str, Any]]:
    return engine._translate(node.inner, context)


@_register_node_translator(SequenceElement)
def _sequence_element_translator(engine: JsonSchemaEngine, node: SequenceElement, context: TranslationContext) -> Optional[Dict[str, Any]]:
    return engine._translate(node.inner, context)


@_register_node_translator(Combinator)
def _combinator_translator(engine: JsonSchemaEngine, node: Combinator, context: TranslationContext) -> Optional[Dict[str, Any]]:
    """First variant wins, for intersections and unions alike."""
    return engine._translate(node.variants[0], context)


@_register_node_translator(NamedModel)
def _named_model_translator(engine: JsonSchemaEngine, node: NamedModel, context: TranslationContext) -> Dict[str, Any]:
    return model_ref(node.name)


@_register_node_translator(RecursiveRef)
def _recursive_ref_translator(engine: JsonSchemaEngine, node: RecursiveRef, context: TranslationContext) -> Dict[str, Any]:
    return model_ref(node.target)


@_register_node_translator(FixedValue)
def _fixed_value_translator(engine: JsonSchemaEngine, node: FixedValue, context: TranslationContext) -> Optional[Dict[str, Any]]:
    return engine._translate_primitive(Primitive(kind_of_value(node.literal)), context)


@_register_node_translator(AnyType)
def _any_translator(engine: JsonSchemaEngine, node: AnyType, context: TranslationContext) -> None:
    return None


@_register_node_translator(Enumeration)
def _enumeration_translator(engine: JsonSchemaEngine, node: Enumeration, context: TranslationContext) -> Optional[Dict[str, Any]]:
    # values are assumed homogeneous
    fragment = engine._translate_primitive(Primitive(kind_of_value(node.values[0])), context)
    if fragment is None:
        return None
    fragment["enum"] = [json_value(value) for value in node.values]
    return fragment


@_register_node_translator(Container)
def _container_translator(engine: JsonSchemaEngine, node: Container, context: TranslationContext) -> Dict[str, Any]:
    fragment = {"type": "array", "items": engine._translate(node.element, context)}
    if node.unique:
        fragment["uniqueItems"] = True
    return fragment


@_register_node_translator(Described)
def _described_translator(engine: JsonSchemaEngine, node: Described, context: TranslationContext) -> Optional[Dict[str, Any]]:
    fragment = engine._translate(node.inner, context)
    if fragment is None:
        return None
    fragment.update(copy.deepcopy(node.meta))
    return fragment


@_register_node_translator(MapSchema)
def _map_schema_translator(engine: JsonSchemaEngine, node: MapSchema, context: TranslationContext) -> Dict[str, Any]:
    """Anonymous maps are inlined as object schemas."""
    return engine.schema_object(node, context.with_location(None))


# ----------------------------- Default Engine -----------------------------

default_engine = JsonSchemaEngine()


def to_swagger(node: Any, context: ContextLike = None) -> Optional[Dict[str, Any]]:
    return default_engine.translate(node, context)


def properties(schema: Union[MapSchema, NamedModel], context: ContextLike = None) -> Dict[str, Dict[str, Any]]:
    return default_engine.properties(schema, context)


def schema_object(schema: Union[MapSchema, NamedModel], context: ContextLike = None) -> Dict[str, Any]:
    return default_engine.schema_object(schema, context)
