"""
Assembly of the Swagger `definitions` section.

Models are referenced with `{"$ref": "#/definitions/<name>"}` wherever they
appear, so every model reachable from the documented nodes needs one entry in
`definitions`. This module collects those models, names the anonymous maps
nested inside them, builds their object schemas and dumps the section as YAML or
JSON.
"""

from dataclasses import replace
from typing import Any, Dict, Mapping, Optional
import json
import re

import jsonschema
import yaml

from swagger_schema.errors import InvalidDefinitionError, ModelConflictError
from swagger_schema.json_schema import ContextLike, JsonSchemaEngine, default_engine
from swagger_schema.schema_nodes import (
    Combinator,
    Container,
    Described,
    MapSchema,
    Named,
    NamedModel,
    Nullable,
    RecursiveRef,
    SequenceElement,
    iter_children,
    key_name,
)
from swagger_schema.swagger_env import SwaggerSchemaEnv
from swagger_schema.swagger_logging import create_logger


logger = create_logger(__name__)


def collect_models(*nodes: Any, registry: Optional[Mapping[str, NamedModel]] = None) -> Dict[str, NamedModel]:
    """Collect every model reachable from the given nodes, in first-seen order.

    Args:
        nodes: Schema nodes to walk (models, containers, wrappers, maps...)
        registry: Models by name, used to resolve recursive references. A reference
            is resolved at most once.

    Raises:
        ModelConflictError: Two different models share a name
    """
    models: Dict[str, NamedModel] = {}
    resolved_refs = set()
    for node in nodes:
        _collect(node, models, registry, resolved_refs)
    return models


def _collect(node: Any, models: Dict[str, NamedModel], registry: Optional[Mapping[str, NamedModel]], resolved_refs: set) -> None:
    if isinstance(node, NamedModel):
        existing = models.get(node.name)
        if existing is not None:
            if existing != node:
                raise ModelConflictError(f"Two different models are named '{node.name}'")
            return
        models[node.name] = node

    elif isinstance(node, RecursiveRef):
        if node.target in models or node.target in resolved_refs or registry is None:
            return
        resolved_refs.add(node.target)
        target = registry.get(node.target)
        if target is None:
            logger.debug(f"Recursive reference '{node.target}' is not in the model registry")
            return
        _collect(target, models, registry, resolved_refs)
        return

    for child in iter_children(node):
        _collect(child, models, registry, resolved_refs)


def _camel_case(name: str) -> str:
    return "".join(part[:1].upper() + part[1:] for part in re.split(r"[^0-9A-Za-z]+", name) if part)


def with_named_sub_schemas(model: NamedModel) -> NamedModel:
    """Turn the anonymous maps nested in a model into models of their own.

    A nested map under key `key` of model `Parent` becomes the model
    `Parent` + CamelCase(key), so it ends up referenced instead of inlined.
    """
    entries = []
    for key, value in model.body.entries:
        name = key_name(key)
        if name is not None:
            value = _name_nested(value, model.name + _camel_case(name))
        entries.append((key, value))
    return NamedModel(model.name, MapSchema(entries))


def _name_nested(node: Any, name: str) -> Any:
    if isinstance(node, MapSchema):
        return with_named_sub_schemas(NamedModel(name, node))
    if isinstance(node, NamedModel):
        return with_named_sub_schemas(node)
    if isinstance(node, Container):
        return replace(node, element=_name_nested(node.element, name))
    if isinstance(node, (SequenceElement, Nullable, Named, Described)):
        return replace(node, inner=_name_nested(node.inner, name))
    if isinstance(node, Combinator):
        variants = [_name_nested(variant, name if i == 0 else f"{name}{i}") for i, variant in enumerate(node.variants)]
        return replace(node, variants=tuple(variants))
    return node


def check_definition(name: str, definition: Dict[str, Any]) -> None:
    """Check a definition against the JSON schema draft 4 meta-schema (the Swagger 2.0 base).

    Raises:
        InvalidDefinitionError: The definition is not a valid schema
    """
    try:
        jsonschema.Draft4Validator.check_schema(definition)
    except jsonschema.exceptions.SchemaError as e:
        loc = ".".join(str(p) for p in e.path)
        raise InvalidDefinitionError(f"Definition '{name}' is not a valid schema at '{loc}': {e.message}") from e


def build_definitions(*nodes: Any,
                      context: ContextLike = None,
                      registry: Optional[Mapping[str, NamedModel]] = None,
                      engine: Optional[JsonSchemaEngine] = None,
                      name_sub_schemas: bool = True,
                      check_schemas: bool = False) -> Dict[str, Dict[str, Any]]:
    """Build the `definitions` section for all models reachable from the nodes.

    Args:
        nodes: Documented schema nodes (parameter and response schemas, models...)
        context: Translation context; its unknown-type policy applies to every model
        registry: Models by name for recursive references
        engine: Engine to translate with, defaults to the shared default engine
        name_sub_schemas: Name nested anonymous maps (see with_named_sub_schemas)
        check_schemas: Check every definition against the draft 4 meta-schema

    Returns:
        Ordered mapping of model name to object schema
    """
    engine = engine or default_engine
    models = collect_models(*nodes, registry=registry)
    if name_sub_schemas:
        named_registry = {name: with_named_sub_schemas(model) for name, model in (registry or {}).items()}
        models = collect_models(*(with_named_sub_schemas(model) for model in models.values()),
                                registry=named_registry or None)

    result: Dict[str, Dict[str, Any]] = {}
    for name, model in models.items():
        definition = engine.schema_object(model, context)
        if check_schemas:
            check_definition(name, definition)
        result[name] = definition
    logger.debug(f"Built {len(result)} definitions")
    return result


def dump_definitions(definitions: Dict[str, Dict[str, Any]], output_format: Optional[str] = None) -> str:
    """Serialize {"definitions": ...} as YAML or JSON, keeping the model and property order.

    Args:
        output_format: "yaml" or "json"; None reads SWAGGER_DEFINITIONS_FORMAT
    """
    output_format = (output_format or SwaggerSchemaEnv.definitions_format()).lower()
    document = {"definitions": definitions}
    if output_format == "yaml":
        return yaml.safe_dump(document, sort_keys=False, default_flow_style=False)
    if output_format == "json":
        return json.dumps(document, indent=2)
    raise ValueError(f"Unsupported definitions format '{output_format}', "
                     f"expected one of {SwaggerSchemaEnv.supported_definitions_formats}")
