"""
Tests for the definitions section: model collection, naming of nested maps,
object schemas per model and YAML/JSON dumps.
"""

import json
import uuid
from datetime import date
from decimal import Decimal
import unittest

import sys
import os
# Add src directory to Python path
sys.path.insert(0, os.path.join(os.path.dirname(os.path.abspath(__file__)), '..', 'src'))
import yaml
from deepdiff import DeepDiff

from swagger_schema.definitions import (
    build_definitions,
    check_definition,
    collect_models,
    dump_definitions,
    with_named_sub_schemas,
)
from swagger_schema.errors import InvalidDefinitionError, ModelConflictError, UnmappableTypeError
from swagger_schema.json_schema import JsonSchemaEngine, TranslationContext
from swagger_schema.metadata import describe
from swagger_schema.schema_nodes import (
    ANY,
    Combinator,
    Container,
    Enumeration,
    MapSchema,
    NamedModel,
    Nullable,
    OptionalKey,
    Primitive,
    RecursiveRef,
)


Category = NamedModel("Category", MapSchema({"name": Primitive(str)}))
Tag = NamedModel("Tag", MapSchema({"label": Primitive(str)}))
Pet = NamedModel("Pet", MapSchema([
    ("id", Primitive(int)),
    ("category", Nullable(Category)),
    (OptionalKey("tags"), Container(Tag, unique=True)),
]))
Node = NamedModel("Node", MapSchema({
    "value": Primitive(int),
    "children": Container(RecursiveRef("Node")),
}))


class TestCollectModels(unittest.TestCase):

    def test_first_seen_order(self):
        models = collect_models(Container(Pet), Tag)
        self.assertEqual(list(models.keys()), ["Pet", "Category", "Tag"])
        self.assertIs(models["Pet"], Pet)

    def test_models_are_collected_once(self):
        models = collect_models(Pet, Pet, Nullable(Category))
        self.assertEqual(list(models.keys()), ["Pet", "Category", "Tag"])

    def test_conflicting_models(self):
        other = NamedModel("Category", MapSchema({"id": Primitive(int)}))
        with self.assertRaises(ModelConflictError):
            collect_models(Pet, other)

    def test_self_reference(self):
        self.assertEqual(list(collect_models(Node).keys()), ["Node"])

    def test_recursive_references_resolve_through_registry(self):
        tree = NamedModel("Tree", MapSchema({"root": RecursiveRef("Node")}))
        self.assertEqual(list(collect_models(tree).keys()), ["Tree"])
        self.assertEqual(list(collect_models(tree, registry={"Node": Node}).keys()), ["Tree", "Node"])

    def test_unknown_recursive_reference(self):
        self.assertEqual(collect_models(RecursiveRef("Missing"), registry={"Node": Node}), {})

    def test_all_combinator_variants(self):
        self.assertEqual(list(collect_models(Combinator.either(Category, Tag)).keys()), ["Category", "Tag"])


class TestNamedSubSchemas(unittest.TestCase):

    def test_nested_maps_become_models(self):
        order = NamedModel("Order", MapSchema([
            ("a", Primitive(str)),
            ("b", MapSchema({"foo": Primitive(str)})),
            ("c", Container(MapSchema({"bar": Primitive(str)}))),
            ("shipping-address", Nullable(MapSchema({"zip": MapSchema({"code": Primitive(str)})}))),
        ]))
        named = with_named_sub_schemas(order)
        self.assertEqual(named.body.keys(), ["a", "b", "c", "shipping-address"])
        entries = dict(named.body.entries)
        self.assertEqual(entries["b"], NamedModel("OrderB", MapSchema({"foo": Primitive(str)})))
        self.assertEqual(entries["c"].element.name, "OrderC")
        self.assertEqual(entries["shipping-address"].inner.name, "OrderShippingAddress")
        nested = dict(entries["shipping-address"].inner.body.entries)["zip"]
        self.assertEqual(nested.name, "OrderShippingAddressZip")

    def test_models_without_nested_maps_are_unchanged(self):
        self.assertEqual(with_named_sub_schemas(Pet), Pet)


class TestBuildDefinitions(unittest.TestCase):

    def setUp(self):
        self.engine = JsonSchemaEngine(ignore_missing_mappings=False)

    def test_definitions(self):
        definitions = build_definitions(Pet, engine=self.engine)
        self.assertEqual(list(definitions.keys()), ["Pet", "Category", "Tag"])
        expected_pet = {
            "type": "object",
            "properties": {
                "id": {"type": "integer", "format": "int64"},
                "category": {"$ref": "#/definitions/Category"},
                "tags": {"type": "array", "items": {"$ref": "#/definitions/Tag"}, "uniqueItems": True},
            },
            "additionalProperties": False,
            "required": ["id", "category"],
        }
        diff = DeepDiff(definitions["Pet"], expected_pet)
        self.assertEqual(diff, {}, diff)

    def test_nested_maps_get_definitions(self):
        order = NamedModel("Order", MapSchema({"a": Primitive(str), "b": MapSchema({"foo": Primitive(str)})}))
        definitions = build_definitions(order, engine=self.engine)
        self.assertEqual(list(definitions.keys()), ["Order", "OrderB"])
        self.assertEqual(definitions["Order"]["properties"]["b"], {"$ref": "#/definitions/OrderB"})

        inline = build_definitions(order, engine=self.engine, name_sub_schemas=False)
        self.assertEqual(list(inline.keys()), ["Order"])
        self.assertEqual(inline["Order"]["properties"]["b"]["type"], "object")

    def test_recursive_model(self):
        definitions = build_definitions(Node, engine=self.engine)
        self.assertEqual(definitions["Node"]["properties"]["children"],
                         {"type": "array", "items": {"$ref": "#/definitions/Node"}})

    def test_policy_applies_to_every_model(self):
        broken = NamedModel("Broken", MapSchema({"a": Primitive(str), "b": Primitive(bytes)}))
        with self.assertRaises(UnmappableTypeError):
            build_definitions(broken, engine=self.engine)
        definitions = build_definitions(broken, engine=self.engine, context=TranslationContext(ignore_missing_mappings=True))
        self.assertEqual(list(definitions["Broken"]["properties"].keys()), ["a"])

    def test_checked_definitions(self):
        described = NamedModel("Described", MapSchema({"a": describe(Primitive(int), "a number", minimum=1)}))
        definitions = build_definitions(Pet, described, engine=self.engine, check_schemas=True)
        self.assertEqual(definitions["Described"]["properties"]["a"]["minimum"], 1)

    def test_invalid_definition(self):
        with self.assertRaises(InvalidDefinitionError):
            check_definition("Broken", {"type": "object", "properties": {"a": {"type": "array", "items": None}}})
        anything = NamedModel("Anything", MapSchema({"values": Container(ANY)}))
        with self.assertRaises(InvalidDefinitionError):
            build_definitions(anything, engine=self.engine, check_schemas=True)


class TestDumpDefinitions(unittest.TestCase):

    def setUp(self):
        self.definitions = build_definitions(Pet, engine=JsonSchemaEngine(ignore_missing_mappings=False))

    def test_yaml(self):
        loaded = yaml.safe_load(dump_definitions(self.definitions, "yaml"))
        self.assertEqual(loaded, {"definitions": self.definitions})
        self.assertEqual(list(loaded["definitions"]["Pet"]["properties"].keys()), ["id", "category", "tags"])

    def test_json(self):
        loaded = json.loads(dump_definitions(self.definitions, "json"))
        self.assertEqual(loaded, {"definitions": self.definitions})
        self.assertEqual(list(loaded["definitions"].keys()), ["Pet", "Category", "Tag"])

    def test_enumerations_dump(self):
        day = NamedModel("Day", MapSchema({
            "d": Enumeration((date(2020, 1, 1), date(2020, 1, 2))),
            "id": Enumeration((uuid.UUID("12345678-1234-5678-1234-567812345678"),)),
            "amount": Enumeration((Decimal("0.5"),)),
        }))
        definitions = build_definitions(day, engine=JsonSchemaEngine(ignore_missing_mappings=False), check_schemas=True)
        for output_format, load in (("json", json.loads), ("yaml", yaml.safe_load)):
            with self.subTest(output_format=output_format):
                loaded = load(dump_definitions(definitions, output_format))
                props = loaded["definitions"]["Day"]["properties"]
                self.assertEqual(props["d"], {"type": "string", "format": "date", "enum": ["2020-01-01", "2020-01-02"]})
                self.assertEqual(props["id"]["enum"], ["12345678-1234-5678-1234-567812345678"])
                self.assertEqual(props["amount"]["enum"], [0.5])

    def test_unknown_format(self):
        with self.assertRaises(ValueError):
            dump_definitions(self.definitions, "xml")


if __name__ == '__main__':
    unittest.main()
