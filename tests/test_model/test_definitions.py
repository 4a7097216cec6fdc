"""Tests for metadata definitions and hetero-list decoding."""

from datetime import datetime

import pytest

from nodemeta.model.definitions import (
    DateMetadataDefinition,
    DefinitionRegistry,
    MetadataDefinition,
    NumberMetadataDefinition,
    StringMetadataDefinition,
    TreeNodeMetadataDefinition,
    decode_definition,
    decode_definitions,
)
from nodemeta.model.errors import FormError
from nodemeta.model.values import (
    DateMetadataValue,
    NumberMetadataValue,
    StringMetadataValue,
    TreeNodeMetadataValue,
)


class TestRegistry:
    def test_builtin_types_registered(self):
        assert DefinitionRegistry.list_all()[:4] == ["string", "number", "date", "tree"]

    def test_base_class_is_abstract(self):
        with pytest.raises(TypeError):
            MetadataDefinition(type="string", name="a")

    def test_get_definition(self):
        assert DefinitionRegistry.get_definition("number") is NumberMetadataDefinition

    def test_get_definition_unknown(self):
        with pytest.raises(ValueError, match="not found"):
            DefinitionRegistry.get_definition("blob")

    def test_descriptors(self):
        descriptors = DefinitionRegistry.list_descriptors()
        assert {"type": "string", "display_name": "String"} in descriptors
        assert {"type": "tree", "display_name": "Tree node"} in descriptors


class TestDecodeDefinitions:
    def test_hetero_list_keeps_order(self):
        form = {
            "definitions": [
                {"type": "string", "name": "owner", "default_value": "ci-team"},
                {"type": "number", "name": "priority", "default_value": "3"},
                {"kind": "date", "name": "installed", "default_value": ""},
            ]
        }
        definitions = decode_definitions(form)
        assert [d.name for d in definitions] == ["owner", "priority", "installed"]
        assert isinstance(definitions[0], StringMetadataDefinition)
        assert definitions[1].default_value == 3
        assert isinstance(definitions[2], DateMetadataDefinition)
        assert definitions[2].default_value is None

    def test_missing_key_is_empty(self):
        assert decode_definitions({}) == []

    def test_single_object_is_one_element_list(self):
        definitions = decode_definitions({"definitions": {"type": "string", "name": "a"}})
        assert len(definitions) == 1

    def test_unknown_type(self):
        with pytest.raises(FormError, match="Unknown definition type"):
            decode_definitions({"definitions": [{"type": "blob", "name": "a"}]})

    def test_missing_type(self):
        with pytest.raises(FormError) as exc_info:
            decode_definitions({"definitions": [{"name": "a"}]})
        assert exc_info.value.field == "definitions[0]"

    def test_validation_error(self):
        with pytest.raises(FormError, match="Invalid number definition"):
            decode_definitions(
                {"definitions": [{"type": "number", "name": "n", "default_value": "many"}]}
            )

    def test_blank_name(self):
        with pytest.raises(FormError):
            decode_definitions({"definitions": [{"type": "string", "name": "  "}]})

    def test_dotted_name_rejected(self):
        with pytest.raises(FormError):
            decode_definitions({"definitions": [{"type": "string", "name": "a.b"}]})

    def test_duplicate_names(self):
        with pytest.raises(FormError, match="Duplicate"):
            decode_definitions(
                {
                    "definitions": [
                        {"type": "string", "name": "a"},
                        {"type": "number", "name": "a"},
                    ]
                }
            )

    def test_not_a_list(self):
        with pytest.raises(FormError, match="must be a list"):
            decode_definitions({"definitions": "owner"})

    def test_form_not_an_object(self):
        with pytest.raises(FormError):
            decode_definitions(["definitions"])

    def test_nested_tree(self):
        definition = decode_definition(
            {
                "type": "tree",
                "name": "hardware",
                "children": [
                    {"type": "number", "name": "cpus", "default_value": 8},
                    {"type": "string", "name": "arch", "default_value": "x86_64"},
                ],
            }
        )
        assert isinstance(definition, TreeNodeMetadataDefinition)
        assert [c.name for c in definition.children] == ["cpus", "arch"]

    def test_nested_tree_bad_child(self):
        with pytest.raises(FormError):
            decode_definition(
                {"type": "tree", "name": "t", "children": [{"type": "blob", "name": "x"}]}
            )


class TestDefinitionModels:
    def test_frozen(self):
        definition = StringMetadataDefinition(name="owner")
        with pytest.raises(Exception):
            definition.name = "other"

    def test_equality(self):
        assert StringMetadataDefinition(name="a") == StringMetadataDefinition(name="a")
        assert StringMetadataDefinition(name="a") != NumberMetadataDefinition(name="a")

    def test_to_dict_round_trip(self):
        definition = decode_definition(
            {
                "type": "tree",
                "name": "hardware",
                "description": "Machine facts",
                "children": [{"type": "date", "name": "installed",
                              "default_value": "2024-03-01T00:00:00"}],
            }
        )
        data = definition.to_dict()
        assert data["children"][0]["type"] == "date"
        assert data["children"][0]["default_value"] == "2024-03-01T00:00:00"
        assert decode_definition(data) == definition

    def test_create_values(self):
        assert isinstance(
            StringMetadataDefinition(name="s", default_value="x").create_value(),
            StringMetadataValue,
        )
        number = NumberMetadataDefinition(name="n", default_value=2.5).create_value()
        assert isinstance(number, NumberMetadataValue)
        assert number.value == 2.5
        when = datetime(2024, 1, 1)
        date = DateMetadataDefinition(name="d", default_value=when).create_value()
        assert isinstance(date, DateMetadataValue)
        assert date.value == when

    def test_create_tree_value(self):
        definition = TreeNodeMetadataDefinition(
            name="hardware",
            exposed_to_environment=True,
            children=[{"type": "number", "name": "cpus", "default_value": 8}],
        )
        value = definition.create_value()
        assert isinstance(value, TreeNodeMetadataValue)
        assert value.get_child("cpus").value == 8
        assert value.get_child("cpus").full_name == "hardware.cpus"
