"""Tests for metadata values, parents and serialization."""

from datetime import datetime

import pytest

from nodemeta.model.errors import MetadataTypeError
from nodemeta.model.property import MetadataNodeProperty
from nodemeta.model.tree import add_value
from nodemeta.model.values import (
    DateMetadataValue,
    NumberMetadataValue,
    StringMetadataValue,
    TreeNodeMetadataValue,
    environment_name,
    value_from_dict,
)


class TestParent:
    def test_add_child_sets_parent(self):
        tree = TreeNodeMetadataValue("a")
        leaf = StringMetadataValue("b", "x")
        assert tree.add_child(leaf) == []
        assert leaf.parent is tree
        assert leaf.full_name == "a.b"

    def test_add_child_merges_tree_nodes(self):
        first = TreeNodeMetadataValue("a", children=[StringMetadataValue("x", "1")])
        second = TreeNodeMetadataValue("a", children=[StringMetadataValue("y", "2")])
        prop = MetadataNodeProperty([first])
        assert prop.add_child(second) == []
        assert prop.get_child_names() == ["a"]
        assert first.get_child_names() == ["x", "y"]
        assert first.get_child("y").full_name == "a.y"

    def test_add_child_leaf_conflict_returned(self):
        prop = MetadataNodeProperty([StringMetadataValue("a", "old")])
        clash = StringMetadataValue("a", "new")
        assert prop.add_child(clash) == [clash]
        assert prop.get_child("a").value == "old"

    def test_set_child_replaces(self):
        prop = MetadataNodeProperty([StringMetadataValue("a", "old")])
        old = prop.set_child(0, StringMetadataValue("a", "new"))
        assert old.value == "old"
        assert old.parent is None
        assert prop.get_child("a").value == "new"

    def test_set_child_rejects_duplicate_name(self):
        prop = MetadataNodeProperty(
            [StringMetadataValue("a", "1"), StringMetadataValue("b", "2")]
        )
        with pytest.raises(ValueError):
            prop.set_child(0, StringMetadataValue("b", "3"))

    def test_remove_child(self):
        prop = MetadataNodeProperty([StringMetadataValue("a", "1")])
        removed = prop.remove_child("a")
        assert removed.name == "a"
        assert prop.get_children() == []
        assert prop.remove_child("a") is None

    def test_index_of(self):
        prop = MetadataNodeProperty(
            [StringMetadataValue("a", "1"), StringMetadataValue("b", "2")]
        )
        assert prop.index_of("b") == 1
        assert prop.index_of("zz") == -1


class TestValues:
    def test_name_required(self):
        with pytest.raises(ValueError):
            StringMetadataValue("", "x")

    @pytest.mark.parametrize("name", ["a.b", "a/b", "   "])
    def test_name_without_separators(self, name):
        with pytest.raises(ValueError):
            StringMetadataValue(name, "x")
        with pytest.raises(ValueError):
            TreeNodeMetadataValue(name)

    def test_dotted_name_rejected_when_loading(self):
        with pytest.raises(MetadataTypeError):
            value_from_dict({"type": "string", "name": "a.b", "value": "x"})

    def test_number_rejects_non_numbers(self):
        with pytest.raises(TypeError):
            NumberMetadataValue("n", "12")
        with pytest.raises(TypeError):
            NumberMetadataValue("n", True)

    def test_date_default_is_now(self):
        before = datetime.now()
        value = DateMetadataValue("d")
        assert value.value >= before

    def test_tree_node_has_no_value(self):
        tree = TreeNodeMetadataValue("t")
        assert tree.value is None
        assert not tree.is_leaf


class TestSerialization:
    def test_round_trip_preserves_tree(self):
        prop = MetadataNodeProperty()
        add_value(prop, "test", "description", "some", "kind", "of", "path")
        add_value(prop, 4, "cores", "hardware", "cpus")
        add_value(prop, datetime(2024, 1, 2, 3, 4, 5), "", "hardware", "installed")
        add_value(prop, "b", "", "some", "other")

        rebuilt = MetadataNodeProperty.from_dict(prop.to_dict())

        assert rebuilt == prop
        assert rebuilt.get_child_names() == ["some", "hardware"]
        assert rebuilt.get_child("some").get_child_names() == ["kind", "other"]
        installed = rebuilt.get_child("hardware").get_child("installed")
        assert installed.value == datetime(2024, 1, 2, 3, 4, 5)

    def test_unknown_type(self):
        with pytest.raises(MetadataTypeError, match="Unknown metadata value type"):
            value_from_dict({"type": "blob", "name": "x"})

    def test_malformed_value(self):
        with pytest.raises(MetadataTypeError, match="Malformed"):
            value_from_dict({"type": "date", "name": "d", "value": "not a date"})

    def test_missing_name(self):
        with pytest.raises(MetadataTypeError):
            value_from_dict({"type": "string", "value": "x"})

    def test_equality_includes_type(self):
        assert StringMetadataValue("a", "1") == StringMetadataValue("a", "1")
        assert StringMetadataValue("a", "1") != TreeNodeMetadataValue("a")


class TestEnvironment:
    def test_environment_name(self):
        assert environment_name(["some", "kind-of", "path"]) == "MD_SOME_KIND_OF_PATH"

    def test_only_exposed_leaves(self):
        prop = MetadataNodeProperty()
        add_value(prop, "linux", "", "os", "family").exposed_to_environment = True
        add_value(prop, "secret", "", "os", "hidden")
        assert prop.to_environment() == {"MD_OS_FAMILY": "linux"}

    def test_date_exported_as_iso(self):
        value = DateMetadataValue(
            "built", datetime(2024, 1, 2, 3, 4), exposed_to_environment=True
        )
        assert value.to_environment() == {"MD_BUILT": "2024-01-02T03:04:00"}
