"""Tests for the nodemeta CLI commands."""

import json

import pytest
from click.testing import CliRunner

from nodemeta.cli.main import cli
from nodemeta.model.property import MetadataNodeProperty
from nodemeta.model.tree import get_path
from nodemeta.storage.definition_store import DefinitionStore
from nodemeta.storage.node_store import NodeStore


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def data_dir(tmp_path):
    NodeStore(tmp_path).create_node("slave0")
    return tmp_path


def _invoke(runner, data_dir, *args):
    return runner.invoke(cli, [*args, "--data-dir", str(data_dir)])


class TestMetadataCommands:
    def test_set_then_get(self, runner, data_dir):
        result = _invoke(
            runner, data_dir, "metadata", "set", "slave0", "some.kind.of.path", "test",
            "--description", "description",
        )
        assert result.exit_code == 0, result.output

        result = _invoke(runner, data_dir, "metadata", "get", "slave0", "some.kind.of.path")
        assert result.exit_code == 0
        assert result.output.strip() == "test"

        node = NodeStore(data_dir).get_node("slave0")
        value = get_path(node.properties.get(MetadataNodeProperty), "some", "kind", "of", "path")
        assert value.description == "description"

    def test_set_number(self, runner, data_dir):
        result = _invoke(
            runner, data_dir, "metadata", "set", "slave0", "hw.cpus", "8", "--type", "number"
        )
        assert result.exit_code == 0
        node = NodeStore(data_dir).get_node("slave0")
        assert get_path(node.metadata, "hw", "cpus").value == 8

    def test_set_invalid_number(self, runner, data_dir):
        result = _invoke(
            runner, data_dir, "metadata", "set", "slave0", "hw.cpus", "many", "--type", "number"
        )
        assert result.exit_code != 0
        assert "not a valid number" in result.output

    def test_set_through_leaf(self, runner, data_dir):
        _invoke(runner, data_dir, "metadata", "set", "slave0", "a", "leaf")
        result = _invoke(runner, data_dir, "metadata", "set", "slave0", "a.b", "x")
        assert result.exit_code != 0

    def test_rejected_set_is_not_saved_later(self, runner, data_dir):
        _invoke(runner, data_dir, "metadata", "set", "slave0", "a", "leaf")
        assert _invoke(runner, data_dir, "metadata", "set", "slave0", "a.b.c", "x").exit_code != 0
        node = NodeStore(data_dir).get_node("slave0")
        assert node.metadata.get_child_names() == ["a"]
        assert node.metadata.get_child("a").value == "leaf"

    def test_set_save_failure(self, runner, data_dir, monkeypatch):
        def fail(path, data):
            raise OSError("disk full")

        monkeypatch.setattr("nodemeta.storage.node_store.atomic_write_yaml", fail)
        result = _invoke(runner, data_dir, "metadata", "set", "slave0", "a", "x")
        assert result.exit_code == 1
        assert "disk full" in result.output

    def test_get_missing_path(self, runner, data_dir):
        result = _invoke(runner, data_dir, "metadata", "get", "slave0", "nothing.here")
        assert result.exit_code != 0
        assert "No metadata" in result.output

    def test_get_tree_node_prints_json(self, runner, data_dir):
        _invoke(runner, data_dir, "metadata", "set", "slave0", "a.b", "x")
        result = _invoke(runner, data_dir, "metadata", "get", "slave0", "a")
        assert json.loads(result.output)["children"][0]["value"] == "x"

    def test_unknown_node(self, runner, data_dir):
        result = _invoke(runner, data_dir, "metadata", "get", "ghost", "a")
        assert result.exit_code != 0
        assert "not found" in result.output

    def test_show(self, runner, data_dir):
        _invoke(runner, data_dir, "metadata", "set", "slave0", "owner.team", "ci")
        result = _invoke(runner, data_dir, "metadata", "show", "slave0")
        assert result.exit_code == 0
        assert "team" in result.output
        assert "ci" in result.output

    def test_show_json(self, runner, data_dir):
        _invoke(runner, data_dir, "metadata", "set", "slave0", "owner", "ci")
        result = _invoke(runner, data_dir, "metadata", "show", "slave0", "--json")
        assert json.loads(result.output)["values"][0]["value"] == "ci"


class TestNodeCommands:
    def test_create_and_list(self, runner, data_dir):
        result = _invoke(runner, data_dir, "nodes", "create", "builder", "--label", "linux")
        assert result.exit_code == 0
        result = _invoke(runner, data_dir, "nodes", "list")
        assert "builder" in result.output
        assert "slave0" in result.output

    def test_create_invalid(self, runner, data_dir):
        result = _invoke(runner, data_dir, "nodes", "create", "../bad")
        assert result.exit_code != 0

    def test_delete(self, runner, data_dir):
        assert _invoke(runner, data_dir, "nodes", "delete", "slave0").exit_code == 0
        assert _invoke(runner, data_dir, "nodes", "delete", "slave0").exit_code != 0

    def test_delete_invalid_name(self, runner, data_dir):
        result = _invoke(runner, data_dir, "nodes", "delete", "../x")
        assert result.exit_code == 1
        assert "Invalid node name" in result.output


class TestDefinitionCommands:
    def test_import_and_list(self, runner, data_dir, tmp_path):
        source = tmp_path / "defs.yaml"
        source.write_text(
            "definitions:\n"
            "  - type: string\n    name: owner\n    description: Team\n"
            "  - type: number\n    name: priority\n    default_value: 1\n"
        )
        result = _invoke(runner, data_dir, "definitions", "import", str(source))
        assert result.exit_code == 0, result.output
        assert [d.name for d in DefinitionStore.open(data_dir).get_definitions()] == [
            "owner",
            "priority",
        ]

        result = _invoke(runner, data_dir, "definitions", "list", "--json")
        assert [d["name"] for d in json.loads(result.output)] == ["owner", "priority"]

    def test_import_invalid(self, runner, data_dir, tmp_path):
        source = tmp_path / "defs.yaml"
        source.write_text("definitions:\n  - type: blob\n    name: x\n")
        result = _invoke(runner, data_dir, "definitions", "import", str(source))
        assert result.exit_code != 0
        assert DefinitionStore.open(data_dir).get_definitions() == []

    def test_list_empty(self, runner, data_dir):
        result = _invoke(runner, data_dir, "definitions", "list")
        assert "No metadata definitions" in result.output

    def test_types(self, runner):
        result = runner.invoke(cli, ["definitions", "types"])
        assert result.exit_code == 0
        assert "tree" in result.output
