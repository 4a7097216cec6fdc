"""nodemeta metadata - read and write node metadata."""

import json
from datetime import datetime

import click
from rich.console import Console
from rich.markup import escape
from rich.tree import Tree

from nodemeta.model.errors import MetadataPathError, MetadataTypeError
from nodemeta.model.property import MetadataNodeProperty
from nodemeta.model.tree import add_value, get_path, split_path
from nodemeta.model.values import MetadataParent

from .node_commands import open_node_store
from .options import data_dir_option

console = Console()


def _get_node(store, name):
    node = store.get_node(name)
    if node is None:
        console.print(f"[red]Node '{name}' not found[/red]")
        raise SystemExit(1)
    return node


def _add_branch(branch: Tree, parent: MetadataParent) -> None:
    for child in parent.get_children():
        if isinstance(child, MetadataParent):
            _add_branch(branch.add(f"[bold]{child.name}[/bold]"), child)
        else:
            label = f"{child.name} = [cyan]{child.env_string()}[/cyan]"
            if child.description:
                label += f" [dim]({child.description})[/dim]"
            branch.add(label)


@click.group()
def metadata():
    """Read and write metadata on build nodes.

    Paths are dotted, e.g. ``owner.team``.
    """


@metadata.command("show")
@click.argument("node_name")
@data_dir_option
@click.option("--json", "as_json", is_flag=True, help="Print as JSON")
def show(node_name, data_dir, as_json):
    """Show a node's metadata tree."""
    node = _get_node(open_node_store(data_dir), node_name)
    prop = node.metadata or MetadataNodeProperty()
    if as_json:
        click.echo(json.dumps(prop.to_dict(), indent=2))
        return
    tree = Tree(f"[bold]{node.name}[/bold]")
    _add_branch(tree, prop)
    console.print(tree)


@metadata.command("get")
@click.argument("node_name")
@click.argument("path")
@data_dir_option
def get(node_name, path, data_dir):
    """Print the value at PATH."""
    node = _get_node(open_node_store(data_dir), node_name)
    parts = split_path(path)
    value = get_path(node.metadata, *parts) if node.metadata and parts else None
    if value is None:
        console.print(f"[red]No metadata at '{path}' on node '{node_name}'[/red]")
        raise SystemExit(1)
    if isinstance(value, MetadataParent):
        click.echo(json.dumps(value.to_dict(), indent=2))
    else:
        click.echo(value.env_string())


@metadata.command("set")
@click.argument("node_name")
@click.argument("path")
@click.argument("value")
@click.option("--description", default="", help="Value description")
@click.option(
    "--type",
    "value_type",
    type=click.Choice(["string", "number", "date"]),
    default="string",
    help="Value type",
)
@data_dir_option
def set_value(node_name, path, value, description, value_type, data_dir):
    """Set VALUE at PATH, creating intermediate tree nodes."""
    store = open_node_store(data_dir)
    node = _get_node(store, node_name)

    try:
        if value_type == "number":
            try:
                parsed = int(value)
            except ValueError:
                parsed = float(value)
        elif value_type == "date":
            parsed = datetime.fromisoformat(value)
        else:
            parsed = value
    except ValueError:
        console.print(f"[red]'{value}' is not a valid {value_type}[/red]")
        raise SystemExit(1)

    prop = node.metadata or MetadataNodeProperty()
    try:
        leaf = add_value(prop, parsed, description, *split_path(path))
    except (MetadataPathError, MetadataTypeError) as e:
        console.print(f"[red]{escape(str(e))}[/red]")
        raise SystemExit(1)
    if node.metadata is None:
        node.properties.add(prop)

    try:
        store.save_node(node)
    except OSError as e:
        console.print(f"[red]Could not save node '{node_name}': {escape(str(e))}[/red]")
        raise SystemExit(1)
    console.print(f"[green]{leaf.full_name} = {leaf.env_string()}[/green]")


@metadata.command("env")
@click.argument("node_name")
@data_dir_option
def env(node_name, data_dir):
    """Print the environment variables the node's metadata exposes."""
    node = _get_node(open_node_store(data_dir), node_name)
    variables = node.metadata.to_environment() if node.metadata else {}
    for key in sorted(variables):
        click.echo(f"{key}={variables[key]}")
