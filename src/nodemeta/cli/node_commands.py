"""nodemeta nodes - build node commands."""

import click
from rich.console import Console
from rich.table import Table

from nodemeta.config.loader import ConfigError

from .options import data_dir_option, resolve_data_dir

console = Console()


def open_node_store(data_dir):
    from nodemeta.storage.node_store import NodeStore

    store = NodeStore(resolve_data_dir(data_dir))
    try:
        store.reload()
    except ConfigError as e:
        console.print(f"[red]{e}[/red]")
        raise SystemExit(1)
    return store


@click.group()
def nodes():
    """Manage build nodes."""


@nodes.command("list")
@data_dir_option
def list_nodes(data_dir):
    """List build nodes."""
    store = open_node_store(data_dir)
    items = store.list_nodes()
    if not items:
        console.print("[dim]No nodes.[/dim]")
        return

    table = Table(title="Nodes")
    table.add_column("Name")
    table.add_column("Labels")
    table.add_column("Executors", justify="right")
    table.add_column("Metadata", justify="right")
    for node in items:
        summary = node.summary()
        table.add_row(
            node.name,
            " ".join(node.labels),
            str(node.num_executors),
            str(summary["metadata_count"]),
        )
    console.print(table)


@nodes.command("create")
@click.argument("name")
@click.option("--description", default="", help="Node description")
@click.option("--label", "labels", multiple=True, help="Node label (repeatable)")
@click.option("--executors", default=1, type=int, help="Number of executors")
@data_dir_option
def create_node(name, description, labels, executors, data_dir):
    """Create a build node."""
    store = open_node_store(data_dir)
    try:
        store.create_node(name, description, list(labels), executors)
    except ValueError as e:
        console.print(f"[red]{e}[/red]")
        raise SystemExit(1)
    console.print(f"[green]Node '{name}' created[/green]")


@nodes.command("delete")
@click.argument("name")
@data_dir_option
def delete_node(name, data_dir):
    """Delete a build node and its metadata."""
    store = open_node_store(data_dir)
    try:
        deleted = store.delete_node(name)
    except ValueError as e:
        console.print(f"[red]{e}[/red]")
        raise SystemExit(1)
    if not deleted:
        console.print(f"[red]Node '{name}' not found[/red]")
        raise SystemExit(1)
    console.print(f"Node '{name}' deleted")
