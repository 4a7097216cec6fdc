"""nodemeta definitions - preset metadata definition commands."""

import json

import click
from rich.console import Console
from rich.table import Table

from nodemeta.config.loader import ConfigError, load_yaml
from nodemeta.model.definitions import DefinitionRegistry, decode_definitions
from nodemeta.model.errors import FormError

from .options import data_dir_option, resolve_data_dir

console = Console()


def _open_store(data_dir):
    from nodemeta.storage.definition_store import DefinitionStore

    try:
        return DefinitionStore.open(resolve_data_dir(data_dir))
    except ConfigError as e:
        console.print(f"[red]{e}[/red]")
        raise SystemExit(1)


@click.group()
def definitions():
    """Manage preset metadata definitions."""


@definitions.command("list")
@data_dir_option
@click.option("--json", "as_json", is_flag=True, help="Print as JSON")
def list_definitions(data_dir, as_json):
    """List the configured metadata definitions."""
    store = _open_store(data_dir)
    items = store.get_definitions()

    if as_json:
        click.echo(json.dumps([d.to_dict() for d in items], indent=2))
        return

    if not items:
        console.print("[dim]No metadata definitions configured.[/dim]")
        return

    table = Table(title="Metadata Definitions")
    table.add_column("Name")
    table.add_column("Type")
    table.add_column("Description")
    table.add_column("Env", justify="center")
    for d in items:
        table.add_row(
            d.name,
            d.type,
            d.description,
            "yes" if d.exposed_to_environment else "",
        )
    console.print(table)


@definitions.command("types")
def list_types():
    """List the definition types that can be configured."""
    for desc in DefinitionRegistry.list_descriptors():
        console.print(f"  {desc['type']:<8} {desc['display_name']}")


@definitions.command("import")
@click.argument("source", type=click.Path(exists=True, dir_okay=False))
@data_dir_option
def import_definitions(source, data_dir):
    """Replace all definitions with those in a YAML file.

    The file holds a ``definitions:`` list, each entry tagged with ``type``.
    """
    from pathlib import Path

    store = _open_store(data_dir)
    try:
        items = decode_definitions(load_yaml(Path(source)))
    except (ConfigError, FormError) as e:
        console.print(f"[red]{e}[/red]")
        raise SystemExit(1)

    store.set_definitions(items)
    try:
        store.save()
    except OSError as e:
        console.print(f"[red]Could not save definitions: {e}[/red]")
        raise SystemExit(1)
    console.print(f"[green]Saved {len(items)} definition(s) to {store.path}[/green]")
