"""nodemeta CLI - Main entry point."""

import logging

import click
from rich.console import Console

from nodemeta import __version__

console = Console()


@click.group()
@click.version_option(version=__version__, prog_name="nodemeta")
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
def cli(verbose):
    """nodemeta - metadata for CI build nodes.

    Manage preset metadata definitions and per-node metadata trees.
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


from .definitions_commands import definitions  # noqa: E402
from .metadata_commands import metadata  # noqa: E402
from .node_commands import nodes  # noqa: E402

cli.add_command(definitions)
cli.add_command(metadata)
cli.add_command(nodes)


@cli.command()
@click.option("--port", default=None, type=int, help="Port for web UI")
@click.option("--host", default=None, help="Host to bind to")
@click.option("--config", "config_path", type=click.Path(exists=True), help="Config file")
@click.option("--data-dir", type=click.Path(file_okay=False), help="Data directory")
@click.option("--debug", is_flag=True, help="Enable debug mode")
def web(port, host, config_path, data_dir, debug):
    """Serve the metadata configuration page and REST API."""
    from pathlib import Path

    from nodemeta.config.loader import ConfigError, load_plugin_config
    from nodemeta.web.app import create_app

    try:
        config = load_plugin_config(Path(config_path) if config_path else None)
    except ConfigError as e:
        console.print(f"[red]{e}[/red]")
        raise SystemExit(1)

    host = host or config.host
    port = port or config.port
    app = create_app(config, data_dir=Path(data_dir) if data_dir else None)

    console.print("[bold]nodemeta[/bold]")
    console.print(f"  URL: http://{host}:{port}/MetaDataConfiguration/")
    console.print(f"  Data: {app.config['DATA_DIR']}")
    if not config.auth_token:
        console.print("  [yellow]No auth token configured: every permission is granted[/yellow]")
    console.print()

    app.run(host=host, port=port, debug=debug or config.debug)


if __name__ == "__main__":
    cli()
