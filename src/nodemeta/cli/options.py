"""Options shared by the CLI command groups."""

from pathlib import Path

import click

from nodemeta.config.loader import ConfigError, load_plugin_config

data_dir_option = click.option(
    "--data-dir",
    type=click.Path(file_okay=False),
    default=None,
    help="Data directory (default: from config, then ~/.nodemeta)",
)


def resolve_data_dir(data_dir: str | None) -> Path:
    if data_dir:
        return Path(data_dir)
    try:
        return load_plugin_config().data_dir
    except ConfigError as e:
        raise click.ClickException(str(e)) from e
