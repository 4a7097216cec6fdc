"""Pydantic models for nodemeta configuration."""

from pathlib import Path

from pydantic import BaseModel, Field

DEFAULT_DATA_DIR = Path.home() / ".nodemeta"


class PluginConfig(BaseModel):
    """Configuration for the metadata web service and CLI."""

    host: str = "127.0.0.1"
    port: int = Field(default=8080, ge=1, le=65535)
    debug: bool = False
    data_dir: Path = Field(default_factory=lambda: DEFAULT_DATA_DIR)
    secret_key: str = ""
    auth_token: str = ""  # Empty = every permission granted (development mode)
    read_token: str = ""  # Empty = anyone may read
