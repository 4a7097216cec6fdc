"""Process-wide store of preset metadata definitions.

One instance is built by the application factory and handed to whatever
serves configuration requests. The list is replaced wholesale on every
configuration submit and persisted as ``definitions.yaml``.
"""

import logging
import threading
from collections.abc import Iterable
from pathlib import Path

from nodemeta.config.loader import ConfigError, load_yaml
from nodemeta.model.definitions import MetadataDefinition, decode_definitions
from nodemeta.model.errors import FormError

from .files import atomic_write_yaml

logger = logging.getLogger(__name__)

DEFINITIONS_FILE = "definitions.yaml"


class DefinitionStore:
    """Ordered list of metadata definitions backed by a YAML file."""

    def __init__(self, path: Path) -> None:
        self.path = path
        self._definitions: tuple[MetadataDefinition, ...] = ()
        self._lock = threading.Lock()

    @classmethod
    def open(cls, data_dir: Path) -> "DefinitionStore":
        """Create a store under ``data_dir`` and load any saved definitions."""
        store = cls(data_dir / DEFINITIONS_FILE)
        store.load()
        return store

    def get_definitions(self) -> list[MetadataDefinition]:
        return list(self._definitions)

    def get_definition(self, name: str) -> MetadataDefinition | None:
        for definition in self._definitions:
            if definition.name == name:
                return definition
        return None

    def set_definitions(self, definitions: Iterable[MetadataDefinition]) -> None:
        """Replace the whole list.

        Raises:
            ValueError: If two definitions share a name.
        """
        new = tuple(definitions)
        names = [d.name for d in new]
        if len(names) != len(set(names)):
            raise ValueError("Definition names must be unique")
        with self._lock:
            self._definitions = new
        logger.info(f"Metadata definitions replaced ({len(new)} entries)")

    def save(self) -> None:
        """Persist the current definitions.

        Raises:
            OSError: If the file cannot be written. Not retried.
        """
        with self._lock:
            data = {"definitions": [d.to_dict() for d in self._definitions]}
            try:
                atomic_write_yaml(self.path, data)
            except OSError as e:
                logger.error(f"Failed to save metadata definitions to {self.path}: {e}")
                raise
        logger.info(f"Saved {len(data['definitions'])} metadata definitions to {self.path}")

    def load(self) -> None:
        """Load definitions from disk; a missing file means an empty store.

        Raises:
            ConfigError: If the file exists but cannot be parsed.
        """
        if not self.path.exists():
            with self._lock:
                self._definitions = ()
            return
        data = load_yaml(self.path)
        try:
            definitions = decode_definitions(data, "definitions")
        except FormError as e:
            raise ConfigError(f"Invalid metadata definitions in {self.path}: {e}") from e
        with self._lock:
            self._definitions = tuple(definitions)
        logger.info(f"Loaded {len(definitions)} metadata definitions from {self.path}")
