"""File-backed node registry.

Each node is saved with its properties (metadata tree included) as
``<data_dir>/nodes/<name>.yaml``.
"""

import logging
import threading
from pathlib import Path

from nodemeta.config.loader import ConfigError, load_yaml
from nodemeta.nodes import Node, validate_node_name

from .files import atomic_write_yaml

logger = logging.getLogger(__name__)


class NodeStore:
    """CRUD operations on saved build nodes."""

    def __init__(self, data_dir: Path) -> None:
        self.nodes_dir = data_dir / "nodes"
        self._nodes: dict[str, Node] | None = None
        self._lock = threading.Lock()

    def _node_file(self, name: str) -> Path:
        return self.nodes_dir / f"{validate_node_name(name)}.yaml"

    def _load_node(self, path: Path) -> Node:
        data = load_yaml(path)
        try:
            return Node.from_dict(data)
        except (KeyError, TypeError, ValueError) as e:
            # MetadataTypeError is a ValueError: unknown value or property types
            raise ConfigError(f"Invalid node configuration in {path}: {e}") from e

    def _loaded(self) -> dict[str, Node]:
        if self._nodes is None:
            nodes: dict[str, Node] = {}
            if self.nodes_dir.is_dir():
                for path in sorted(self.nodes_dir.glob("*.yaml")):
                    node = self._load_node(path)
                    nodes[node.name] = node
            self._nodes = nodes
        return self._nodes

    def reload(self) -> list[Node]:
        """Drop cached nodes and read them again from disk."""
        with self._lock:
            self._nodes = None
            nodes = self._loaded()
        logger.info(f"Loaded {len(nodes)} nodes from {self.nodes_dir}")
        return list(nodes.values())

    def list_nodes(self) -> list[Node]:
        return sorted(self._loaded().values(), key=lambda n: n.name)

    def get_node(self, name: str) -> Node | None:
        return self._loaded().get(name)

    def create_node(
        self,
        name: str,
        description: str = "",
        labels: list[str] | None = None,
        num_executors: int = 1,
    ) -> Node:
        """Create and save a new node.

        Raises:
            ValueError: If the name is invalid or already taken.
        """
        if name in self._loaded():
            raise ValueError(f"Node '{name}' already exists")
        node = Node(
            name=name,
            description=description,
            labels=list(labels or []),
            num_executors=num_executors,
        )
        self.save_node(node)
        logger.info(f"Node '{name}' created")
        return node

    def save_node(self, node: Node) -> None:
        """Write the node configuration, properties included.

        On failure the cache is dropped, so unsaved changes made to cached
        nodes are discarded and the next access reads the disk again.

        Raises:
            OSError: If the file cannot be written.
        """
        path = self._node_file(node.name)
        with self._lock:
            try:
                atomic_write_yaml(path, node.to_dict())
            except OSError as e:
                logger.error(f"Failed to save node '{node.name}': {e}")
                self._nodes = None
                raise
            self._loaded()[node.name] = node
        logger.debug(f"Node '{node.name}' saved to {path}")

    def delete_node(self, name: str) -> bool:
        """Delete a node and its saved configuration.

        Returns:
            True if the node existed.
        """
        with self._lock:
            node = self._loaded().pop(name, None)
            path = self._node_file(name)
            existed = path.exists()
            path.unlink(missing_ok=True)
        if node is None and not existed:
            return False
        logger.info(f"Node '{name}' removed")
        return True
