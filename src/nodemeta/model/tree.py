"""Path addressing helpers for metadata trees.

A path is a sequence of names; each name selects one child of the current
container, starting at a root (a node property or a tree node value).
"""

import logging
from datetime import datetime
from typing import Any

from .errors import MetadataPathError, MetadataTypeError
from .values import (
    DateMetadataValue,
    MetadataParent,
    MetadataValue,
    NumberMetadataValue,
    StringMetadataValue,
    TreeNodeMetadataValue,
    check_value_name,
)

logger = logging.getLogger(__name__)


def split_path(text: str, separator: str = ".") -> tuple[str, ...]:
    """Split ``"a.b.c"`` style text into path names, ignoring empty parts."""
    return tuple(part for part in text.split(separator) if part)


def create_leaf(name: str, value: Any, description: str = "") -> MetadataValue:
    """Create the leaf value type matching the Python type of ``value``."""
    if isinstance(value, datetime):
        return DateMetadataValue(name, value, description=description)
    if isinstance(value, bool):
        raise MetadataTypeError(f"Unsupported metadata value for '{name}': {value!r}")
    if isinstance(value, (int, float)):
        return NumberMetadataValue(name, value, description=description)
    if isinstance(value, str):
        return StringMetadataValue(name, value, description=description)
    raise MetadataTypeError(
        f"Unsupported metadata value for '{name}': {type(value).__name__}"
    )


def get_path(root: MetadataParent, *path: str) -> MetadataValue | MetadataParent | None:
    """Resolve ``path`` against ``root``.

    An empty path resolves to ``root`` itself.

    Returns:
        The value at the path, or None when any name along it is missing
        or the path tries to descend through a leaf.
    """
    current: Any = root
    for name in path:
        if not isinstance(current, MetadataParent):
            return None
        current = current.get_child(name)
        if current is None:
            return None
    return current


def get_leaf(root: MetadataParent, *path: str) -> Any:
    """Scalar value at ``path``, or None if absent or not a leaf."""
    node = get_path(root, *path)
    if node is None or isinstance(node, MetadataParent):
        return None
    return node.value


def add_value(
    root: MetadataParent, value: Any, description: str, *path: str
) -> MetadataValue:
    """Set ``value`` at ``path``, creating missing tree nodes on the way.

    An existing leaf at the path is updated in place (or replaced when the
    value type changes), so no duplicate sibling is ever created.

    The tree is left untouched when an error is raised.

    Returns:
        The leaf now holding ``value``.

    Raises:
        MetadataPathError: If the path is empty, holds an invalid name, runs
            through an existing leaf, or ends on an existing tree node.
        MetadataTypeError: If ``value`` is not a str, number or datetime.
    """
    if not path:
        raise MetadataPathError("A metadata path needs at least one name")
    for name in path:
        try:
            check_value_name(name)
        except ValueError as e:
            raise MetadataPathError(str(e)) from e

    name = path[-1]
    leaf = create_leaf(name, value, description)

    parent = root
    for depth, part in enumerate(path[:-1]):
        child = parent.get_child(part)
        if child is None:
            parent.add_child(create_path(leaf, *path[depth:-1]))
            return leaf
        if not isinstance(child, MetadataParent):
            raise MetadataPathError(
                f"Cannot create '{'.'.join(path)}': '{child.full_name}' is a leaf"
            )
        parent = child

    existing = parent.get_child(name)
    if existing is None:
        parent.add_child(leaf)
        return leaf
    if isinstance(existing, MetadataParent):
        raise MetadataPathError(
            f"Cannot set a value on '{existing.full_name}': it is a tree node"
        )
    if type(existing) is type(leaf):
        existing.value = leaf.value  # type: ignore[attr-defined]
        existing.description = description
        return existing

    leaf.exposed_to_environment = existing.exposed_to_environment
    parent.set_child(parent.index_of(name), leaf)
    logger.debug(f"Replaced {existing.type_name} value at {leaf.full_name}")
    return leaf


def create_path(value: MetadataValue, *parents: str) -> MetadataValue:
    """Wrap ``value`` in a detached chain of tree nodes named ``parents``.

    Returns:
        The top of the chain (``value`` itself when no parents are given).
    """
    current = value
    for name in reversed(parents):
        node = TreeNodeMetadataValue(name)
        node.add_child(current)
        current = node
    return current


def create_tree_structure(
    description: str, *path: str
) -> tuple[TreeNodeMetadataValue, TreeNodeMetadataValue]:
    """Build a detached chain of empty tree nodes.

    Returns:
        ``(top, bottom)`` of the chain.
    """
    if not path:
        raise MetadataPathError("A metadata path needs at least one name")
    top = TreeNodeMetadataValue(path[0], description=description)
    bottom = top
    for name in path[1:]:
        node = TreeNodeMetadataValue(name, description=description)
        bottom.add_child(node)
        bottom = node
    return top, bottom
