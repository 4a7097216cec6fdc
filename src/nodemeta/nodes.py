"""Build nodes and their property lists."""

import re
from dataclasses import dataclass, field
from typing import Any, Iterator, TypeVar

from nodemeta.model.errors import MetadataTypeError
from nodemeta.model.property import MetadataNodeProperty

P = TypeVar("P")

# Node names double as file names in the node store.
NODE_NAME_PATTERN = re.compile(r"^[A-Za-z0-9][A-Za-z0-9._-]*$")

_PROPERTY_TYPES: dict[str, Any] = {
    MetadataNodeProperty.type_name: MetadataNodeProperty,
}


def validate_node_name(name: str) -> str:
    if not isinstance(name, str) or not NODE_NAME_PATTERN.match(name):
        raise ValueError(
            f"Invalid node name {name!r}: use letters, digits, '.', '_' or '-'"
        )
    return name


def property_from_dict(data: dict[str, Any]) -> Any:
    """Rebuild a node property from its serialized form."""
    tag = data.get("type") if isinstance(data, dict) else None
    property_class = _PROPERTY_TYPES.get(tag)  # type: ignore[arg-type]
    if property_class is None:
        raise MetadataTypeError(f"Unknown node property type '{tag}'")
    return property_class.from_dict(data)


class NodePropertyList:
    """Properties of a node, at most one per property class."""

    def __init__(self, properties: list[Any] | None = None) -> None:
        self._items: list[Any] = []
        for prop in properties or []:
            self.add(prop)

    def get(self, property_class: type[P]) -> P | None:
        for prop in self._items:
            if isinstance(prop, property_class):
                return prop
        return None

    def add(self, prop: Any) -> None:
        """Attach ``prop``, replacing any property of the same class."""
        self.remove(type(prop))
        self._items.append(prop)

    def remove(self, property_class: type) -> bool:
        for i, prop in enumerate(self._items):
            if type(prop) is property_class:
                del self._items[i]
                return True
        return False

    def __iter__(self) -> Iterator[Any]:
        return iter(list(self._items))

    def __len__(self) -> int:
        return len(self._items)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, NodePropertyList):
            return NotImplemented
        return self._items == other._items

    __hash__ = None  # type: ignore[assignment]


@dataclass
class Node:
    """A build agent managed by the CI server."""

    name: str
    description: str = ""
    labels: list[str] = field(default_factory=list)
    num_executors: int = 1
    properties: NodePropertyList = field(default_factory=NodePropertyList)

    def __post_init__(self) -> None:
        validate_node_name(self.name)

    @property
    def metadata(self) -> MetadataNodeProperty | None:
        return self.properties.get(MetadataNodeProperty)

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "labels": list(self.labels),
            "num_executors": self.num_executors,
            "properties": [p.to_dict() for p in self.properties],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Node":
        return cls(
            name=data["name"],
            description=data.get("description", ""),
            labels=list(data.get("labels") or []),
            num_executors=int(data.get("num_executors", 1)),
            properties=NodePropertyList(
                [property_from_dict(p) for p in data.get("properties") or []]
            ),
        )

    def summary(self) -> dict[str, Any]:
        """Listing view of the node."""
        metadata = self.metadata
        return {
            "name": self.name,
            "description": self.description,
            "labels": list(self.labels),
            "num_executors": self.num_executors,
            "metadata_count": len(metadata.get_children()) if metadata else 0,
        }
