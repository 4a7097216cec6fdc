"""The metadata property attached to a build node."""

from typing import Any

from .errors import MetadataTypeError
from .values import MetadataParent, MetadataValue, value_from_dict


class MetadataNodeProperty(MetadataParent):
    """Root of a node's metadata tree.

    Holds the top-level values; it has no name of its own, so full names of
    its values start at their own name.
    """

    type_name = "metadata"

    def __init__(self, values: list[MetadataValue] | None = None) -> None:
        super().__init__(values)

    def to_environment(self) -> dict[str, str]:
        """Environment variables for every exposed leaf in the tree."""
        return self.children_environment()

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.type_name,
            "values": [v.to_dict() for v in self.get_children()],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "MetadataNodeProperty":
        values = data.get("values") or []
        if not isinstance(values, list):
            raise MetadataTypeError("Metadata property 'values' must be a list")
        return cls([value_from_dict(v) for v in values])

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, MetadataNodeProperty):
            return NotImplemented
        return self.to_dict() == other.to_dict()

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"MetadataNodeProperty({self.get_child_names()})"
