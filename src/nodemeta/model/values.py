"""Metadata value tree.

A tree node value owns an ordered list of named children; every other value
is a leaf holding a single scalar. Child names are unique within a parent.
Parents are tracked through weak references so that a detached subtree does
not keep its former root alive.
"""

import logging
import re
import weakref
from datetime import datetime
from typing import Any, ClassVar

from .errors import MetadataTypeError

logger = logging.getLogger(__name__)

ENV_PREFIX = "MD_"
_ENV_UNSAFE = re.compile(r"[^A-Za-z0-9_]")


def environment_name(parts: list[str]) -> str:
    """Build the environment variable name for a value's full name."""
    return ENV_PREFIX + _ENV_UNSAFE.sub("_", "_".join(parts)).upper()


def check_value_name(name: str) -> str:
    """Validate a value name; names are path segments, so no separators.

    Raises:
        ValueError: If the name is empty or contains '.' or '/'.
    """
    if not isinstance(name, str) or not name.strip():
        raise ValueError("Metadata values need a name")
    if "." in name or "/" in name:
        raise ValueError(f"Invalid metadata name '{name}': must not contain '.' or '/'")
    return name


class MetadataParent:
    """Ordered, name-unique collection of metadata values."""

    def __init__(self, children: list["MetadataValue"] | None = None) -> None:
        self._children: list[MetadataValue] = []
        if children:
            conflicts = self.add_children(children)
            if conflicts:
                names = ", ".join(c.name for c in conflicts)
                raise MetadataTypeError(f"Duplicate child names: {names}")

    def get_children(self) -> list["MetadataValue"]:
        return list(self._children)

    def get_child_names(self) -> list[str]:
        return [c.name for c in self._children]

    def get_child(self, name: str) -> "MetadataValue | None":
        for child in self._children:
            if child.name == name:
                return child
        return None

    def index_of(self, name: str) -> int:
        """Position of the named child, or -1."""
        for i, child in enumerate(self._children):
            if child.name == name:
                return i
        return -1

    def add_child(self, value: "MetadataValue") -> list["MetadataValue"]:
        """Add a value, merging into an existing tree node of the same name.

        Returns:
            The values that could not be added because a leaf with the
            same name is already present (empty when everything was added).
        """
        existing = self.get_child(value.name)
        if existing is None:
            self._children.append(value)
            value.parent = self
            return []
        if isinstance(existing, MetadataParent) and isinstance(value, MetadataParent):
            return existing.add_children(value.get_children())
        return [value]

    def add_children(self, values: list["MetadataValue"]) -> list["MetadataValue"]:
        conflicts: list[MetadataValue] = []
        for value in values:
            conflicts.extend(self.add_child(value))
        return conflicts

    def set_child(self, index: int, value: "MetadataValue") -> "MetadataValue":
        """Replace the child at ``index`` and return the one it replaced."""
        clash = self.index_of(value.name)
        if clash not in (-1, index):
            raise ValueError(f"A child named '{value.name}' already exists")
        old = self._children[index]
        old.parent = None
        self._children[index] = value
        value.parent = self
        return old

    def remove_child(self, name: str) -> "MetadataValue | None":
        index = self.index_of(name)
        if index == -1:
            return None
        value = self._children.pop(index)
        value.parent = None
        return value

    def children_environment(self) -> dict[str, str]:
        env: dict[str, str] = {}
        for child in self._children:
            env.update(child.to_environment())
        return env


class MetadataValue:
    """A named entry in a metadata tree."""

    type_name: ClassVar[str] = ""

    def __init__(
        self,
        name: str,
        description: str = "",
        exposed_to_environment: bool = False,
        generated: bool = False,
    ) -> None:
        self.name = check_value_name(name)
        self.description = description
        self.exposed_to_environment = exposed_to_environment
        self.generated = generated
        self._parent_ref: weakref.ref | None = None

    @property
    def parent(self) -> MetadataParent | None:
        return self._parent_ref() if self._parent_ref is not None else None

    @parent.setter
    def parent(self, parent: MetadataParent | None) -> None:
        self._parent_ref = weakref.ref(parent) if parent is not None else None

    @property
    def value(self) -> Any:
        return None

    @property
    def is_leaf(self) -> bool:
        return True

    @property
    def full_name_parts(self) -> list[str]:
        parts = [self.name]
        parent = self.parent
        while isinstance(parent, MetadataValue):
            parts.insert(0, parent.name)
            parent = parent.parent
        return parts

    @property
    def full_name(self) -> str:
        """Dotted name from the root of the tree, e.g. ``owner.team``."""
        return ".".join(self.full_name_parts)

    def env_string(self) -> str:
        return str(self.value)

    def to_environment(self) -> dict[str, str]:
        if not self.exposed_to_environment:
            return {}
        return {environment_name(self.full_name_parts): self.env_string()}

    def _dump_value(self) -> Any:
        return self.value

    @classmethod
    def _load_value(cls, raw: Any) -> Any:
        return raw

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.type_name,
            "name": self.name,
            "description": self.description,
            "exposed_to_environment": self.exposed_to_environment,
            "generated": self.generated,
            "value": self._dump_value(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "MetadataValue":
        return cls(  # type: ignore[call-arg]
            data["name"],
            cls._load_value(data.get("value")),
            description=data.get("description", ""),
            exposed_to_environment=data.get("exposed_to_environment", False),
            generated=data.get("generated", False),
        )

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, MetadataValue):
            return NotImplemented
        return type(self) is type(other) and self.to_dict() == other.to_dict()

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.full_name!r}, {self.value!r})"


# ---------------------------------------------------------------------------
# Type registry
# ---------------------------------------------------------------------------

_VALUE_TYPES: dict[str, type[MetadataValue]] = {}


def register_value(value_class: type[MetadataValue]) -> type[MetadataValue]:
    """Decorator registering a value class under its ``type_name``."""
    _VALUE_TYPES[value_class.type_name] = value_class
    return value_class


def value_from_dict(data: dict[str, Any]) -> MetadataValue:
    """Rebuild a value (and its subtree) from ``MetadataValue.to_dict`` output.

    Raises:
        MetadataTypeError: If the type tag is unknown or the data is malformed.
    """
    if not isinstance(data, dict):
        raise MetadataTypeError(f"Expected a mapping, got {type(data).__name__}")
    tag = data.get("type")
    value_class = _VALUE_TYPES.get(tag)  # type: ignore[arg-type]
    if value_class is None:
        available = ", ".join(_VALUE_TYPES) or "none"
        raise MetadataTypeError(
            f"Unknown metadata value type '{tag}'. Available types: {available}"
        )
    try:
        return value_class.from_dict(data)
    except (KeyError, TypeError, ValueError) as e:
        if isinstance(e, MetadataTypeError):
            raise
        raise MetadataTypeError(f"Malformed '{tag}' metadata value: {e}") from e


# ---------------------------------------------------------------------------
# Concrete values
# ---------------------------------------------------------------------------


@register_value
class StringMetadataValue(MetadataValue):
    type_name = "string"

    def __init__(self, name: str, value: str = "", **kwargs: Any) -> None:
        super().__init__(name, **kwargs)
        self.value = value

    @property
    def value(self) -> str:
        return self._value

    @value.setter
    def value(self, value: str) -> None:
        self._value = "" if value is None else str(value)


@register_value
class NumberMetadataValue(MetadataValue):
    type_name = "number"

    def __init__(self, name: str, value: int | float = 0, **kwargs: Any) -> None:
        super().__init__(name, **kwargs)
        self.value = value

    @property
    def value(self) -> int | float:
        return self._value

    @value.setter
    def value(self, value: int | float) -> None:
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise TypeError(f"Number metadata needs an int or float, got {value!r}")
        self._value = value


@register_value
class DateMetadataValue(MetadataValue):
    type_name = "date"

    def __init__(self, name: str, value: datetime | None = None, **kwargs: Any) -> None:
        super().__init__(name, **kwargs)
        self.value = value if value is not None else datetime.now()

    @property
    def value(self) -> datetime:
        return self._value

    @value.setter
    def value(self, value: datetime) -> None:
        if not isinstance(value, datetime):
            raise TypeError(f"Date metadata needs a datetime, got {value!r}")
        self._value = value

    def env_string(self) -> str:
        return self._value.isoformat()

    def _dump_value(self) -> str:
        return self._value.isoformat()

    @classmethod
    def _load_value(cls, raw: Any) -> datetime | None:
        if raw is None or isinstance(raw, datetime):
            return raw
        return datetime.fromisoformat(str(raw))


@register_value
class TreeNodeMetadataValue(MetadataValue, MetadataParent):
    """A container value; its children form the next level of the tree."""

    type_name = "tree"

    def __init__(
        self,
        name: str,
        description: str = "",
        children: list[MetadataValue] | None = None,
        **kwargs: Any,
    ) -> None:
        MetadataValue.__init__(self, name, description=description, **kwargs)
        MetadataParent.__init__(self, children)

    @property
    def is_leaf(self) -> bool:
        return False

    def to_environment(self) -> dict[str, str]:
        return self.children_environment()

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        del data["value"]
        data["children"] = [c.to_dict() for c in self._children]
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "TreeNodeMetadataValue":
        return cls(
            data["name"],
            description=data.get("description", ""),
            children=[value_from_dict(c) for c in data.get("children") or []],
            exposed_to_environment=data.get("exposed_to_environment", False),
            generated=data.get("generated", False),
        )

    def __repr__(self) -> str:
        return f"TreeNodeMetadataValue({self.full_name!r}, children={self.get_child_names()})"
