"""Preset metadata definitions and hetero-list decoding.

Definitions describe the metadata fields an administrator allows (name,
description, kind). Each kind is a pydantic model registered under a type
tag; submitted forms carry that tag as an explicit discriminator.
"""

import logging
from abc import ABC, abstractmethod
from collections.abc import Mapping
from datetime import datetime
from typing import Any, ClassVar, Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .errors import FormError
from .values import (
    DateMetadataValue,
    MetadataValue,
    NumberMetadataValue,
    StringMetadataValue,
    TreeNodeMetadataValue,
    check_value_name,
)

logger = logging.getLogger(__name__)


class MetadataDefinition(BaseModel, ABC):
    """Base class for all metadata definitions.

    Only the registered subclasses are instantiated; each one supplies its
    own ``type`` tag and ``create_value``.
    """

    model_config = ConfigDict(frozen=True)

    display_name: ClassVar[str] = ""

    type: str
    name: str = Field(min_length=1)
    description: str = ""
    exposed_to_environment: bool = False

    @field_validator("name")
    @classmethod
    def _check_name(cls, value: str) -> str:
        return check_value_name(value.strip())

    @classmethod
    def type_name(cls) -> str:
        return cls.model_fields["type"].default

    @abstractmethod
    def create_value(self) -> MetadataValue:
        """Create a metadata value pre-filled with this definition's default."""

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump(mode="json")


class DefinitionRegistry:
    """Registry of definition kinds, keyed by type tag."""

    _definitions: dict[str, type[MetadataDefinition]] = {}

    @classmethod
    def register(cls, definition_class: type[MetadataDefinition]) -> None:
        cls._definitions[definition_class.type_name()] = definition_class

    @classmethod
    def get(cls, type_name: str) -> type[MetadataDefinition] | None:
        return cls._definitions.get(type_name)

    @classmethod
    def get_definition(cls, type_name: str) -> type[MetadataDefinition]:
        """Get a definition class by tag.

        Raises:
            ValueError: If no definition kind uses that tag.
        """
        if type_name not in cls._definitions:
            available = ", ".join(cls._definitions) or "none"
            raise ValueError(
                f"Definition type '{type_name}' not found. Available types: {available}"
            )
        return cls._definitions[type_name]

    @classmethod
    def list_all(cls) -> list[str]:
        return list(cls._definitions)

    @classmethod
    def list_descriptors(cls) -> list[dict[str, str]]:
        """Definition kinds offered on the configuration page, in registration order."""
        return [
            {"type": tag, "display_name": definition_class.display_name}
            for tag, definition_class in cls._definitions.items()
        ]


def register_definition(
    definition_class: type[MetadataDefinition],
) -> type[MetadataDefinition]:
    """Decorator to register definition classes."""
    DefinitionRegistry.register(definition_class)
    return definition_class


# ---------------------------------------------------------------------------
# Hetero-list decoding
# ---------------------------------------------------------------------------


def decode_definition(item: Any, field: str = "") -> MetadataDefinition:
    """Decode one tagged entry of a submitted definitions list.

    The discriminator is read from ``type`` (or ``kind``).

    Raises:
        FormError: If the entry is not a mapping, its tag is unknown or it
            does not validate.
    """
    if isinstance(item, MetadataDefinition):
        return item
    if not isinstance(item, Mapping):
        raise FormError(f"Expected an object, got {type(item).__name__}", field)

    tag = item.get("type") or item.get("kind")
    definition_class = DefinitionRegistry.get(tag) if isinstance(tag, str) else None
    if definition_class is None:
        available = ", ".join(DefinitionRegistry.list_all()) or "none"
        raise FormError(
            f"Unknown definition type '{tag}'. Available types: {available}", field
        )

    data = {k: v for k, v in item.items() if k != "kind"}
    data["type"] = tag
    try:
        return definition_class.model_validate(data)
    except ValidationError as e:
        raise FormError(f"Invalid {tag} definition: {e}", field) from e


def decode_definitions(form_data: Any, key: str = "definitions") -> list[MetadataDefinition]:
    """Decode the hetero-list stored under ``key`` in a submitted form.

    A missing key gives an empty list; a single object counts as a list of
    one. Names must be unique within the list.

    Raises:
        FormError: On any malformed entry or duplicate name.
    """
    if not isinstance(form_data, Mapping):
        raise FormError("Submitted form must be an object")
    raw = form_data.get(key)
    if raw is None:
        return []
    if isinstance(raw, Mapping):
        raw = [raw]
    if not isinstance(raw, (list, tuple)):
        raise FormError(f"'{key}' must be a list", key)

    definitions: list[MetadataDefinition] = []
    seen: set[str] = set()
    for index, item in enumerate(raw):
        definition = decode_definition(item, field=f"{key}[{index}]")
        if definition.name in seen:
            raise FormError(f"Duplicate definition name '{definition.name}'", key)
        seen.add(definition.name)
        definitions.append(definition)
    return definitions


# ---------------------------------------------------------------------------
# Definition kinds
# ---------------------------------------------------------------------------


@register_definition
class StringMetadataDefinition(MetadataDefinition):
    display_name: ClassVar[str] = "String"

    type: Literal["string"] = "string"
    default_value: str = ""

    def create_value(self) -> StringMetadataValue:
        return StringMetadataValue(
            self.name,
            self.default_value,
            description=self.description,
            exposed_to_environment=self.exposed_to_environment,
        )


@register_definition
class NumberMetadataDefinition(MetadataDefinition):
    display_name: ClassVar[str] = "Number"

    type: Literal["number"] = "number"
    default_value: int | float = 0

    def create_value(self) -> NumberMetadataValue:
        return NumberMetadataValue(
            self.name,
            self.default_value,
            description=self.description,
            exposed_to_environment=self.exposed_to_environment,
        )


@register_definition
class DateMetadataDefinition(MetadataDefinition):
    display_name: ClassVar[str] = "Date"

    type: Literal["date"] = "date"
    default_value: datetime | None = None  # None = time of creation

    @field_validator("default_value", mode="before")
    @classmethod
    def _blank_is_none(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    def create_value(self) -> DateMetadataValue:
        return DateMetadataValue(
            self.name,
            self.default_value,
            description=self.description,
            exposed_to_environment=self.exposed_to_environment,
        )


@register_definition
class TreeNodeMetadataDefinition(MetadataDefinition):
    display_name: ClassVar[str] = "Tree node"

    type: Literal["tree"] = "tree"
    children: tuple[MetadataDefinition, ...] = ()

    @field_validator("children", mode="before")
    @classmethod
    def _decode_children(cls, value: Any) -> tuple[MetadataDefinition, ...]:
        return tuple(decode_definitions({"children": value}, "children"))

    def create_value(self) -> TreeNodeMetadataValue:
        return TreeNodeMetadataValue(
            self.name,
            description=self.description,
            children=[c.create_value() for c in self.children],
            exposed_to_environment=self.exposed_to_environment,
        )

    def to_dict(self) -> dict[str, Any]:
        data = self.model_dump(mode="json", exclude={"children"})
        data["children"] = [c.to_dict() for c in self.children]
        return data
