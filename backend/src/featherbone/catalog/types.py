"""Feather (object type) descriptors."""

from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any

ROOT_FEATHER = "Object"


@dataclass(frozen=True)
class FeatherProperty:
    name: str
    type: str = "string"
    description: str = ""
    default: Any = None
    relation: str | None = None  # Feather name when type is a relation

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "description": self.description,
            "type": {"relation": self.relation} if self.relation else self.type,
        }
        if self.default is not None:
            result["default"] = self.default
        return result


@dataclass(frozen=True)
class Feather:
    """Schema descriptor for one object type.

    Attributes:
        name: Feather name (e.g., "Invoice")
        parent_name: Name of the feather this one inherits from
        properties: Properties declared by this feather only
        plural: Plural name used by the REST adapter
        description: Human-readable description
        module: Owning module name, informational
    """

    name: str
    parent_name: str = ROOT_FEATHER
    properties: Mapping[str, FeatherProperty] = field(default_factory=dict)
    plural: str = ""
    description: str = ""
    module: str | None = None

    def __post_init__(self) -> None:
        # Snapshot is read-only once loaded
        object.__setattr__(self, "properties", MappingProxyType(dict(self.properties)))

    @property
    def is_root(self) -> bool:
        return self.name == ROOT_FEATHER

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "name": self.name,
            "description": self.description,
            "plural": self.plural,
            "properties": {
                name: prop.to_dict() for name, prop in self.properties.items()
            },
        }
        if not self.is_root:
            result["inherits"] = self.parent_name
        if self.module:
            result["module"] = self.module
        return result


def root_feather() -> Feather:
    """The implicit root every feather ultimately inherits from."""
    return Feather(
        name=ROOT_FEATHER,
        parent_name=ROOT_FEATHER,
        properties={
            "id": FeatherProperty("id", "string", "Surrogate key"),
            "created": FeatherProperty("created", "dateTime", "Create time of the record"),
            "createdBy": FeatherProperty("createdBy", "string", "User who created the record"),
            "updated": FeatherProperty("updated", "dateTime", "Last time the record was updated"),
            "updatedBy": FeatherProperty("updatedBy", "string", "User who updated the record"),
        },
        plural="Objects",
        description="Root object type",
    )
