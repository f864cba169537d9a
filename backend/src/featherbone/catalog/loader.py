"""Load feather definitions and resolve inheritance."""

from pathlib import Path
from typing import Any

import yaml

from featherbone.catalog.types import ROOT_FEATHER, Feather, FeatherProperty, root_feather
from featherbone.core.errors import NotFoundError


class FeatherCatalog:
    """Immutable-by-convention set of feathers keyed by name.

    The root ``Object`` feather is always present. Every other feather has
    exactly one parent, reachable by following ``parent_name`` until it
    equals ``Object``.
    """

    def __init__(self, feathers: list[Feather] | None = None):
        self.feathers: dict[str, Feather] = {ROOT_FEATHER: root_feather()}
        for feather in feathers or []:
            self.feathers[feather.name] = feather

    @classmethod
    def from_dict(cls, data: dict[str, dict[str, Any]]) -> "FeatherCatalog":
        """Build a catalog from a ``{name: definition}`` mapping."""
        return cls([_resolve_feather(name, definition) for name, definition in data.items()])

    def get_feather(self, name: str) -> Feather:
        """Get a feather by name.

        Raises:
            NotFoundError: If no feather has that name
        """
        try:
            return self.feathers[name]
        except KeyError:
            raise NotFoundError(f"Feather '{name}' not found") from None

    def has_feather(self, name: str) -> bool:
        return name in self.feathers

    def list_feathers(self) -> list[str]:
        return sorted(self.feathers)

    def ancestry(self, name: str) -> list[str]:
        """Names from ``name`` up to and including ``Object``.

        Raises:
            NotFoundError: If ``name`` or any ancestor is unknown
            ValueError: If the inheritance chain loops
        """
        chain: list[str] = []
        current = name
        while True:
            if current in chain:
                raise ValueError(
                    f"Feather '{name}' has circular inheritance: "
                    + " -> ".join(chain + [current])
                )
            feather = self.get_feather(current)
            chain.append(current)
            if feather.is_root:
                return chain
            current = feather.parent_name

    def is_child(self, name: str, parent: str) -> bool:
        """True if ``name`` inherits (directly or not) from ``parent``."""
        return parent in self.ancestry(name)[1:]

    def properties(self, name: str) -> dict[str, FeatherProperty]:
        """All properties of a feather including inherited ones."""
        result: dict[str, FeatherProperty] = {}
        for ancestor in reversed(self.ancestry(name)):
            result.update(self.feathers[ancestor].properties)
        return result

    def resolve_name(self, name: str) -> str | None:
        """Match a feather by name or by plural name."""
        if name in self.feathers:
            return name
        for feather in self.feathers.values():
            if feather.plural == name:
                return feather.name
        return None


def load_catalog(path: Path) -> FeatherCatalog:
    """Load every ``*.yaml`` feather definition under ``path``.

    A file holds either a single definition keyed by ``feather:`` or a
    list of them under ``feathers:``.
    """
    feathers: list[Feather] = []
    if not path.exists():
        return FeatherCatalog()

    for yaml_file in sorted(path.glob("*.yaml")):
        with open(yaml_file) as f:
            data = yaml.safe_load(f)
        if not data:
            continue
        if "feather" in data:
            feathers.append(_resolve_feather(data["feather"], data))
        for definition in data.get("feathers", []):
            feathers.append(_resolve_feather(definition["feather"], definition))

    catalog = FeatherCatalog(feathers)
    # Fail fast on dangling parents or cycles
    for name in catalog.list_feathers():
        catalog.ancestry(name)
    return catalog


def _resolve_feather(name: str, data: dict[str, Any]) -> Feather:
    properties = {
        prop_name: _resolve_property(prop_name, prop_data or {})
        for prop_name, prop_data in (data.get("properties") or {}).items()
    }
    return Feather(
        name=name,
        parent_name=data.get("inherits") or ROOT_FEATHER,
        properties=properties,
        plural=data.get("plural", name + "s"),
        description=data.get("description", ""),
        module=data.get("module"),
    )


def _resolve_property(name: str, data: dict[str, Any]) -> FeatherProperty:
    prop_type = data.get("type", "string")
    relation = None
    if isinstance(prop_type, dict):
        relation = prop_type.get("relation")
        prop_type = "object"
    return FeatherProperty(
        name=name,
        type=prop_type,
        description=data.get("description", ""),
        default=data.get("default", data.get("defaultValue")),
        relation=relation,
    )
