"""Feather catalog - object type descriptors and inheritance lookup."""

from featherbone.catalog.loader import FeatherCatalog, load_catalog
from featherbone.catalog.types import ROOT_FEATHER, Feather, FeatherProperty

__all__ = ["Feather", "FeatherCatalog", "FeatherProperty", "ROOT_FEATHER", "load_catalog"]
