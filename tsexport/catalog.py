# tsexport/catalog.py
"""
Logical data model handed over by the host pipeline.

Catalog -> Resource -> Representation, combined into a CatalogItem that
identifies one exportable time series. The ordered sequence of catalog items
passed to ``DataWriter.open`` decides group and channel order in the file.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping

import numpy as np

from .exceptions import InvalidCatalogItem


def _check_id(owner: str, value: Any) -> None:
    if not isinstance(value, str) or not value.strip():
        raise InvalidCatalogItem(f"{owner}.id must be a non-empty string.")


def _check_mapping(owner: str, name: str, value: Any) -> None:
    if value is not None and not isinstance(value, Mapping):
        raise InvalidCatalogItem(f"{owner}.{name} must be a mapping or None.")


@dataclass(frozen=True)
class Catalog:
    id: str
    properties: Mapping[str, Any] | None = field(default=None, compare=False, repr=False)

    def __post_init__(self) -> None:
        _check_id("Catalog", self.id)
        _check_mapping("Catalog", "properties", self.properties)


@dataclass(frozen=True)
class Resource:
    id: str
    properties: Mapping[str, Any] | None = field(default=None, compare=False, repr=False)

    def __post_init__(self) -> None:
        _check_id("Resource", self.id)
        _check_mapping("Resource", "properties", self.properties)

    @property
    def unit(self) -> str:
        """Physical unit from the ``unit`` property, empty if absent or not text."""
        if self.properties is None:
            return ""
        unit = self.properties.get("unit")
        return unit if isinstance(unit, str) else ""


@dataclass(frozen=True)
class Representation:
    id: str
    parameters: Mapping[str, str] | None = field(default=None, compare=False)

    def __post_init__(self) -> None:
        _check_id("Representation", self.id)
        _check_mapping("Representation", "parameters", self.parameters)

    @property
    def parameter_string(self) -> str:
        """``(key=value,...)`` in insertion order, empty without parameters."""
        if self.parameters is None:
            return ""
        pairs = ",".join(f"{key}={value}" for key, value in self.parameters.items())
        return f"({pairs})"


@dataclass(frozen=True)
class CatalogItem:
    catalog: Catalog
    resource: Resource
    representation: Representation

    def __post_init__(self) -> None:
        if not isinstance(self.catalog, Catalog):
            raise InvalidCatalogItem("CatalogItem.catalog must be a Catalog instance.")
        if not isinstance(self.resource, Resource):
            raise InvalidCatalogItem("CatalogItem.resource must be a Resource instance.")
        if not isinstance(self.representation, Representation):
            raise InvalidCatalogItem("CatalogItem.representation must be a Representation instance.")

    @property
    def key(self) -> tuple:
        """Identity of the time series, used to find its channel."""
        parameters = self.representation.parameters
        items = tuple((str(k), str(v)) for k, v in parameters.items()) if parameters else ()
        return (self.catalog.id, self.resource.id, self.representation.id, items)

    @property
    def display_name(self) -> str:
        return (
            f"{self.resource.id}_{self.representation.id}"
            f"{self.representation.parameter_string}"
        )

    @property
    def unit(self) -> str:
        return self.resource.unit


@dataclass
class WriteRequest:
    catalog_item: CatalogItem
    data: np.ndarray

    def __post_init__(self):
        self.data = np.asarray(self.data, dtype=np.float64)
        if self.data.ndim != 1:
            raise ValueError(f"WriteRequest.data must be 1-D, got shape {self.data.shape}")
