"""
Entity metadata registry.

Holds, per model class, its table, columns, primary key and declared
relations. Registration happens once per class; lookups are safe from
multiple threads.
"""

from __future__ import annotations

from dataclasses import dataclass
from threading import RLock
from types import MappingProxyType
from typing import TYPE_CHECKING, Dict, Mapping, Optional, Tuple, Type

from .relations import Relation, UnknownRelationError

if TYPE_CHECKING:
    from .model import Model


@dataclass(frozen=True)
class ModelMetadata:
    model: Type["Model"]
    table: str
    primary_key: Optional[str]
    columns: Tuple[str, ...]
    relations: Mapping[str, Relation]


class ModelRegistry:
    def __init__(self) -> None:
        self._metadata: Dict[Type["Model"], ModelMetadata] = {}
        self._labels: Dict[str, Type["Model"]] = {}
        self._lock = RLock()

    def register(self, model: Type["Model"]) -> ModelMetadata:
        """
        Scan ``model`` and cache its metadata. Re-registering is a no-op.
        """
        with self._lock:
            existing = self._metadata.get(model)
            if existing is not None:
                return existing
            options = model._meta
            metadata = ModelMetadata(
                model=model,
                table=options.table,
                primary_key=options.primary_key.name if options.primary_key else None,
                columns=tuple(field.column_name() for field in options.get_fields()),
                relations=MappingProxyType(dict(options.relations)),
            )
            self._metadata[model] = metadata
            self._labels[model.__name__] = model
            return metadata

    def is_registered(self, model: Type["Model"]) -> bool:
        with self._lock:
            return model in self._metadata

    def describe(self, model: Type["Model"]) -> ModelMetadata:
        with self._lock:
            metadata = self._metadata.get(model)
        if metadata is None:
            metadata = self.register(model)
        return metadata

    def relations(self, model: Type["Model"]) -> Mapping[str, Relation]:
        return self.describe(model).relations

    def describe_relation(self, model: Type["Model"], name: str) -> Relation:
        try:
            return self.relations(model)[name]
        except KeyError:
            raise UnknownRelationError(model, name) from None

    def get_model(self, label: str) -> Optional[Type["Model"]]:
        with self._lock:
            return self._labels.get(label.split(".")[-1])


registry = ModelRegistry()
