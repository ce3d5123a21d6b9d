"""
Model base classes and metadata orchestration for relforge.
"""

from __future__ import annotations

from collections import OrderedDict
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Optional, Type, TypeVar

from ..utils import table_name_for
from .fields import AutoField, Field
from .registry import registry
from .relations import Relation


class ModelConfigurationError(Exception):
    """Raised when a model class is misconfigured."""


@dataclass
class ModelOptions:
    """
    Container for model metadata calculated by :class:`ModelMeta`.
    """

    model: Type["Model"]
    table_name: str = ""
    schema: Optional[str] = None
    abstract: bool = False
    fields: "OrderedDict[str, Field]" = field(default_factory=OrderedDict)
    relations: "OrderedDict[str, Relation]" = field(default_factory=OrderedDict)
    primary_key: Optional[Field] = None

    def add_field(self, field_obj: Field) -> None:
        if field_obj.name in self.fields or field_obj.name in self.relations:
            raise ModelConfigurationError(
                f"Duplicate attribute name '{field_obj.name}' on model '{self.model.__name__}'"
            )
        self.fields[field_obj.name] = field_obj
        if field_obj.primary_key:
            if self.primary_key and self.primary_key is not field_obj:
                raise ModelConfigurationError(
                    f"Multiple primary keys defined on model '{self.model.__name__}'"
                )
            self.primary_key = field_obj

    def add_relation(self, relation: Relation) -> None:
        if relation.name in self.fields or relation.name in self.relations:
            raise ModelConfigurationError(
                f"Duplicate attribute name '{relation.name}' on model '{self.model.__name__}'"
            )
        self.relations[relation.name] = relation

    @property
    def table(self) -> str:
        if self.schema:
            return f"{self.schema}.{self.table_name}"
        return self.table_name

    def get_field(self, name: str) -> Field:
        try:
            return self.fields[name]
        except KeyError as exc:
            raise KeyError(f"Unknown field '{name}' on model '{self.model.__name__}'") from exc

    def get_fields(self) -> Iterable[Field]:
        return self.fields.values()

    def field_for_column(self, column: str) -> Optional[Field]:
        """
        Look a field up by attribute name first, then by database column.
        """
        if column in self.fields:
            return self.fields[column]
        for field_obj in self.fields.values():
            if field_obj.column_name() == column:
                return field_obj
        return None


TModel = TypeVar("TModel", bound="Model")


class ModelMeta(type):
    """
    Metaclass collecting declared fields and relations.

    Every concrete model is registered with :data:`relforge.core.registry`
    as soon as its class body has been evaluated.
    """

    def __new__(mcls, name: str, bases: tuple[type, ...], attrs: Dict[str, Any]) -> "ModelMeta":
        # The Model base class itself carries no metadata.
        if not any(isinstance(base, ModelMeta) for base in bases):
            return super().__new__(mcls, name, bases, attrs)

        declared_fields: Dict[str, Field] = {}
        declared_relations: Dict[str, Relation] = {}
        for attr_name, value in list(attrs.items()):
            if isinstance(value, Field):
                declared_fields[attr_name] = attrs.pop(attr_name)
            elif isinstance(value, Relation):
                declared_relations[attr_name] = attrs.pop(attr_name)

        cls = super().__new__(mcls, name, bases, attrs)

        meta = getattr(cls, "Meta", None)
        table_name = table_name_for(name)
        schema = None
        abstract = False

        if meta:
            table_name = getattr(meta, "table", table_name)
            schema = getattr(meta, "schema", None)
            abstract = getattr(meta, "abstract", False)

        cls._meta = ModelOptions(model=cls, table_name=table_name, schema=schema, abstract=abstract)

        for attr_name, field_obj in sorted(
            declared_fields.items(), key=lambda item: item[1].creation_counter
        ):
            field_obj.contribute_to_class(cls, attr_name)
            cls._meta.add_field(field_obj)

        for attr_name, relation in sorted(
            declared_relations.items(), key=lambda item: item[1].creation_counter
        ):
            relation.contribute_to_class(cls, attr_name)
            cls._meta.add_relation(relation)

        if not cls._meta.primary_key and not cls._meta.abstract:
            if "id" in cls._meta.fields:
                raise ModelConfigurationError(
                    f"Model '{cls.__name__}' defines a field named 'id' but no primary key. "
                    "Either set primary_key=True on that field or define a different name."
                )
            auto_field = AutoField()
            auto_field.contribute_to_class(cls, "id")
            cls._meta.add_field(auto_field)
            cls._meta.fields = OrderedDict(
                sorted(
                    cls._meta.fields.items(),
                    key=lambda item: (0 if item[0] == "id" else 1, item[1].creation_counter),
                )
            )

        if not cls._meta.abstract:
            registry.register(cls)

        return cls


class Model(metaclass=ModelMeta):
    """
    Base model: column values, relation values, persisted flag and extras.

    Persistence is performed by :class:`relforge.persistence.PersistenceSession`;
    an instance only becomes ``is_persisted`` as the result of a successful
    insert through a session.
    """

    _meta: ModelOptions

    def __init__(self, **kwargs: Any) -> None:
        self._field_values: Dict[str, Any] = {}
        self._related_cache: Dict[str, Any] = {}
        self._generated_pk = False
        self.is_persisted = False
        self.extras: Dict[str, Any] = {}
        self._link_keys: List[str] = []

        for field_obj in self._meta.get_fields():
            if field_obj.name in kwargs:
                setattr(self, field_obj.name, kwargs.pop(field_obj.name))
            elif field_obj.has_default:
                setattr(self, field_obj.name, field_obj.get_default())

        for name in list(kwargs):
            if name in self._meta.relations:
                setattr(self, name, kwargs.pop(name))
        if kwargs:
            unknown = ", ".join(sorted(kwargs))
            raise ModelConfigurationError(
                f"Unknown attribute(s) {unknown} for model '{self.__class__.__name__}'"
            )

    def __repr__(self) -> str:
        field_parts = ", ".join(
            f"{field_obj.name}={repr(self._field_values.get(field_obj.name))}"
            for field_obj in self._meta.get_fields()
            if field_obj.name in self._field_values
        )
        return f"<{self.__class__.__name__} {field_parts}>"

    @property
    def pk(self) -> Any:
        if not self._meta.primary_key:
            raise ModelConfigurationError(
                f"Model '{self.__class__.__name__}' does not define a primary key."
            )
        return getattr(self, self._meta.primary_key.name)

    def fill(self: TModel, attributes: Mapping[str, Any] | None = None, **kwargs: Any) -> TModel:
        """
        Assign column values in bulk. Unknown names raise
        :class:`ModelConfigurationError` without touching the instance.
        """
        if attributes is not None and not isinstance(attributes, Mapping):
            raise ModelConfigurationError(
                f"fill() on '{self.__class__.__name__}' takes a mapping of column values, "
                f"got {type(attributes).__name__}; pass per-instance attributes as a list "
                "customizer or BatchAttrs on with_()"
            )
        values = dict(attributes or {})
        values.update(kwargs)
        unknown = [name for name in values if name not in self._meta.fields]
        if unknown:
            raise ModelConfigurationError(
                f"Unknown attribute(s) {', '.join(sorted(unknown))} "
                f"for model '{self.__class__.__name__}'"
            )
        for name, value in values.items():
            setattr(self, name, value)
        return self

    def to_dict(self) -> Dict[str, Any]:
        return {field_obj.name: getattr(self, field_obj.name) for field_obj in self._meta.get_fields()}

    # Persistence state ---------------------------------------------------
    def _mark_persisted(self, *, generated_pk: bool = False) -> None:
        self.is_persisted = True
        self._generated_pk = generated_pk

    def _record_link(self, extras: Mapping[str, Any]) -> None:
        self.extras.update(extras)
        self._link_keys.extend(extras)

    def _discard_persistence(self) -> None:
        """
        Undo the effects of an insert whose transaction was rolled back.
        """
        if self._generated_pk and self._meta.primary_key is not None:
            self._field_values[self._meta.primary_key.name] = None
        for key in self._link_keys:
            self.extras.pop(key, None)
        self._link_keys = []
        self._generated_pk = False
        self.is_persisted = False

    @classmethod
    def register_hook(cls, event: str, handler) -> None:
        from ..hooks import hooks

        hooks.register(event, handler, model=cls)
