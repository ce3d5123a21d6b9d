"""
Relationship declarations and their persistence strategies.

A relation is declared as a class attribute on a model and bound to it by
the model metaclass. The related model may be given as a class, a model
name or a zero-argument callable; it is resolved on first use and cached,
together with the linkage metadata derived from it.
"""

from __future__ import annotations

from dataclasses import dataclass
from threading import RLock
from typing import TYPE_CHECKING, Any, Callable, Dict, Mapping, Optional, Sequence, Tuple, Type, Union

from ..utils import foreign_key_for, get_logger
from ..utils.naming import camel_to_snake
from .fields import Field

if TYPE_CHECKING:
    from ..persistence.session import PersistenceSession
    from .model import Model

ModelTarget = Union[Type["Model"], str, Callable[[], Type["Model"]]]

logger = get_logger("core.relations")


class RelationshipError(RuntimeError):
    pass


class UnknownRelationError(RelationshipError):
    """Raised when a relation name is not declared on a model."""

    def __init__(self, model: type, name: str) -> None:
        self.model = model
        self.relation_name = name
        super().__init__(f"'{name}' is not a relation declared on model '{model.__name__}'")


def resolve_target(target: ModelTarget) -> Type["Model"]:
    if isinstance(target, type):
        resolved = target
    elif isinstance(target, str):
        from .registry import registry

        resolved = registry.get_model(target)
        if resolved is None:
            raise RelationshipError(f"Model '{target}' is not registered")
    elif callable(target):
        resolved = target()
    else:
        raise RelationshipError(f"Cannot resolve relation target {target!r}")
    if not isinstance(resolved, type) or not hasattr(resolved, "_meta"):
        raise RelationshipError(f"Relation target {target!r} did not resolve to a model class")
    return resolved


class ForeignKey(Field):
    """
    Integer column referencing another model's primary key.
    """

    def __init__(
        self,
        to: ModelTarget,
        *,
        to_field: Optional[str] = None,
        on_delete: str = "CASCADE",
        **kwargs: Any,
    ) -> None:
        kwargs.setdefault("db_type", "INTEGER")
        kwargs.setdefault("nullable", False)
        super().__init__(**kwargs)
        self.to = to
        self.to_field = to_field
        self.on_delete = on_delete
        self._remote_model: Optional[Type["Model"]] = None

    def __set__(self, instance, value):
        if hasattr(value, "_meta"):
            value = value.pk
        super().__set__(instance, value)

    @property
    def remote_model(self) -> Type["Model"]:
        if self._remote_model is None:
            self._remote_model = resolve_target(self.to)
        return self._remote_model

    def references(self) -> Tuple[str, str]:
        """
        Return ``(table, column)`` of the referenced key.
        """
        remote = self.remote_model
        if self.to_field:
            column = remote._meta.get_field(self.to_field).column_name()
        else:
            column = remote._meta.primary_key.column_name()
        return remote._meta.table, column


@dataclass(frozen=True)
class ForeignKeyLinkage:
    local_key: str
    foreign_key: str


@dataclass(frozen=True)
class PivotLinkage:
    table: str
    local_key: str
    foreign_key: str
    related_key: str
    related_foreign_key: str
    columns: Tuple[Tuple[str, str], ...] = ()


class Relation:
    """
    Base class for relation descriptors.

    ``links_after_insert`` tells the persister whether the related row has
    to exist before the association can be written (pivot tables) or whether
    the foreign key is set on the related row before its insert.
    """

    relation_type = ""
    many = True
    links_after_insert = False

    _creation_counter = 0

    def __init__(self, to: ModelTarget) -> None:
        self.to = to
        self.name: Optional[str] = None
        self.model: Optional[Type["Model"]] = None
        self._related_model: Optional[Type["Model"]] = None
        self._linkage: Any = None
        self._lock = RLock()
        self.creation_counter = Relation._creation_counter
        Relation._creation_counter += 1

    def __repr__(self) -> str:
        owner = self.model.__name__ if self.model else "?"
        return f"<{self.__class__.__name__} {owner}.{self.name}>"

    # Descriptor protocol -------------------------------------------------
    def __get__(self, instance, owner=None):
        if instance is None:
            return self
        if self.name in instance._related_cache:
            return instance._related_cache[self.name]
        return [] if self.many else None

    def __set__(self, instance, value) -> None:
        if self.many:
            value = list(value or [])
        instance._related_cache[self.name] = value

    def contribute_to_class(self, model: Type["Model"], name: str) -> None:
        if self.model is not None:
            raise RelationshipError(
                f"Relation {self!r} is already bound and cannot be reused on '{model.__name__}'"
            )
        self.name = name
        self.model = model
        setattr(model, name, self)

    # Lazy resolution -----------------------------------------------------
    def require_model(self) -> Type["Model"]:
        if self.model is None:
            raise RelationshipError("Relation is not bound to a model.")
        return self.model

    @property
    def related_model(self) -> Type["Model"]:
        if self._related_model is None:
            with self._lock:
                if self._related_model is None:
                    self._related_model = resolve_target(self.to)
        return self._related_model

    @property
    def linkage(self):
        if self._linkage is None:
            with self._lock:
                if self._linkage is None:
                    self._linkage = self._compute_linkage()
        return self._linkage

    def _compute_linkage(self):
        raise NotImplementedError

    # Persistence strategy -----------------------------------------------
    def prepare(self, owner: "Model", related: "Model") -> None:
        """
        Adjust ``related`` before it is inserted.
        """

    def link(
        self,
        session: "PersistenceSession",
        owner: "Model",
        related: "Model",
        pivot_attributes: Optional[Mapping[str, Any]] = None,
    ) -> Dict[str, Any]:
        """
        Write the association after ``related`` was inserted; return extras.
        """
        return {}

    def accepts_pivot_attributes(self) -> bool:
        return False


class HasMany(Relation):
    """
    One-to-many: the related table carries a foreign key to the owner.
    """

    relation_type = "one-to-many"

    def __init__(
        self,
        to: ModelTarget,
        *,
        foreign_key: Optional[str] = None,
        local_key: Optional[str] = None,
    ) -> None:
        super().__init__(to)
        self._foreign_key = foreign_key
        self._local_key = local_key

    def _compute_linkage(self) -> ForeignKeyLinkage:
        owner = self.require_model()
        related = self.related_model
        local_key = self._local_key or owner._meta.primary_key.name
        if local_key not in owner._meta.fields:
            raise RelationshipError(
                f"Local key '{local_key}' for {self!r} is not a field of '{owner.__name__}'"
            )
        column = self._foreign_key or foreign_key_for(owner.__name__, local_key)
        field_obj = related._meta.field_for_column(column)
        if field_obj is None:
            raise RelationshipError(
                f"Foreign key '{column}' for {self!r} is not a field of '{related.__name__}'"
            )
        return ForeignKeyLinkage(local_key=local_key, foreign_key=field_obj.require_name())

    def prepare(self, owner: "Model", related: "Model") -> None:
        linkage = self.linkage
        value = getattr(owner, linkage.local_key)
        if value is None:
            raise RelationshipError(
                f"Cannot set '{linkage.foreign_key}' for {self!r}: owner has no '{linkage.local_key}'"
            )
        setattr(related, linkage.foreign_key, value)


class HasOne(HasMany):
    relation_type = "one-to-one"
    many = False


class ManyToMany(Relation):
    """
    Many-to-many through a pivot table holding both foreign keys.
    """

    relation_type = "many-to-many"
    links_after_insert = True

    def __init__(
        self,
        to: ModelTarget,
        *,
        pivot_table: Optional[str] = None,
        pivot_foreign_key: Optional[str] = None,
        pivot_related_foreign_key: Optional[str] = None,
        local_key: Optional[str] = None,
        related_key: Optional[str] = None,
        pivot_columns: Mapping[str, str] | Sequence[str] = (),
    ) -> None:
        super().__init__(to)
        self._pivot_table = pivot_table
        self._pivot_foreign_key = pivot_foreign_key
        self._pivot_related_foreign_key = pivot_related_foreign_key
        self._local_key = local_key
        self._related_key = related_key
        if isinstance(pivot_columns, Mapping):
            self._pivot_columns = tuple(pivot_columns.items())
        else:
            self._pivot_columns = tuple((column, "TEXT") for column in pivot_columns)

    def _compute_linkage(self) -> PivotLinkage:
        owner = self.require_model()
        related = self.related_model
        local_key = self._local_key or owner._meta.primary_key.name
        related_key = self._related_key or related._meta.primary_key.name
        table = self._pivot_table or "_".join(
            sorted([camel_to_snake(owner.__name__), camel_to_snake(related.__name__)])
        )
        foreign_key = self._pivot_foreign_key or foreign_key_for(owner.__name__, local_key)
        related_foreign_key = self._pivot_related_foreign_key or foreign_key_for(
            related.__name__, related_key
        )
        if foreign_key == related_foreign_key:
            raise RelationshipError(
                f"Pivot '{table}' for {self!r} would use '{foreign_key}' for both sides; "
                "pass pivot_foreign_key and pivot_related_foreign_key"
            )
        return PivotLinkage(
            table=table,
            local_key=local_key,
            foreign_key=foreign_key,
            related_key=related_key,
            related_foreign_key=related_foreign_key,
            columns=self._pivot_columns,
        )

    def accepts_pivot_attributes(self) -> bool:
        return True

    def link(
        self,
        session: "PersistenceSession",
        owner: "Model",
        related: "Model",
        pivot_attributes: Optional[Mapping[str, Any]] = None,
    ) -> Dict[str, Any]:
        linkage = self.linkage
        if not owner.is_persisted or not related.is_persisted:
            raise RelationshipError(
                f"Both sides of {self!r} must be persisted before writing '{linkage.table}'"
            )
        keys = {
            linkage.foreign_key: getattr(owner, linkage.local_key),
            linkage.related_foreign_key: getattr(related, linkage.related_key),
        }
        row = dict(keys)
        for column, value in (pivot_attributes or {}).items():
            if column in keys:
                logger.warning(
                    "Ignoring pivot value for '%s' on %s; the linked key takes precedence",
                    column,
                    self,
                )
                continue
            row[column] = value
        session.insert_row(linkage.table, row)
        return row
