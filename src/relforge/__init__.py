"""
relforge public package initialization.

Models and relations, the persistence session, and factories that build
object graphs in memory or persist them in a single transaction.
"""

from .adapters import (  # noqa: F401
    AdapterError,
    ConnectionConfig,
    ConstraintViolationError,
    PostgresAdapter,
    SQLiteAdapter,
    StorageError,
)
from .core.fields import (  # noqa: F401
    AutoField,
    BooleanField,
    FloatField,
    IntegerField,
    StringField,
)
from .core.model import Model, ModelConfigurationError  # noqa: F401
from .core.registry import registry  # noqa: F401
from .core.relations import (  # noqa: F401
    ForeignKey,
    HasMany,
    HasOne,
    ManyToMany,
    RelationshipError,
    UnknownRelationError,
)
from .factory import (  # noqa: F401
    BatchAttrs,
    CallbackCustomizer,
    CustomizerError,
    FactoryError,
    FactoryModel,
    MissingRelationFactoryError,
    NoCustomizer,
    SingleAttrs,
)
from .hooks import hooks  # noqa: F401
from .persistence import Database, PersistenceSession  # noqa: F401
from .schema import SchemaBuilder  # noqa: F401

__all__ = [
    "AdapterError",
    "AutoField",
    "BatchAttrs",
    "BooleanField",
    "CallbackCustomizer",
    "ConnectionConfig",
    "ConstraintViolationError",
    "CustomizerError",
    "Database",
    "FactoryError",
    "FactoryModel",
    "FloatField",
    "ForeignKey",
    "HasMany",
    "HasOne",
    "IntegerField",
    "ManyToMany",
    "MissingRelationFactoryError",
    "Model",
    "ModelConfigurationError",
    "NoCustomizer",
    "PersistenceSession",
    "PostgresAdapter",
    "RelationshipError",
    "SQLiteAdapter",
    "SchemaBuilder",
    "SingleAttrs",
    "StorageError",
    "UnknownRelationError",
    "hooks",
    "registry",
]
