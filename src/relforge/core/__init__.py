"""
Core building blocks: fields, models, relations and the metadata registry.
"""

from .fields import (
    AutoField,
    BooleanField,
    Field,
    FloatField,
    IntegerField,
    StringField,
)
from .model import Model, ModelConfigurationError, ModelMeta, ModelOptions
from .registry import ModelMetadata, ModelRegistry, registry
from .relations import (
    ForeignKey,
    ForeignKeyLinkage,
    HasMany,
    HasOne,
    ManyToMany,
    PivotLinkage,
    Relation,
    RelationshipError,
    UnknownRelationError,
)

__all__ = [
    "AutoField",
    "BooleanField",
    "Field",
    "FloatField",
    "IntegerField",
    "Model",
    "ModelConfigurationError",
    "ModelMeta",
    "ModelOptions",
    "ModelMetadata",
    "ModelRegistry",
    "StringField",
    "ForeignKey",
    "ForeignKeyLinkage",
    "HasMany",
    "HasOne",
    "ManyToMany",
    "PivotLinkage",
    "Relation",
    "RelationshipError",
    "UnknownRelationError",
    "registry",
]
