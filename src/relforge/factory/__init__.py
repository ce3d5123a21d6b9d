"""
Factories building object graphs in memory (``make``) or in storage (``create``).
"""

from .builder import FactoryBuilder, RelationAttachment
from .customizer import (
    BatchAttrs,
    CallbackCustomizer,
    Customizer,
    NoCustomizer,
    SingleAttrs,
    as_customizer,
)
from .errors import CustomizerError, FactoryError, MissingRelationFactoryError
from .graph import GraphEdge, GraphNode
from .model import FactoryModel
from .persister import GraphPersister

__all__ = [
    "BatchAttrs",
    "CallbackCustomizer",
    "Customizer",
    "CustomizerError",
    "FactoryBuilder",
    "FactoryError",
    "FactoryModel",
    "GraphEdge",
    "GraphNode",
    "GraphPersister",
    "MissingRelationFactoryError",
    "NoCustomizer",
    "RelationAttachment",
    "SingleAttrs",
    "as_customizer",
]
