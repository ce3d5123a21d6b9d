"""
In-memory object graph produced by a factory builder.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Dict, Iterator, List

from ..core.model import Model
from ..core.relations import Relation

if TYPE_CHECKING:
    from .model import FactoryModel


@dataclass
class GraphNode:
    """
    One produced instance, the factory that produced it, and its attached
    relations in the order they were requested.
    """

    instance: Model
    factory: "FactoryModel"
    pivot: Dict[str, Any] = field(default_factory=dict)
    edges: List["GraphEdge"] = field(default_factory=list)

    def walk(self) -> Iterator["GraphNode"]:
        """
        Yield this node and its descendants depth-first, left to right.
        """
        yield self
        for edge in self.edges:
            for child in edge.children:
                yield from child.walk()


@dataclass
class GraphEdge:
    relation: Relation
    children: List[GraphNode] = field(default_factory=list)

    def instances(self) -> List[Model]:
        return [child.instance for child in self.children]
