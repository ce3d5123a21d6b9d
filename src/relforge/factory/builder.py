"""
Factory builders: configure which relations to include and produce graphs.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Dict, List, Mapping, Optional, Sequence, Tuple, Union

from ..core.model import Model
from ..core.registry import registry
from ..core.relations import Relation
from .customizer import Customizer, CustomizerError, CustomizerLike, NoCustomizer, as_customizer
from .errors import FactoryError, MissingRelationFactoryError
from .graph import GraphEdge, GraphNode

if TYPE_CHECKING:
    from ..persistence.database import Database
    from ..persistence.session import PersistenceSession
    from .model import FactoryModel


@dataclass(frozen=True)
class RelationAttachment:
    relation: Relation
    count: int
    customizer: Customizer


class FactoryBuilder:
    """
    Immutable build configuration for one factory.

    ``with_``, ``merge`` and ``apply`` return a new builder, so a configured
    builder can be reused: every ``make``/``create`` call produces a fresh
    graph of the same shape.
    """

    def __init__(
        self,
        factory: "FactoryModel",
        *,
        attachments: Tuple[RelationAttachment, ...] = (),
        merge: Optional[Customizer] = None,
        states: Tuple[str, ...] = (),
    ) -> None:
        self.factory = factory
        self._attachments = attachments
        self._merge = merge or NoCustomizer()
        self._states = states

    def __repr__(self) -> str:
        names = ", ".join(f"{a.relation.name}x{a.count}" for a in self._attachments)
        return f"<FactoryBuilder {self.factory.model.__name__} [{names}]>"

    @property
    def model(self) -> type[Model]:
        return self.factory.model

    @property
    def attachments(self) -> Tuple[RelationAttachment, ...]:
        return self._attachments

    # ------------------------------------------------------------------ #
    # Configuration
    # ------------------------------------------------------------------ #
    def with_(self, name: str, count: int = 1, customizer: CustomizerLike = None) -> "FactoryBuilder":
        """
        Include ``count`` instances of relation ``name`` in the next graphs.
        """
        relation = registry.describe_relation(self.model, name)
        if name not in self.factory.relations:
            raise MissingRelationFactoryError(self.model, name)
        if isinstance(count, bool) or not isinstance(count, int):
            raise TypeError(f"count must be an integer, got {count!r}")
        if count < 0:
            raise ValueError(f"count must be non-negative, got {count}")
        if not relation.many and count > 1:
            raise FactoryError(
                f"Relation '{name}' of '{self.model.__name__}' holds a single instance; count={count}"
            )
        attachment = RelationAttachment(relation, count, as_customizer(customizer))
        attachments = [a for a in self._attachments if a.relation is not relation]
        if len(attachments) == len(self._attachments):
            attachments.append(attachment)
        else:
            # Re-attaching keeps the original position.
            attachments = [
                attachment if a.relation is relation else a for a in self._attachments
            ]
        return self._clone(attachments=tuple(attachments))

    def merge(
        self, attributes: Union[Mapping[str, Any], Sequence[Mapping[str, Any]]]
    ) -> "FactoryBuilder":
        """
        Attributes for the produced instances; a list applies by position.
        """
        if callable(attributes) or attributes is None:
            raise CustomizerError("merge() accepts a mapping or a list of mappings")
        return self._clone(merge=as_customizer(attributes))

    def apply(self, *states: str) -> "FactoryBuilder":
        for state in states:
            if state not in self.factory.states:
                raise FactoryError(f"Unknown state '{state}' on factory for '{self.model.__name__}'")
        return self._clone(states=self._states + tuple(states))

    # ------------------------------------------------------------------ #
    # Terminal operations
    # ------------------------------------------------------------------ #
    def make(self) -> Model:
        return self.build_graph().instance

    def make_many(self, count: int) -> List[Model]:
        return [node.instance for node in self.build_graphs(count)]

    def create(
        self,
        *,
        session: Optional["PersistenceSession"] = None,
        database: Optional["Database"] = None,
    ) -> Model:
        node = self.build_graph()
        return self._persister(session, database).persist(node, session=session)

    def create_many(
        self,
        count: int,
        *,
        session: Optional["PersistenceSession"] = None,
        database: Optional["Database"] = None,
    ) -> List[Model]:
        nodes = self.build_graphs(count)
        return self._persister(session, database).persist_many(nodes, session=session)

    # ------------------------------------------------------------------ #
    # Graph construction
    # ------------------------------------------------------------------ #
    def build_graphs(self, count: int) -> List[GraphNode]:
        if isinstance(count, bool) or not isinstance(count, int) or count < 0:
            raise ValueError(f"count must be a non-negative integer, got {count!r}")
        return [self.build_graph(index=index) for index in range(count)]

    def build_graph(
        self,
        *,
        parent: Optional[Model] = None,
        index: int = 0,
        customizer: Optional[Customizer] = None,
        relation: Optional[Relation] = None,
    ) -> GraphNode:
        """
        Produce one instance and, recursively, its attached relations.
        """
        customizer = customizer or NoCustomizer()
        attributes = dict(self._merge.attributes_for(index))
        attributes.update(customizer.attributes_for(index))
        native, pivot = self._split(attributes, relation)

        instance = self.factory.define(parent, dict(native))
        if not isinstance(instance, self.model):
            raise FactoryError(
                f"Factory for '{self.model.__name__}' returned {instance!r} from its define function"
            )
        instance.fill(native)
        for state in self._states:
            self.factory.states[state](instance)

        computed = customizer.customize(instance, index)
        if computed:
            computed_native, computed_pivot = self._split(computed, relation)
            instance.fill(computed_native)
            pivot.update(computed_pivot)

        self.factory.run_hooks("after", "make", instance)

        node = GraphNode(instance=instance, factory=self.factory, pivot=pivot)
        for attachment in self._attachments:
            node.edges.append(self._build_edge(instance, attachment))
        return node

    def _build_edge(self, owner: Model, attachment: RelationAttachment) -> GraphEdge:
        relation = attachment.relation
        related_builder = self.factory.relation_builder(relation.name)
        edge = GraphEdge(relation=relation)
        for index in range(attachment.count):
            edge.children.append(
                related_builder.build_graph(
                    parent=owner,
                    index=index,
                    customizer=attachment.customizer,
                    relation=relation,
                )
            )
        if relation.many:
            setattr(owner, relation.name, edge.instances())
        else:
            setattr(owner, relation.name, edge.children[0].instance if edge.children else None)
        return edge

    def _split(
        self, attributes: Mapping[str, Any], relation: Optional[Relation]
    ) -> Tuple[Dict[str, Any], Dict[str, Any]]:
        fields = self.model._meta.fields
        native = {key: value for key, value in attributes.items() if key in fields}
        pivot = {key: value for key, value in attributes.items() if key not in fields}
        if pivot and (relation is None or not relation.accepts_pivot_attributes()):
            raise CustomizerError(
                f"Unknown attribute(s) {', '.join(sorted(pivot))} for model '{self.model.__name__}'"
            )
        return native, pivot

    def _clone(self, **overrides: Any) -> "FactoryBuilder":
        return FactoryBuilder(
            self.factory,
            attachments=overrides.get("attachments", self._attachments),
            merge=overrides.get("merge", self._merge),
            states=overrides.get("states", self._states),
        )

    def _persister(self, session, database):
        from .persister import GraphPersister

        database = database or self.factory.database
        if session is None and database is None:
            raise FactoryError(
                f"No database configured for factory '{self.model.__name__}'; "
                "pass database= or session= to create()"
            )
        return GraphPersister(database)
