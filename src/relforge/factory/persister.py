"""
Graph persister: writes a factory-built graph in one transaction.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, List, Optional, Sequence

from ..core.model import Model
from ..utils import get_logger
from ..utils.logging import correlation_scope
from .errors import FactoryError
from .graph import GraphNode

if TYPE_CHECKING:
    from ..persistence.database import Database
    from ..persistence.session import PersistenceSession


class GraphPersister:
    """
    Inserts graphs depth-first, left to right, inside one session.

    Roots are inserted first. One-to-many children get their foreign key
    before their insert; many-to-many children are inserted and then linked
    through the pivot table, with the pivot row exposed as ``extras``. Each
    child's own relations are written before its next sibling. Any failure
    rolls the whole graph back and the original exception is re-raised.
    """

    def __init__(self, database: Optional["Database"] = None) -> None:
        self.database = database
        self.logger = get_logger("factory.persister")

    def persist(self, root: GraphNode, *, session: Optional["PersistenceSession"] = None) -> Model:
        return self.persist_many([root], session=session)[0]

    def persist_many(
        self,
        roots: Sequence[GraphNode],
        *,
        session: Optional["PersistenceSession"] = None,
    ) -> List[Model]:
        """
        Persist ``roots`` and their graphs as a single unit.

        Without ``session`` a new session is opened from the database and
        closed afterwards. With ``session`` the graph runs in a transaction on
        it, or in a savepoint when the caller already holds one open.
        """
        with correlation_scope():
            owns_session = session is None
            if owns_session:
                if self.database is None:
                    raise FactoryError("GraphPersister needs a database or an explicit session")
                session = self.database.session()

            label = ", ".join(sorted({root.instance.__class__.__name__ for root in roots})) or "-"
            try:
                self.logger.debug(
                    "Persisting %s graph(s) of %s (%s instances)",
                    len(roots),
                    label,
                    sum(1 for root in roots for _ in root.walk()),
                )
                session.begin()
                try:
                    for root in roots:
                        self._persist_node(session, root)
                except Exception as exc:
                    self._rollback(session, label, exc)
                    raise
                session.commit()
            finally:
                if owns_session:
                    session.close()

            self.logger.debug("Committed %s graph(s) of %s", len(roots), label)
        return [root.instance for root in roots]

    # ------------------------------------------------------------------ #
    def _persist_node(self, session: "PersistenceSession", node: GraphNode) -> None:
        self._insert(session, node)
        self._persist_edges(session, node)

    def _persist_edges(self, session: "PersistenceSession", node: GraphNode) -> None:
        owner = node.instance
        for edge in node.edges:
            relation = edge.relation
            for child in edge.children:
                relation.prepare(owner, child.instance)
                self._insert(session, child)
                if relation.links_after_insert:
                    child.instance._record_link(
                        relation.link(session, owner, child.instance, child.pivot)
                    )
                self._persist_edges(session, child)

    def _insert(self, session: "PersistenceSession", node: GraphNode) -> None:
        node.factory.run_hooks("before", "create", node.instance, session)
        session.insert(node.instance)
        node.factory.run_hooks("after", "create", node.instance, session)

    def _rollback(self, session: "PersistenceSession", label: str, error: Exception) -> None:
        self.logger.warning("Rolling back graph of %s after %s: %s", label, type(error).__name__, error)
        try:
            session.rollback()
        except Exception:
            # The original error is what the caller needs to see.
            self.logger.exception("Rollback of graph of %s failed", label)

