"""
Factory definitions bound to a model class.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Callable, Dict, List, Mapping, Optional, Tuple, Type, Union

from ..core.model import Model
from ..core.registry import registry

from .errors import FactoryError, MissingRelationFactoryError

if TYPE_CHECKING:
    from ..persistence.database import Database
    from .builder import FactoryBuilder

DefineFn = Callable[[Optional[Model], Mapping[str, Any]], Model]
RelationSupplier = Callable[[], Union["FactoryModel", "FactoryBuilder"]]

HOOK_EVENTS: Dict[str, Tuple[str, ...]] = {
    "before": ("create",),
    "after": ("make", "create"),
}


class FactoryModel:
    """
    Definition of how to instantiate ``model``.

    ``define(parent, attributes)`` returns a new, unsaved instance; ``parent``
    is the owning instance when the factory runs for a relation and ``None``
    for roots. Configuration methods return ``self`` so definitions chain;
    call :meth:`build` to get a builder.
    """

    def __init__(
        self,
        model: Type[Model],
        define: DefineFn,
        *,
        database: Optional["Database"] = None,
    ) -> None:
        if not isinstance(model, type) or not issubclass(model, Model):
            raise FactoryError(f"{model!r} is not a model class")
        registry.register(model)
        self.model = model
        self.define = define
        self.database = database
        self.relations: Dict[str, RelationSupplier] = {}
        self.states: Dict[str, Callable[[Model], Any]] = {}
        self.hooks: Dict[Tuple[str, str], List[Callable[..., Any]]] = {}

    def __repr__(self) -> str:
        return f"<FactoryModel {self.model.__name__}>"

    def related(self, name: str, supplier: RelationSupplier) -> "FactoryModel":
        """
        Register a lazy supplier of the factory used for relation ``name``.
        """
        registry.describe_relation(self.model, name)
        self.relations[name] = supplier
        return self

    def state(self, name: str, callback: Callable[[Model], Any]) -> "FactoryModel":
        self.states[name] = callback
        return self

    def before(self, event: str, callback: Callable[..., Any]) -> "FactoryModel":
        return self._add_hook("before", event, callback)

    def after(self, event: str, callback: Callable[..., Any]) -> "FactoryModel":
        return self._add_hook("after", event, callback)

    def build(self) -> "FactoryBuilder":
        from .builder import FactoryBuilder

        return FactoryBuilder(self)

    # ------------------------------------------------------------------ #
    def relation_builder(self, name: str) -> "FactoryBuilder":
        """
        Resolve the builder registered for relation ``name``.
        """
        relation = registry.describe_relation(self.model, name)
        try:
            supplier = self.relations[name]
        except KeyError:
            raise MissingRelationFactoryError(self.model, name) from None
        from .builder import FactoryBuilder

        supplied = supplier()
        if isinstance(supplied, FactoryModel):
            supplied = supplied.build()
        if not isinstance(supplied, FactoryBuilder):
            raise FactoryError(
                f"Factory supplier for '{self.model.__name__}.{name}' returned {supplied!r}"
            )
        if not issubclass(supplied.factory.model, relation.related_model):
            raise FactoryError(
                f"Factory for '{self.model.__name__}.{name}' builds "
                f"'{supplied.factory.model.__name__}', expected '{relation.related_model.__name__}'"
            )
        return supplied

    def run_hooks(self, moment: str, event: str, *args: Any) -> None:
        for callback in self.hooks.get((moment, event), ()):
            callback(*args)

    def _add_hook(self, moment: str, event: str, callback: Callable[..., Any]) -> "FactoryModel":
        if event not in HOOK_EVENTS[moment]:
            raise FactoryError(
                f"Unsupported '{moment}' hook event '{event}'; expected one of {HOOK_EVENTS[moment]}"
            )
        self.hooks.setdefault((moment, event), []).append(callback)
        return self
