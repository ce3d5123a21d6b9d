"""
Transaction levels: one outer transaction with nested savepoints.
"""

from __future__ import annotations

import itertools
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, List, Optional

from ..adapters.base import DatabaseAdapter
from ..dialects.base import Dialect

if TYPE_CHECKING:
    from ..core.model import Model


class TransactionError(RuntimeError):
    pass


@dataclass
class TransactionLevel:
    """
    An open level; ``savepoint`` is ``None`` for the outermost transaction.
    """

    savepoint: Optional[str] = None
    inserted: List["Model"] = field(default_factory=list)

    def discard(self) -> None:
        for instance in reversed(self.inserted):
            instance._discard_persistence()


class TransactionManager:
    """
    Stack of transaction levels on a single adapter connection.

    Instances inserted while a level is open are tracked on it. Releasing a
    savepoint hands them to the enclosing level; rolling a level back, or
    failing to commit it, resets their persisted state.
    """

    def __init__(self, adapter: DatabaseAdapter, dialect: Dialect) -> None:
        self.adapter = adapter
        self.dialect = dialect
        self._levels: List[TransactionLevel] = []
        self._savepoint_counter = itertools.count(1)

    @property
    def depth(self) -> int:
        return len(self._levels)

    def track(self, instance: "Model") -> None:
        if self._levels:
            self._levels[-1].inserted.append(instance)

    def begin(self) -> TransactionLevel:
        if not self._levels:
            self.adapter.begin()
            level = TransactionLevel()
        else:
            if not self.dialect.capabilities.supports_savepoints:
                raise TransactionError("Nested transactions not supported by current dialect.")
            name = f"sp_{next(self._savepoint_counter)}"
            self.adapter.execute(f"SAVEPOINT {name}")
            level = TransactionLevel(savepoint=name)
        self._levels.append(level)
        return level

    def commit(self) -> TransactionLevel:
        level = self._pop("commit")
        try:
            if level.savepoint is None:
                self.adapter.commit()
            else:
                self.adapter.execute(f"RELEASE SAVEPOINT {level.savepoint}")
        except Exception:
            level.discard()
            raise
        if self._levels:
            self._levels[-1].inserted.extend(level.inserted)
        return level

    def rollback(self) -> TransactionLevel:
        level = self._pop("roll back")
        try:
            if level.savepoint is None:
                self.adapter.rollback()
            else:
                self.adapter.execute(f"ROLLBACK TO SAVEPOINT {level.savepoint}")
                self.adapter.execute(f"RELEASE SAVEPOINT {level.savepoint}")
        finally:
            level.discard()
        return level

    def _pop(self, action: str) -> TransactionLevel:
        if not self._levels:
            raise TransactionError(f"No active transaction to {action}.")
        return self._levels.pop()
