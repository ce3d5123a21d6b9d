"""
Database entry point: configuration plus a factory for sessions.
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import Callable, Iterator, Optional, Union

from ..adapters import adapter_for
from ..adapters.base import ConnectionConfig, DatabaseAdapter
from ..utils import get_logger
from .session import PersistenceSession

DEFAULT_ENV_VAR = "RELFORGE_DATABASE_URL"


class Database:
    """
    Hands out one :class:`PersistenceSession`, on its own connection, per
    unit of work.

    ``sqlite:///:memory:`` gives every session a separate empty database,
    so tests and samples use file-backed SQLite.
    """

    def __init__(
        self,
        config: Union[ConnectionConfig, str],
        *,
        adapter_factory: Optional[Callable[[], DatabaseAdapter]] = None,
    ) -> None:
        if isinstance(config, str):
            config = ConnectionConfig.from_dsn(config)
        self.config = config
        self.adapter_factory = adapter_factory or adapter_for(config)
        self.logger = get_logger("persistence.database")

    @classmethod
    def from_env(cls, env_var: str = DEFAULT_ENV_VAR, **kwargs) -> "Database":
        adapter_factory = kwargs.pop("adapter_factory", None)
        config = ConnectionConfig.from_env(env_var, **kwargs)
        return cls(config, adapter_factory=adapter_factory)

    def __repr__(self) -> str:
        return f"<Database {self.config.redacted_dsn()}>"

    def session(self) -> PersistenceSession:
        adapter = self.adapter_factory()
        return PersistenceSession(adapter, connection_config=self.config)

    @contextmanager
    def transaction(self) -> Iterator[PersistenceSession]:
        """
        Open a session, begin, and commit or roll back on exit.
        """
        with self.session() as session:
            yield session
