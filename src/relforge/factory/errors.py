"""
Factory error hierarchy.
"""

from __future__ import annotations


class FactoryError(RuntimeError):
    """Raised when a factory is misconfigured or misused."""


class MissingRelationFactoryError(FactoryError):
    """Raised when a declared relation has no factory registered for it."""

    def __init__(self, model: type, name: str) -> None:
        self.model = model
        self.relation_name = name
        super().__init__(
            f"Relation '{name}' of model '{model.__name__}' has no factory; "
            f"register one with .related('{name}', ...)"
        )


class CustomizerError(FactoryError):
    """Raised when a customizer produces attributes that cannot be applied."""
