"""
Customizers applied to related instances produced by a factory.

A customizer is one of:

* :class:`NoCustomizer` - leave instances untouched;
* :class:`SingleAttrs` - the same attributes for every instance;
* :class:`BatchAttrs` - attribute set ``i`` for the ``i``-th instance;
* :class:`CallbackCustomizer` - call a function with each instance.

Static attributes (``SingleAttrs``/``BatchAttrs``) are known before the
instance exists and are handed to the factory's define function. A callback
runs once the instance exists; it may mutate it and may return a mapping or
a list of mappings, which is applied like ``SingleAttrs``/``BatchAttrs``.
"""

from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import TYPE_CHECKING, Any, Callable, Mapping, Sequence, Tuple, Union

from .errors import CustomizerError

if TYPE_CHECKING:
    from ..core.model import Model

Attributes = Mapping[str, Any]

_EMPTY: Attributes = MappingProxyType({})


class Customizer:
    def attributes_for(self, index: int) -> Attributes:
        """
        Attributes known before the ``index``-th instance is defined.
        """
        return _EMPTY

    def customize(self, instance: "Model", index: int) -> Attributes:
        """
        Attributes computed from the ``index``-th instance after definition.
        """
        return _EMPTY


class NoCustomizer(Customizer):
    def __repr__(self) -> str:
        return "NoCustomizer()"


@dataclass(frozen=True)
class SingleAttrs(Customizer):
    attributes: Attributes

    def __post_init__(self) -> None:
        object.__setattr__(self, "attributes", _freeze(self.attributes, 0))

    def attributes_for(self, index: int) -> Attributes:
        return self.attributes


@dataclass(frozen=True)
class BatchAttrs(Customizer):
    attribute_sets: Tuple[Attributes, ...]

    def __post_init__(self) -> None:
        frozen = tuple(_freeze(entry, position) for position, entry in enumerate(self.attribute_sets))
        object.__setattr__(self, "attribute_sets", frozen)

    def attributes_for(self, index: int) -> Attributes:
        if index < len(self.attribute_sets):
            return self.attribute_sets[index]
        return _EMPTY


@dataclass(frozen=True)
class CallbackCustomizer(Customizer):
    callback: Callable[["Model"], Any]

    def customize(self, instance: "Model", index: int) -> Attributes:
        result = self.callback(instance)
        if result is None or result is instance:
            return _EMPTY
        if callable(result) or isinstance(result, Customizer):
            raise CustomizerError(
                f"Customizer callback returned {result!r}; expected a mapping or a list of mappings"
            )
        return as_customizer(result).attributes_for(index)


CustomizerLike = Union[
    None, Customizer, Attributes, Sequence[Attributes], Callable[["Model"], Any]
]


def as_customizer(value: CustomizerLike) -> Customizer:
    """
    Normalize the accepted customizer shorthands into a :class:`Customizer`.
    """
    if value is None:
        return NoCustomizer()
    if isinstance(value, Customizer):
        return value
    if isinstance(value, Mapping):
        return SingleAttrs(value)
    if isinstance(value, (list, tuple)):
        return BatchAttrs(tuple(value))
    if callable(value):
        return CallbackCustomizer(value)
    raise CustomizerError(f"Unsupported customizer {value!r}")


def _freeze(value: Any, position: int) -> Attributes:
    if not isinstance(value, Mapping):
        raise CustomizerError(
            f"Customizer attributes at position {position} must be a mapping, got {value!r}"
        )
    if not all(isinstance(key, str) for key in value):
        raise CustomizerError(f"Customizer attribute names must be strings: {dict(value)!r}")
    return MappingProxyType(dict(value))
