import pytest

from relforge.core import Model, StringField
from relforge.factory import (
    BatchAttrs,
    CallbackCustomizer,
    CustomizerError,
    NoCustomizer,
    SingleAttrs,
    as_customizer,
)


class Gadget(Model):
    name = StringField()


def test_as_customizer_normalizes_shorthands():
    callback = lambda gadget: None  # noqa: E731
    existing = SingleAttrs({"name": "x"})

    assert isinstance(as_customizer(None), NoCustomizer)
    assert isinstance(as_customizer({"name": "x"}), SingleAttrs)
    assert isinstance(as_customizer([{"name": "x"}]), BatchAttrs)
    assert isinstance(as_customizer(({"name": "x"},)), BatchAttrs)
    assert as_customizer(callback) == CallbackCustomizer(callback)
    assert as_customizer(existing) is existing


@pytest.mark.parametrize("value", [42, "name", [{"name": "x"}, 3], {1: "x"}])
def test_as_customizer_rejects_malformed_input(value):
    with pytest.raises(CustomizerError):
        as_customizer(value)


def test_no_customizer_contributes_nothing():
    customizer = NoCustomizer()

    assert dict(customizer.attributes_for(0)) == {}
    assert dict(customizer.customize(Gadget(), 0)) == {}


def test_single_attrs_apply_to_every_index():
    customizer = SingleAttrs({"name": "same"})

    assert [dict(customizer.attributes_for(index)) for index in range(3)] == [{"name": "same"}] * 3


def test_batch_attrs_apply_by_position_and_skip_missing_entries():
    customizer = BatchAttrs(({"name": "first"}, {"name": "second"}))

    assert dict(customizer.attributes_for(0)) == {"name": "first"}
    assert dict(customizer.attributes_for(1)) == {"name": "second"}
    assert dict(customizer.attributes_for(2)) == {}


def test_static_attributes_are_snapshotted():
    source = {"name": "before"}
    customizer = as_customizer(source)
    source["name"] = "after"

    assert customizer.attributes_for(0)["name"] == "before"
    with pytest.raises(TypeError):
        customizer.attributes_for(0)["name"] = "changed"


def test_callback_may_mutate_instance():
    gadget = Gadget()
    customizer = CallbackCustomizer(lambda instance: instance.fill(name="mutated"))

    assert dict(customizer.customize(gadget, 0)) == {}
    assert gadget.name == "mutated"


def test_callback_results_are_normalized_and_indexed():
    single = CallbackCustomizer(lambda instance: {"name": "returned"})
    batch = CallbackCustomizer(lambda instance: [{"name": "a"}, {"name": "b"}])

    assert dict(single.customize(Gadget(), 4)) == {"name": "returned"}
    assert dict(batch.customize(Gadget(), 1)) == {"name": "b"}
    assert dict(batch.customize(Gadget(), 2)) == {}


def test_callback_returning_customizer_or_callable_is_rejected():
    returns_callable = CallbackCustomizer(lambda instance: (lambda other: None))
    returns_customizer = CallbackCustomizer(lambda instance: NoCustomizer())

    with pytest.raises(CustomizerError):
        returns_callable.customize(Gadget(), 0)
    with pytest.raises(CustomizerError):
        returns_customizer.customize(Gadget(), 0)


def test_callback_errors_are_not_wrapped():
    def fail(instance):
        raise KeyError("missing")

    with pytest.raises(KeyError):
        CallbackCustomizer(fail).customize(Gadget(), 0)


def test_customizer_error_is_a_factory_error():
    from relforge.factory import FactoryError

    assert issubclass(CustomizerError, FactoryError)
