import pytest

from relforge.core import (
    HasMany,
    ManyToMany,
    Model,
    ModelRegistry,
    StringField,
    UnknownRelationError,
    registry,
)
from relforge.core.fields import IntegerField


class Library(Model):
    name = StringField()
    volumes = HasMany(lambda: Volume)
    patrons = ManyToMany(lambda: Patron)


class Volume(Model):
    title = StringField()
    library_id = IntegerField()


class Patron(Model):
    name = StringField()


def test_models_register_themselves_on_declaration():
    assert registry.is_registered(Library)
    assert registry.get_model("Library") is Library
    assert registry.get_model("tests.Library") is Library


def test_describe_reports_table_columns_and_relations():
    metadata = registry.describe(Library)

    assert metadata.model is Library
    assert metadata.table == "libraries"
    assert metadata.primary_key == "id"
    assert metadata.columns == ("id", "name")
    assert list(metadata.relations) == ["volumes", "patrons"]


def test_relation_metadata_is_read_only():
    with pytest.raises(TypeError):
        registry.relations(Library)["extra"] = Library.volumes


def test_register_is_idempotent():
    assert registry.register(Library) is registry.describe(Library)


def test_describe_relation_returns_same_descriptor():
    first = registry.describe_relation(Library, "volumes")

    assert first is registry.describe_relation(Library, "volumes")
    assert first is Library.volumes
    assert first.relation_type == "one-to-many"
    assert registry.describe_relation(Library, "patrons").relation_type == "many-to-many"


def test_describe_relation_rejects_unknown_names():
    with pytest.raises(UnknownRelationError) as excinfo:
        registry.describe_relation(Library, "name")

    assert excinfo.value.model is Library
    assert excinfo.value.relation_name == "name"


def test_separate_registry_registers_on_first_describe():
    local = ModelRegistry()

    assert local.is_registered(Patron) is False
    assert local.describe(Patron).table == "patrons"
    assert local.is_registered(Patron) is True
