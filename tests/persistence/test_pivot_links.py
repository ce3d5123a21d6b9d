import logging

import pytest

from relforge.adapters import ConnectionConfig, ConstraintViolationError, SQLiteAdapter
from relforge.core import ManyToMany, Model, RelationshipError, StringField
from relforge.persistence import PersistenceSession
from relforge.schema import SchemaBuilder


class Member(Model):
    name = StringField(nullable=False)


class Group(Model):
    name = StringField(nullable=False)
    members = ManyToMany(Member, pivot_columns={"role": "TEXT"})


def make_session(tmp_path):
    config = ConnectionConfig(url=f"sqlite:///{tmp_path / 'm2m.db'}")
    session = PersistenceSession(SQLiteAdapter(), connection_config=config)
    SchemaBuilder(session.dialect).create_all(session, Member, Group)
    return session


def test_link_writes_pivot_row_and_returns_extras(tmp_path):
    session = make_session(tmp_path)
    with session.transaction():
        group = session.insert(Group(name="Admins"))
        member = session.insert(Member(name="Alice"))
        extras = Group.members.link(session, group, member, {"role": "owner"})

    assert extras == {"group_id": group.id, "member_id": member.id, "role": "owner"}
    assert session.query("group_member") == [extras]
    session.close()


def test_link_requires_related_row(tmp_path):
    session = make_session(tmp_path)
    session.begin()
    group = session.insert(Group(name="Admins"))

    with pytest.raises(RelationshipError):
        Group.members.link(session, group, Member(name="Bob"))
    session.rollback()
    session.close()


def test_duplicate_link_violates_unique_pair(tmp_path):
    session = make_session(tmp_path)
    session.begin()
    group = session.insert(Group(name="Admins"))
    member = session.insert(Member(name="Alice"))
    Group.members.link(session, group, member)

    with pytest.raises(ConstraintViolationError):
        Group.members.link(session, group, member)
    session.rollback()
    session.close()


def test_pivot_foreign_keys_win_over_supplied_values(tmp_path, caplog):
    caplog.set_level(logging.WARNING, logger="relforge.core.relations")
    session = make_session(tmp_path)
    with session.transaction():
        group = session.insert(Group(name="Admins"))
        member = session.insert(Member(name="Alice"))
        extras = Group.members.link(session, group, member, {"member_id": 99, "role": "guest"})

    assert extras == {"group_id": group.id, "member_id": member.id, "role": "guest"}
    assert "member_id" in caplog.text
    session.close()


def test_pivot_rows_roll_back_with_transaction(tmp_path):
    session = make_session(tmp_path)
    session.begin()
    group = session.insert(Group(name="Admins"))
    member = session.insert(Member(name="Alice"))
    Group.members.link(session, group, member)
    session.rollback()

    assert session.count("group_member") == 0
    assert session.count("groups") == 0
    session.close()
