import itertools
import logging

import pytest

from relforge.adapters import ConstraintViolationError
from relforge.core import ForeignKey, HasMany, Model, StringField
from relforge.factory import FactoryModel
from relforge.persistence import Database
from relforge.schema import SchemaBuilder

_names = itertools.count(1)


class Writer(Model):
    name = StringField(nullable=False, unique=True)
    articles = HasMany(lambda: Article)


class Article(Model):
    title = StringField(nullable=False)
    writer_id = ForeignKey(Writer)
    comments = HasMany(lambda: Comment)


class Comment(Model):
    body = StringField(nullable=False)
    article_id = ForeignKey(Article)


@pytest.fixture
def database(tmp_path):
    database = Database(f"sqlite:///{tmp_path / 'has_many.db'}")
    with database.session() as session:
        SchemaBuilder(session.dialect).create_all(session, Writer, Article, Comment)
    return database


def count_rows(database, table):
    with database.session() as session:
        return session.count(table)


def comment_factory():
    return FactoryModel(Comment, lambda parent, attributes: Comment(body=f"On {parent.title}"))


def article_factory(comments=None):
    return FactoryModel(
        Article, lambda parent, attributes: Article(title=attributes.get("title", "Draft"))
    ).related("comments", lambda: comments or comment_factory())


def writer_factory(database, articles=None):
    return FactoryModel(
        Writer, lambda parent, attributes: Writer(name=f"writer-{next(_names)}"), database=database
    ).related("articles", lambda: articles or article_factory())


@pytest.mark.parametrize("count", [0, 1, 2, 5])
def test_make_produces_requested_count(database, count):
    writer = writer_factory(database).build().with_("articles", count).make()

    assert len(writer.articles) == count
    assert all(isinstance(article, Article) for article in writer.articles)
    assert all(article.is_persisted is False for article in writer.articles)
    assert all(article.writer_id is None for article in writer.articles)
    assert count_rows(database, "articles") == 0


@pytest.mark.parametrize("count", [0, 1, 2, 5])
def test_create_persists_requested_count(database, count):
    writer = writer_factory(database).build().with_("articles", count).create()

    assert writer.is_persisted is True
    assert len(writer.articles) == count
    for article in writer.articles:
        assert article.is_persisted is True
        assert article.id is not None
        assert article.writer_id == writer.id
    assert count_rows(database, "writers") == 1
    assert count_rows(database, "articles") == count


def test_without_attachment_relation_is_empty(database):
    writer = writer_factory(database).build().create()

    assert writer.articles == []
    assert count_rows(database, "articles") == 0


def test_customizer_list_applies_by_position(database):
    writer = (
        writer_factory(database)
        .build()
        .with_("articles", 3, [{"title": "First"}, {"title": "Second"}])
        .create()
    )

    assert [article.title for article in writer.articles] == ["First", "Second", "Draft"]


def test_nested_relations_are_persisted_at_every_depth(database):
    articles = article_factory().build().with_("comments", 2)

    writer = writer_factory(database, articles).build().with_("articles", 2).create()

    assert writer.is_persisted is True
    for article in writer.articles:
        assert article.is_persisted is True
        assert article.writer_id == writer.id
        assert len(article.comments) == 2
        for comment in article.comments:
            assert comment.is_persisted is True
            assert comment.article_id == article.id
            assert comment.body == f"On {article.title}"
    assert count_rows(database, "comments") == 4


def test_inserts_run_depth_first_left_to_right(database):
    order = []
    comments = comment_factory().after("create", lambda comment, session: order.append(comment))
    articles = (
        article_factory(comments)
        .after("create", lambda article, session: order.append(article))
        .build()
        .with_("comments", 2)
    )
    factory = writer_factory(database, articles).after(
        "create", lambda writer, session: order.append(writer)
    )

    writer = factory.build().with_("articles", 2).create()

    first, second = writer.articles
    assert order == [writer, first, *first.comments, second, *second.comments]


def test_nested_failure_rolls_back_whole_graph(database, caplog):
    caplog.set_level(logging.WARNING, logger="relforge.factory.persister")
    built = []
    broken_comments = FactoryModel(Comment, lambda parent, attributes: Comment())
    articles = article_factory(broken_comments).build().with_("comments", 1)
    factory = writer_factory(database, articles).after("make", built.append)

    with pytest.raises(ConstraintViolationError):
        factory.build().with_("articles", 2).create()

    assert count_rows(database, "writers") == 0
    assert count_rows(database, "articles") == 0
    assert count_rows(database, "comments") == 0
    (writer,) = built
    instances = [writer, *writer.articles, *writer.articles[0].comments]
    assert all(instance.is_persisted is False for instance in instances)
    assert all(instance.id is None for instance in instances)
    assert any("Rolling back graph of Writer" in record.message for record in caplog.records)


def test_create_many_is_all_or_nothing(database):
    factory = FactoryModel(Writer, lambda parent, attributes: Writer(), database=database)

    with pytest.raises(ConstraintViolationError):
        factory.build().merge([{"name": "same"}, {"name": "same"}]).create_many(2)

    assert count_rows(database, "writers") == 0


def test_create_many_persists_every_root(database):
    writers = writer_factory(database).build().with_("articles", 2).create_many(3)

    assert len(writers) == 3
    assert len({writer.id for writer in writers}) == 3
    assert count_rows(database, "writers") == 3
    assert count_rows(database, "articles") == 6
