"""
Data models for the relforge blog example.
"""

from __future__ import annotations

from relforge.core import BooleanField, ForeignKey, HasMany, ManyToMany, Model, StringField


class Author(Model):
    name = StringField(nullable=False, max_length=120)
    email = StringField(nullable=False, unique=True, max_length=255)
    bio = StringField(default="", nullable=True)
    posts = HasMany(lambda: Post)


class Post(Model):
    title = StringField(nullable=False, max_length=200)
    body = StringField(nullable=False)
    published = BooleanField(default=False)
    author = ForeignKey(Author, db_column="author_id")
    tags = ManyToMany(lambda: Tag, pivot_columns={"position": "INTEGER"})


class Tag(Model):
    name = StringField(nullable=False, unique=True, max_length=80)
