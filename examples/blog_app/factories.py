"""
Factories for the blog example models.
"""

from __future__ import annotations

import itertools

from relforge.factory import FactoryModel

from .models import Author, Post, Tag

_sequence = itertools.count(1)


def _author(parent, attributes):
    number = next(_sequence)
    return Author(name=f"Author {number}", email=f"author{number}@example.com")


def _post(parent, attributes):
    number = next(_sequence)
    return Post(title=f"Post {number}", body=f"Written by {parent.name if parent else 'nobody'}.")


def _tag(parent, attributes):
    return Tag(name=f"tag-{next(_sequence)}")


TagFactory = FactoryModel(Tag, _tag)

PostFactory = (
    FactoryModel(Post, _post)
    .related("tags", lambda: TagFactory)
    .state("published", lambda post: setattr(post, "published", True))
)

AuthorFactory = FactoryModel(Author, _author).related(
    "posts",
    # position is a pivot column of post_tag, not a Tag column
    lambda: PostFactory.build().apply("published").with_("tags", 2, [{"position": 1}, {"position": 2}]),
)
