"""
Utility helpers for running the relforge blog example end-to-end.
"""

from __future__ import annotations

from typing import Any, Dict, List

from relforge.persistence import Database
from relforge.schema import SchemaBuilder

from .factories import AuthorFactory
from .models import Author, Post, Tag


def bootstrap_database(dsn: str) -> Database:
    """
    Create the blog schema behind ``dsn`` and return a database handle.
    """

    database = Database(dsn)
    with database.session() as session:
        SchemaBuilder(session.dialect).create_all(session, Author, Post, Tag)
    return database


def seed_sample_data(database: Database) -> Author:
    """
    Create one author with two published posts, each carrying two tags.
    """

    return (
        AuthorFactory.build()
        .merge({"name": "Alice Carter", "bio": "Editor-in-chief."})
        .with_("posts", 2, [{"title": "Introducing relforge"}, {"title": "Factories in depth"}])
        .create(database=database)
    )


def fetch_feed(database: Database) -> List[Dict[str, Any]]:
    """
    Published posts with their author name and tag names in pivot order.
    """

    with database.session() as session:
        authors = {row["id"]: row["name"] for row in session.query("authors")}
        tags = {row["id"]: row["name"] for row in session.query("tags")}
        feed: List[Dict[str, Any]] = []
        for post in session.query("posts", published=True):
            links = sorted(
                session.query("post_tag", post_id=post["id"]), key=lambda row: row["position"]
            )
            feed.append(
                {
                    "title": post["title"],
                    "author_name": authors[post["author_id"]],
                    "tags": [tags[link["tag_id"]] for link in links],
                }
            )
    return feed


def run_demo(dsn: str) -> List[Dict[str, Any]]:
    database = bootstrap_database(dsn)
    seed_sample_data(database)
    return fetch_feed(database)


if __name__ == "__main__":
    for entry in run_demo("sqlite:///blog_demo.db"):
        print(f"{entry['title']} by {entry['author_name']} [{', '.join(entry['tags'])}]")
