"""
Blog-style sample application showcasing relforge factories.
"""

from .demo import bootstrap_database, fetch_feed, run_demo, seed_sample_data
from .factories import AuthorFactory, PostFactory, TagFactory
from .models import Author, Post, Tag

__all__ = [
    "Author",
    "AuthorFactory",
    "Post",
    "PostFactory",
    "Tag",
    "TagFactory",
    "bootstrap_database",
    "fetch_feed",
    "run_demo",
    "seed_sample_data",
]
