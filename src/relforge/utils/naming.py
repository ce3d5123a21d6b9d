"""
Naming utilities for relforge.
"""

import re


_FIRST_CAP_RE = re.compile("(.)([A-Z][a-z]+)")
_ALL_CAP_RE = re.compile("([a-z0-9])([A-Z])")
_ES_SUFFIXES = ("s", "x", "z", "ch", "sh")


def camel_to_snake(name: str) -> str:
    """
    Convert ``CamelCase`` names to ``snake_case``.
    """
    step1 = _FIRST_CAP_RE.sub(r"\1_\2", name)
    snake = _ALL_CAP_RE.sub(r"\1_\2", step1).lower()
    return snake


def pluralize(word: str) -> str:
    """
    Naive English pluralization used for default table names.
    """
    if not word:
        return word
    if word.endswith("y") and len(word) > 1 and word[-2] not in "aeiou":
        return word[:-1] + "ies"
    if word.endswith(_ES_SUFFIXES):
        return word + "es"
    return word + "s"


def table_name_for(class_name: str) -> str:
    return pluralize(camel_to_snake(class_name))


def foreign_key_for(class_name: str, key: str = "id") -> str:
    return f"{camel_to_snake(class_name)}_{key}"
