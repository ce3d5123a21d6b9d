"""
Schema DDL utilities.
"""

from .builder import SchemaBuilder

__all__ = ["SchemaBuilder"]
