"""Fluent statement builders."""
from chainsql.builder.base import AbstractBuilder, ClauseList
from chainsql.builder.delete import DeleteBuilder
from chainsql.builder.insert import InsertBuilder
from chainsql.builder.select import SelectBuilder
from chainsql.builder.update import UpdateBuilder

__all__ = [
    "AbstractBuilder",
    "ClauseList",
    "DeleteBuilder",
    "InsertBuilder",
    "SelectBuilder",
    "UpdateBuilder",
]
