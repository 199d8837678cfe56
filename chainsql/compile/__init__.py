"""chainsql compilation layer: clauses → dialect-specific parameterized SQL."""
from chainsql.compile.base import Grammar
from chainsql.compile.compiler import CompiledSQL, SqlCompiler
from chainsql.compile.mysql import MySQLGrammar
from chainsql.compile.postgres import PostgresGrammar
from chainsql.compile.registry import GrammarFactory
from chainsql.compile.sqlite import SQLiteGrammar

GrammarFactory.register_class("mysql", MySQLGrammar, "mariadb")
GrammarFactory.register_class("postgresql", PostgresGrammar, "postgres", "pgsql")
GrammarFactory.register_class("sqlite", SQLiteGrammar, "sqlite3")

__all__ = [
    "CompiledSQL",
    "Grammar",
    "GrammarFactory",
    "MySQLGrammar",
    "PostgresGrammar",
    "SQLiteGrammar",
    "SqlCompiler",
]
