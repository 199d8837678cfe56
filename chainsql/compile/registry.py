"""Grammar registry (Open/Closed Principle).

``GrammarFactory``
    Central registry for :class:`~chainsql.compile.base.Grammar`
    implementations.  Register a grammar once under a canonical name and any
    number of aliases; builders look it up by dialect name.

Usage::

    from chainsql.compile.registry import GrammarFactory

    @GrammarFactory.register("oracle", "oci")
    class OracleGrammar(Grammar):
        ...

Lookups are case-insensitive and ignore surrounding whitespace, so
``"PostgreSQL"``, ``" pgsql "`` and ``"postgres"`` all resolve to the same
grammar.  Grammars are stateless; one shared instance is handed out per
canonical name.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import ClassVar

from chainsql.compile.base import Grammar
from chainsql.errors import ConfigurationError


class GrammarFactory:
    """Registry mapping dialect names (and aliases) to :class:`Grammar` classes.

    Example::

        grammar = GrammarFactory.create("mariadb")   # -> MySQLGrammar
    """

    _grammars: ClassVar[dict[str, type[Grammar]]] = {}
    _aliases: ClassVar[dict[str, str]] = {}
    _instances: ClassVar[dict[str, Grammar]] = {}

    @classmethod
    def register(
        cls, name: str, *aliases: str
    ) -> Callable[[type[Grammar]], type[Grammar]]:
        """Decorator that registers a grammar class under ``name`` and ``aliases``.

        Args:
            name: The canonical dialect name (e.g. ``"postgresql"``).
            aliases: Alternative spellings resolving to ``name``.

        Returns:
            A decorator that registers and returns the grammar class.
        """

        def decorator(grammar_cls: type[Grammar]) -> type[Grammar]:
            cls.register_class(name, grammar_cls, *aliases)
            return grammar_cls

        return decorator

    @classmethod
    def register_class(
        cls, name: str, grammar_cls: type[Grammar], *aliases: str
    ) -> None:
        """Register a grammar class without using the decorator form.

        Args:
            name: The canonical dialect name.
            grammar_cls: The :class:`Grammar` subclass to register.
            aliases: Alternative spellings resolving to ``name``.
        """
        canonical = _normalize(name)
        cls._grammars[canonical] = grammar_cls
        cls._instances.pop(canonical, None)
        for alias in (canonical, *aliases):
            cls._aliases[_normalize(alias)] = canonical

    @classmethod
    def resolve(cls, name: str) -> str:
        """Return the canonical dialect name for ``name``.

        Raises:
            ConfigurationError: If ``name`` is not a registered dialect or alias.
        """
        canonical = cls._aliases.get(_normalize(name))
        if canonical is None:
            raise ConfigurationError(
                f"Unsupported database type: '{name}'. "
                f"Registered types: {cls.registered_targets()}.",
                setting="database_type",
            )
        return canonical

    @classmethod
    def create(cls, name: str) -> Grammar:
        """Return the grammar registered for ``name``.

        Args:
            name: A dialect name or alias, in any case.

        Returns:
            The shared :class:`Grammar` instance for that dialect.

        Raises:
            ConfigurationError: If no grammar is registered for ``name``.
        """
        canonical = cls.resolve(name)
        grammar = cls._instances.get(canonical)
        if grammar is None:
            grammar = cls._grammars[canonical]()
            cls._instances[canonical] = grammar
        return grammar

    @classmethod
    def registered_targets(cls) -> list[str]:
        """Return the sorted list of registered names and aliases."""
        return sorted(cls._aliases)


def _normalize(name: str) -> str:
    return name.strip().lower()
