"""
Parser Pool

Keeps exactly one reusable tree-sitter parser per language. Parsers are built
lazily from the language's grammar the first time the language is requested
and stay in the pool for the life of the context.

A tree-sitter parser carries mutable state between parses, so access to a
pooled parser goes through a per-language lease: parses for the same
language run one at a time while different languages proceed concurrently.
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import Any, AsyncIterator, Dict, List

from ..core.exceptions import GrammarLoadFailure
from .grammar_loader import GrammarLoader
from .runtime import RuntimeBootstrapper

# Configure logging
logger = logging.getLogger(__name__)


@dataclass
class PooledParser:
    """A parser together with the lock serializing its use."""

    language: str
    parser: Any
    lock: asyncio.Lock = field(default_factory=asyncio.Lock, repr=False)
    leases: int = 0


class ParserPool:
    """
    Pool of parsers, one per language.

    The pool:
    - Builds a parser on first request for a language
    - Returns the same parser for every later request
    - Serializes use of a parser through lease()
    - Never caches a parser whose construction failed
    """

    def __init__(self, bootstrapper: RuntimeBootstrapper, grammar_loader: GrammarLoader):
        """Initialize the pool with the bootstrapper and grammar loader it builds on."""
        self.bootstrapper = bootstrapper
        self.grammar_loader = grammar_loader
        self._pool: Dict[str, PooledParser] = {}

        # Statistics for monitoring
        self.stats = {
            "parsers_created": 0,
            "cache_hits": 0,
            "cache_misses": 0,
        }

    def pooled_languages(self) -> List[str]:
        return sorted(self._pool)

    async def _get_pooled(self, language: str) -> PooledParser:
        self.grammar_loader.validate_language(language)

        pooled = self._pool.get(language)
        if pooled is not None:
            self.stats["cache_hits"] += 1
            logger.debug(f"Parser pool hit for language: {language}")
            return pooled

        self.stats["cache_misses"] += 1
        grammar = await self.grammar_loader.load_language(language)

        # Another task may have filled the slot while the grammar was loading
        pooled = self._pool.get(language)
        if pooled is not None:
            return pooled

        pooled = PooledParser(language=language, parser=self._create_parser(language, grammar))
        self._pool[language] = pooled
        self.stats["parsers_created"] += 1
        logger.debug(f"Created new parser for language: {language}")
        return pooled

    def _create_parser(self, language: str, grammar: Any) -> Any:
        """Construct an engine parser bound to the grammar."""
        engine = self.bootstrapper.engine
        try:
            try:
                return engine.Parser(grammar)
            except TypeError:
                # Older bindings take the language as an attribute
                parser = engine.Parser()
                parser.language = grammar
                return parser
        except Exception as e:
            logger.error(f"Failed to create parser for language {language}: {e}")
            raise GrammarLoadFailure(
                f"Could not bind a parser to the {language} grammar: {e}",
                language=language,
                locator=self.grammar_loader.grammar_locators.get(language),
                details={"stage": "parser_construction"},
            ) from e

    async def get_parser(self, language: str) -> Any:
        """
        Get the pooled parser for the specified language.

        Args:
            language: The programming language name

        Returns:
            The engine Parser bound to the language's grammar

        Raises:
            UnsupportedLanguage: If the language has no grammar locator
            BootFailure: If the engine could not be booted
            GrammarLoadFailure: If the grammar or parser could not be built
        """
        pooled = await self._get_pooled(language)
        return pooled.parser

    @asynccontextmanager
    async def lease(self, language: str) -> AsyncIterator[Any]:
        """
        Borrow the pooled parser for exclusive use.

        Usage:
            async with pool.lease("python") as parser:
                tree = parser.parse(source)
        """
        pooled = await self._get_pooled(language)
        async with pooled.lock:
            pooled.leases += 1
            yield pooled.parser

    def get_cache_info(self) -> Dict[str, Any]:
        """
        Get information about the parser pool.

        Returns:
            Dictionary with pool information
        """
        return {
            "pool_size": len(self._pool),
            "pooled_languages": self.pooled_languages(),
            "leases": {language: p.leases for language, p in self._pool.items()},
            "hit_rate": (
                self.stats["cache_hits"]
                / max(1, self.stats["cache_hits"] + self.stats["cache_misses"])
            ),
        }
