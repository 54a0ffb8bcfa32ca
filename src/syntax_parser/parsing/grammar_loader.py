"""
Grammar loading for tree-sitter languages.

Resolves a language's grammar locator ("<module>:<attribute>"), compiles it
with the booted engine and caches the result for the life of the context.
Concurrent requests for the same uncached language share a single load, and
a failed load leaves no cache entry behind.
"""

import asyncio
import functools
import importlib
import logging
from concurrent.futures import Executor
from typing import Any, Dict, List, Optional, Set

from ..core.exceptions import GrammarLoadFailure, UnsupportedLanguage
from ..utils.singleflight import Singleflight
from .runtime import RuntimeBootstrapper

logger = logging.getLogger(__name__)


def parse_locator(locator: str):
    """
    Split a grammar locator into module and attribute names.

    Args:
        locator: Locator such as 'tree_sitter_typescript:language_typescript'

    Returns:
        Tuple of (module_name, attribute_name)

    Raises:
        ValueError: If the locator is malformed
    """
    module_name, _, attribute = locator.partition(":")
    if not module_name or not attribute:
        raise ValueError(
            f"Malformed grammar locator '{locator}', expected '<module>:<attribute>'"
        )
    return module_name, attribute


class GrammarLoader:
    """Loads and caches one grammar per language."""

    def __init__(
        self,
        bootstrapper: RuntimeBootstrapper,
        grammar_locators: Dict[str, str],
        executor: Optional[Executor] = None,
    ):
        self.bootstrapper = bootstrapper
        self.grammar_locators: Dict[str, str] = dict(grammar_locators)
        self._executor = executor
        self._grammar_cache: Dict[str, Any] = {}
        self._flight = Singleflight("grammars")

        self.stats = {
            "grammars_loaded": 0,
            "cache_hits": 0,
            "load_failures": 0,
        }

    def supported_languages(self) -> Set[str]:
        return set(self.grammar_locators)

    def is_supported(self, language: str) -> bool:
        return isinstance(language, str) and language in self.grammar_locators

    def validate_language(self, language: str) -> str:
        """
        Check that a language has a grammar locator.

        Raises:
            UnsupportedLanguage: If the language is unknown
        """
        if not self.is_supported(language):
            raise UnsupportedLanguage(
                f"Unsupported language: {language!r} "
                f"(supported: {', '.join(sorted(self.grammar_locators))})",
                language=language if isinstance(language, str) else None,
            )
        return language

    def is_loaded(self, language: str) -> bool:
        return language in self._grammar_cache

    def loaded_languages(self) -> List[str]:
        return sorted(self._grammar_cache)

    async def load_language(self, language: str) -> Any:
        """
        Get the compiled grammar for a language, loading it on first use.

        Args:
            language: Language identifier

        Returns:
            The engine's Language object for this language

        Raises:
            UnsupportedLanguage: If the language has no locator (no I/O is done)
            BootFailure: If the engine could not be booted
            GrammarLoadFailure: If the grammar could not be fetched or compiled
        """
        self.validate_language(language)

        grammar = self._grammar_cache.get(language)
        if grammar is not None:
            self.stats["cache_hits"] += 1
            logger.debug(f"Grammar cache hit for language: {language}")
            return grammar

        await self.bootstrapper.init_parser()
        return await self._flight.do(
            language, functools.partial(self._load_uncached, language)
        )

    async def _load_uncached(self, language: str) -> Any:
        # A load that finished just before this one started already cached it
        grammar = self._grammar_cache.get(language)
        if grammar is not None:
            return grammar

        locator = self.grammar_locators[language]
        engine = self.bootstrapper.engine
        loop = asyncio.get_running_loop()

        logger.debug(f"Loading grammar for {language} from {locator}")
        try:
            grammar = await loop.run_in_executor(
                self._executor, self._fetch_grammar, engine, locator
            )
        except Exception as e:
            self.stats["load_failures"] += 1
            logger.error(f"Failed to load grammar for {language} from {locator}: {e}")
            raise GrammarLoadFailure(
                f"Could not load grammar for {language}: {e}",
                language=language,
                locator=locator,
            ) from e

        self._grammar_cache[language] = grammar
        self.stats["grammars_loaded"] += 1
        logger.info(f"Grammar loaded for language: {language}")
        return grammar

    def _fetch_grammar(self, engine: Any, locator: str) -> Any:
        """Import the grammar package and compile it. Runs in the executor."""
        module_name, attribute = parse_locator(locator)
        module = importlib.import_module(module_name)
        language_pointer = getattr(module, attribute)()
        return engine.Language(language_pointer)
