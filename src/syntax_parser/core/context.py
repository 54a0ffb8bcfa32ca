"""Parsing context for the syntax parser service."""

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Optional

from ..parsing.grammar_loader import GrammarLoader
from ..parsing.parser_pool import ParserPool
from ..parsing.runtime import RuntimeBootstrapper
from ..utils.parsing_config import ParsingConfig, get_parsing_config

logger = logging.getLogger(__name__)


@dataclass
class ParsingContext:
    """Shared state of one parsing runtime.

    This context replaces process-wide globals: everything that must exist
    at most once (boot state, grammar cache, parser pool) lives here, and
    call sites receive the context by reference. Build one with create()
    and share it; two contexts never share caches.

    Attributes:
        config: Parsing configuration
        bootstrapper: Engine boot state
        grammar_loader: Grammar cache and loader
        parser_pool: Pool of one parser per language
        io_executor: ThreadPoolExecutor for blocking work (None uses the loop default)
    """

    config: ParsingConfig
    bootstrapper: RuntimeBootstrapper
    grammar_loader: GrammarLoader
    parser_pool: ParserPool
    io_executor: Optional[ThreadPoolExecutor] = None

    @classmethod
    def create(cls, config: Optional[ParsingConfig] = None) -> "ParsingContext":
        """
        Build a context and all of its components.

        Args:
            config: Parsing configuration (defaults to the environment-based one)

        Returns:
            A fresh context with nothing booted or loaded yet
        """
        config = config or get_parsing_config()

        io_executor = None
        if config.io_workers > 0:
            io_executor = ThreadPoolExecutor(
                max_workers=config.io_workers, thread_name_prefix="syntax-parser-io"
            )
            logger.info(
                f"Initialized ThreadPoolExecutor with {config.io_workers} workers"
            )

        bootstrapper = RuntimeBootstrapper(config, executor=io_executor)
        grammar_loader = GrammarLoader(
            bootstrapper, config.grammar_locators, executor=io_executor
        )
        parser_pool = ParserPool(bootstrapper, grammar_loader)

        return cls(
            config=config,
            bootstrapper=bootstrapper,
            grammar_loader=grammar_loader,
            parser_pool=parser_pool,
            io_executor=io_executor,
        )

    async def __aenter__(self):
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit with executor cleanup."""
        self.close()

    def close(self):
        """Shut down the executor and release its threads."""
        if self.io_executor:
            try:
                logger.debug("Shutting down ThreadPoolExecutor")
                self.io_executor.shutdown(wait=True, cancel_futures=False)
                self.io_executor = None
                logger.info("ThreadPoolExecutor shutdown completed")
            except Exception as e:
                logger.error(f"Error shutting down ThreadPoolExecutor: {e}")
