"""
Parse service.

Public entry point of the parsing runtime. Turns source text into immutable
syntax trees, booting the engine on first use and routing every language to
its pooled parser.

Usage:
    service = ParseService.create()
    tree = await service.parse("def f():\\n    pass\\n", "python")
    tree = await service.parse_file(code, "src/app.tsx")  # None if unsupported
"""

import asyncio
import logging
from typing import TYPE_CHECKING, Any, Dict, Optional, Union

from ..core.exceptions import ParseFailure
from ..core.models import SyntaxTree
from .language_detector import detect_language

if TYPE_CHECKING:
    from ..core.context import ParsingContext
    from ..utils.parsing_config import ParsingConfig

logger = logging.getLogger(__name__)

SourceCode = Union[str, bytes]


class ParseService:
    """Parses source code with the parsers of a ParsingContext."""

    def __init__(self, context: "ParsingContext"):
        self.context = context
        self.stats = {
            "trees_built": 0,
            "parse_failures": 0,
            "files_skipped": 0,
        }

    @classmethod
    def create(cls, config: Optional["ParsingConfig"] = None) -> "ParseService":
        """Build a service on a fresh ParsingContext."""
        from ..core.context import ParsingContext

        return cls(ParsingContext.create(config))

    async def init_parser(self) -> None:
        """Boot the parsing engine ahead of the first parse."""
        await self.context.bootstrapper.init_parser()

    def detect_language(self, file_path: str) -> Optional[str]:
        return detect_language(file_path)

    async def parse(self, code: SourceCode, language: str) -> SyntaxTree:
        """
        Parse source code and return its syntax tree.

        Source with syntax errors still yields a tree; the offending regions
        show up as error or missing nodes and tree.has_error is set.

        Args:
            code: Source code as text (encoded as UTF-8) or bytes
            language: Language identifier, e.g. 'python'

        Returns:
            SyntaxTree whose root spans the whole input

        Raises:
            UnsupportedLanguage: If the language has no grammar (nothing is touched)
            BootFailure: If the engine could not be booted
            GrammarLoadFailure: If the language's grammar could not be loaded
            ParseFailure: If the engine produced no tree at all
        """
        self.context.grammar_loader.validate_language(language)
        source = self._to_bytes(code)

        if not self.context.bootstrapper.is_ready:
            await self.context.bootstrapper.init_parser()

        loop = asyncio.get_running_loop()
        executor = self.context.io_executor

        async with self.context.parser_pool.lease(language) as parser:
            future = loop.run_in_executor(executor, self._parse_source, parser, source)
            try:
                ts_tree = await asyncio.shield(future)
            except asyncio.CancelledError:
                # The lease is held until the worker thread is done with the parser
                await self._wait_for_worker(future)
                raise
            except Exception as e:
                self.stats["parse_failures"] += 1
                logger.error(f"Parser raised while parsing {language} source: {e}")
                raise ParseFailure(
                    f"Failed to parse code for language: {language}: {e}",
                    language=language,
                ) from e

        if ts_tree is None:
            self.stats["parse_failures"] += 1
            raise ParseFailure(
                f"Failed to parse code for language: {language}", language=language
            )

        tree = await loop.run_in_executor(
            executor, SyntaxTree.from_tree_sitter, language, source, ts_tree
        )
        self.stats["trees_built"] += 1
        if tree.has_error:
            logger.debug(f"Parsed {language} source with syntax errors")
        return tree

    async def parse_file(self, code: SourceCode, file_path: str) -> Optional[SyntaxTree]:
        """
        Parse a file by auto-detecting its language from the file path.

        Args:
            code: File contents
            file_path: Path used only for language detection

        Returns:
            SyntaxTree, or None if the file type is not supported
        """
        language = detect_language(file_path)
        if language is None:
            self.stats["files_skipped"] += 1
            logger.debug(f"Skipping unsupported file: {file_path}")
            return None
        return await self.parse(code, language)

    def get_status(self) -> Dict[str, Any]:
        """
        Get the state of the runtime and usage statistics.

        Returns:
            Dictionary with boot state, loaded grammars, pooled parsers and stats
        """
        context = self.context
        return {
            "state": context.bootstrapper.state.value,
            "engine_module": context.config.engine_module,
            "supported_languages": sorted(context.grammar_loader.supported_languages()),
            "loaded_grammars": context.grammar_loader.loaded_languages(),
            "pooled_parsers": context.parser_pool.pooled_languages(),
            "stats": {
                "boot": dict(context.bootstrapper.stats),
                "grammars": dict(context.grammar_loader.stats),
                "parsers": dict(context.parser_pool.stats),
                "service": dict(self.stats),
            },
        }

    @staticmethod
    def _parse_source(parser: Any, source: bytes) -> Any:
        """Run the engine parser. Runs in the executor."""
        return parser.parse(source)

    @staticmethod
    async def _wait_for_worker(future: "asyncio.Future[Any]") -> None:
        """Wait out an executor parse whose caller was cancelled."""
        while not future.done():
            try:
                await asyncio.wait([future])
            except asyncio.CancelledError:
                continue
        if not future.cancelled() and future.exception() is not None:
            logger.debug(f"Abandoned parse failed: {future.exception()}")

    @staticmethod
    def _to_bytes(code: SourceCode) -> bytes:
        if isinstance(code, str):
            return code.encode("utf-8")
        if isinstance(code, (bytes, bytearray, memoryview)):
            return bytes(code)
        raise TypeError(f"Source code must be str or bytes, got {type(code).__name__}")
