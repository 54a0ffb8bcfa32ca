"""
Grammar initialization utilities for Tree-sitter parsing.

This module checks which grammar packages are installed and warms the
parsing runtime at startup, so the first request does not pay for booting
the engine and loading the commonly used grammars.
"""

import asyncio
import importlib.util
import logging
from typing import TYPE_CHECKING, Dict, Iterable, Optional

from ..core.exceptions import BootFailure, SyntaxParserError
from ..parsing.grammar_loader import parse_locator
from .parsing_config import DEFAULT_GRAMMAR_LOCATORS

if TYPE_CHECKING:
    from ..parsing.service import ParseService

logger = logging.getLogger(__name__)


def check_essential_grammars(
    grammar_locators: Optional[Dict[str, str]] = None,
) -> Dict[str, bool]:
    """
    Check if Tree-sitter grammar packages are installed, without loading them.

    Args:
        grammar_locators: Language to locator mapping (defaults to the built-in table)

    Returns:
        Dict mapping language names to availability status
    """
    locators = grammar_locators if grammar_locators is not None else DEFAULT_GRAMMAR_LOCATORS

    availability = {}
    for lang_name, locator in locators.items():
        try:
            module_name, _ = parse_locator(locator)
            available = importlib.util.find_spec(module_name) is not None
        except (ImportError, ValueError) as e:
            logger.debug(f"✗ {lang_name} grammar locator not resolvable: {e}")
            available = False

        availability[lang_name] = available
        if available:
            logger.debug(f"✓ {lang_name} Tree-sitter grammar available")
        else:
            logger.debug(f"✗ {lang_name} Tree-sitter grammar not available")

    return availability


async def initialize_grammars_if_needed(
    service: "ParseService", languages: Optional[Iterable[str]] = None
) -> bool:
    """
    Boot the parsing engine and preload grammars.

    Failures are logged and reported through the return value; they never
    raise, since parsing for the remaining languages stays usable and failed
    languages are retried on their next request.

    Args:
        service: The parse service to warm
        languages: Languages to preload (defaults to the configured preload list)

    Returns:
        True if the engine booted and every requested language loaded
    """
    config = service.context.config
    logger.info("Checking Tree-sitter grammar availability...")

    availability = check_essential_grammars(config.grammar_locators)
    available_count = sum(availability.values())
    total_count = len(availability)
    if available_count == total_count:
        logger.info(f"✓ All {total_count} Tree-sitter grammars available")
    else:
        missing = sorted(lang for lang, ok in availability.items() if not ok)
        logger.warning(
            f"Only {available_count}/{total_count} Tree-sitter grammars available, "
            f"missing: {missing}"
        )

    try:
        await service.init_parser()
    except BootFailure as e:
        logger.warning(f"Parsing engine could not be booted: {e.message}")
        return False

    languages = list(languages if languages is not None else config.preload_languages)
    if not languages:
        return True

    results = await asyncio.gather(
        *(service.context.parser_pool.get_parser(language) for language in languages),
        return_exceptions=True,
    )

    all_loaded = True
    for language, result in zip(languages, results):
        if isinstance(result, SyntaxParserError):
            all_loaded = False
            logger.warning(f"Could not preload {language}: {result.message}")
        elif isinstance(result, BaseException):
            raise result
        else:
            logger.info(f"✓ Preloaded parser for {language}")

    return all_loaded
