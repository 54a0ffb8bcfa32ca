"""
Configuration for the parsing service.

This module provides the grammar locator table, the engine module override,
boot retry tuning and executor sizing, read from environment variables with
sensible defaults.
"""

import os
import logging
from dataclasses import dataclass, field
from typing import Dict, Optional, Tuple

from dotenv import load_dotenv

# Load environment variables
load_dotenv()

logger = logging.getLogger(__name__)

# Grammar locators: "<module>:<attribute>" of a tree-sitter grammar package.
# Adding a language means adding a row here.
DEFAULT_GRAMMAR_LOCATORS: Dict[str, str] = {
    "java": "tree_sitter_java:language",
    "python": "tree_sitter_python:language",
    "typescript": "tree_sitter_typescript:language_typescript",
    "javascript": "tree_sitter_javascript:language",
}

DEFAULT_ENGINE_MODULE = "tree_sitter"

GRAMMAR_LOCATOR_ENV_PREFIX = "GRAMMAR_LOCATOR_"


@dataclass
class ParsingConfig:
    """
    Configuration class for the parsing runtime.

    Provides environment variable-based configuration with sensible defaults
    for booting the engine, loading grammars and sizing the executor.
    """

    # Engine boot
    engine_module: str = DEFAULT_ENGINE_MODULE
    boot_retry_attempts: int = 3  # Attempts within a single boot operation
    boot_retry_wait: float = 0.5  # Exponential backoff multiplier in seconds

    # Grammars
    grammar_locators: Dict[str, str] = field(
        default_factory=lambda: dict(DEFAULT_GRAMMAR_LOCATORS)
    )
    preload_languages: Tuple[str, ...] = ()

    # Executor for blocking work (0 uses the event loop's default executor)
    io_workers: int = 4

    # Largest source file the file-based tools will read
    max_file_size_bytes: int = 1_000_000

    def __post_init__(self):
        """Validate configuration parameters after initialization."""
        if self.boot_retry_attempts < 1:
            logger.warning(
                f"Boot retry attempts must be at least 1, got {self.boot_retry_attempts}"
            )
            self.boot_retry_attempts = 1

        if self.boot_retry_wait < 0:
            logger.warning(
                f"Boot retry wait must not be negative, got {self.boot_retry_wait}"
            )
            self.boot_retry_wait = 0.0

        if self.io_workers < 0:
            logger.warning(f"I/O workers must not be negative, got {self.io_workers}")
            self.io_workers = 0

        unknown = [
            lang for lang in self.preload_languages if lang not in self.grammar_locators
        ]
        if unknown:
            logger.warning(f"Ignoring preload languages without a locator: {unknown}")
            self.preload_languages = tuple(
                lang for lang in self.preload_languages if lang in self.grammar_locators
            )

        logger.debug(
            f"Parsing config initialized: engine={self.engine_module}, "
            f"languages={sorted(self.grammar_locators)}, I/O workers={self.io_workers}"
        )


def _grammar_locators_from_env() -> Dict[str, str]:
    """Default locators updated with GRAMMAR_LOCATOR_<LANG> variables."""
    locators = dict(DEFAULT_GRAMMAR_LOCATORS)
    for key, value in os.environ.items():
        if key.startswith(GRAMMAR_LOCATOR_ENV_PREFIX) and value.strip():
            language = key[len(GRAMMAR_LOCATOR_ENV_PREFIX) :].lower()
            locators[language] = value.strip()
    return locators


def load_parsing_config() -> ParsingConfig:
    """
    Load parsing configuration from environment variables with fallback defaults.

    Environment Variables:
        PARSER_ENGINE_MODULE: Module providing Parser and Language (default: tree_sitter)
        PARSER_BOOT_RETRY_ATTEMPTS: Attempts per boot operation (default: 3)
        PARSER_BOOT_RETRY_WAIT: Backoff multiplier in seconds (default: 0.5)
        PARSER_IO_WORKERS: ThreadPoolExecutor workers, 0 for the loop default (default: 4)
        PARSER_PRELOAD_LANGUAGES: Comma-separated languages to load at startup
        PARSER_MAX_FILE_SIZE: Largest file read by the file tools in bytes (default: 1000000)
        GRAMMAR_LOCATOR_<LANG>: Grammar locator override, e.g. tree_sitter_python:language

    Returns:
        ParsingConfig: Configured parsing parameters
    """
    engine_module = os.getenv("PARSER_ENGINE_MODULE", DEFAULT_ENGINE_MODULE)
    boot_retry_attempts = int(os.getenv("PARSER_BOOT_RETRY_ATTEMPTS", "3"))
    boot_retry_wait = float(os.getenv("PARSER_BOOT_RETRY_WAIT", "0.5"))
    io_workers = int(os.getenv("PARSER_IO_WORKERS", "4"))
    max_file_size_bytes = int(os.getenv("PARSER_MAX_FILE_SIZE", "1000000"))

    preload_languages = tuple(
        lang.strip().lower()
        for lang in os.getenv("PARSER_PRELOAD_LANGUAGES", "").split(",")
        if lang.strip()
    )

    config = ParsingConfig(
        engine_module=engine_module,
        boot_retry_attempts=boot_retry_attempts,
        boot_retry_wait=boot_retry_wait,
        grammar_locators=_grammar_locators_from_env(),
        preload_languages=preload_languages,
        io_workers=io_workers,
        max_file_size_bytes=max_file_size_bytes,
    )

    logger.info(
        f"Loaded parsing configuration: engine={config.engine_module}, "
        f"languages={len(config.grammar_locators)}, I/O={config.io_workers}, "
        f"preload={list(config.preload_languages)}"
    )

    return config


# Global configuration instance
_parsing_config: Optional[ParsingConfig] = None


def get_parsing_config() -> ParsingConfig:
    """
    Get global parsing configuration instance (singleton pattern).

    Returns:
        ParsingConfig: Global configuration instance
    """
    global _parsing_config
    if _parsing_config is None:
        _parsing_config = load_parsing_config()
    return _parsing_config


def reset_parsing_config():
    """Reset the global parsing configuration. Useful for testing."""
    global _parsing_config
    _parsing_config = None
    logger.debug("Parsing configuration reset")
