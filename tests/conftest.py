"""
Pytest configuration and fixtures for syntax parser tests.
"""
import pytest
import os
import sys
from pathlib import Path

# Add src to path for all tests
src_path = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(src_path))

from syntax_parser.core.context import ParsingContext  # noqa: E402
from syntax_parser.parsing.service import ParseService  # noqa: E402
from syntax_parser.utils.parsing_config import (  # noqa: E402
    ParsingConfig,
    reset_parsing_config,
)

ENV_PREFIXES = ("PARSER_", "GRAMMAR_LOCATOR_")


@pytest.fixture(autouse=True)
def setup_test_environment():
    """Run every test without parser overrides from the outer environment."""
    original_env = {
        key: os.environ.pop(key) for key in list(os.environ) if key.startswith(ENV_PREFIXES)
    }
    reset_parsing_config()

    yield

    for key in list(os.environ):
        if key.startswith(ENV_PREFIXES):
            os.environ.pop(key)
    os.environ.update(original_env)
    reset_parsing_config()


@pytest.fixture
def parsing_config():
    """Configuration without boot backoff, so failure tests stay fast."""
    return ParsingConfig(boot_retry_attempts=1, boot_retry_wait=0.0, io_workers=4)


@pytest.fixture
def parsing_context(parsing_config):
    """A fresh parsing context, closed after the test."""
    context = ParsingContext.create(parsing_config)
    yield context
    context.close()


@pytest.fixture
def parse_service(parsing_context):
    """A parse service over a fresh context."""
    return ParseService(parsing_context)


@pytest.fixture
def sample_sources():
    """Small, syntactically valid snippets for every supported language."""
    return {
        "python": ("def f():\n    pass\n", "function_definition"),
        "javascript": ("function greet(name) {\n  return name;\n}\n", "function_declaration"),
        "typescript": ("let total: number = 1;\n", "lexical_declaration"),
        "java": ("class Greeter {\n  void greet() {}\n}\n", "class_declaration"),
    }
