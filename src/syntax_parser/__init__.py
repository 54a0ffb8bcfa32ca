"""Language-aware parsing service built on tree-sitter.

Boots the tree-sitter engine once, loads grammars on demand, keeps one
parser per language and turns source text into immutable syntax trees.
"""

from .core.exceptions import (
    BootFailure,
    GrammarLoadFailure,
    ParseFailure,
    SyntaxParserError,
    UnsupportedLanguage,
)
from .core.models import RuntimeState, SyntaxNode, SyntaxTree
from .parsing.language_detector import detect_language
from .parsing.service import ParseService
from .core.context import ParsingContext
from .utils.parsing_config import ParsingConfig, load_parsing_config

__all__ = [
    "BootFailure",
    "GrammarLoadFailure",
    "ParseFailure",
    "ParseService",
    "ParsingConfig",
    "ParsingContext",
    "RuntimeState",
    "SyntaxNode",
    "SyntaxParserError",
    "SyntaxTree",
    "UnsupportedLanguage",
    "detect_language",
    "load_parsing_config",
]
