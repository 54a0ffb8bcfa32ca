"""
Custom exceptions for the parsing service.

This module defines the hierarchy of exceptions raised while booting the
parsing engine, loading grammars and parsing source code. Caller errors
(unsupported languages) and resource errors (boot, grammar loading) are kept
apart so callers can decide whether a retry makes sense.
"""

from typing import Optional


class SyntaxParserError(Exception):
    """Base exception for all parsing service errors."""

    def __init__(self, message: str, details: dict = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class BootFailure(SyntaxParserError):
    """Raised when the parsing engine could not be booted."""

    def __init__(
        self, message: str, engine_module: str = None, details: dict = None
    ):
        super().__init__(message, details)
        self.engine_module = engine_module


class UnsupportedLanguage(SyntaxParserError):
    """Raised when a language has no grammar locator configured."""

    def __init__(self, message: str, language: Optional[str] = None):
        super().__init__(message)
        self.language = language


class GrammarLoadFailure(SyntaxParserError):
    """Raised when the grammar for one language could not be fetched or compiled."""

    def __init__(
        self,
        message: str,
        language: str = None,
        locator: str = None,
        details: dict = None,
    ):
        super().__init__(message, details)
        self.language = language
        self.locator = locator


class ParseFailure(SyntaxParserError):
    """Raised when the engine could not produce any tree for the input.

    Source code with syntax errors is not a failure: it yields a tree
    containing error nodes.
    """

    def __init__(self, message: str, language: str = None, details: dict = None):
        super().__init__(message, details)
        self.language = language


# Exception mapping for easier categorization
CALLER_ERRORS = (UnsupportedLanguage,)
RESOURCE_ERRORS = (BootFailure, GrammarLoadFailure)


def categorize_exception(exception: Exception) -> str:
    """
    Categorize an exception for error reporting and handling.

    Args:
        exception: The exception to categorize

    Returns:
        Category name as string
    """
    if isinstance(exception, CALLER_ERRORS):
        return "caller"
    elif isinstance(exception, RESOURCE_ERRORS):
        return "resource"
    elif isinstance(exception, ParseFailure):
        return "parse"
    elif isinstance(exception, SyntaxParserError):
        return "syntax_parser"
    else:
        return "unknown"


def format_error_details(exception: SyntaxParserError) -> dict:
    """
    Format exception details for structured error reporting.

    Args:
        exception: SyntaxParserError instance

    Returns:
        Dictionary with formatted error details
    """
    details = {
        "error_type": exception.__class__.__name__,
        "message": exception.message,
        "category": categorize_exception(exception),
    }

    if getattr(exception, "language", None):
        details["language"] = exception.language
    if getattr(exception, "locator", None):
        details["locator"] = exception.locator
    if getattr(exception, "engine_module", None):
        details["engine_module"] = exception.engine_module
    if exception.details:
        details["additional_details"] = exception.details

    return details
