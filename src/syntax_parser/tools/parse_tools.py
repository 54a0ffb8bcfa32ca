"""
Parsing MCP Tools.

This module contains MCP tools for parsing source code into syntax trees,
detecting file languages and reporting the state of the parsing runtime.
"""

import json
import logging
import os
from typing import Any, Dict

from mcp.server.fastmcp import Context

from ..core.exceptions import SyntaxParserError, format_error_details
from ..parsing.service import ParseService

logger = logging.getLogger(__name__)

DEFAULT_MAX_DEPTH = 6


def _get_service(ctx: Context) -> ParseService:
    return ctx.request_context.lifespan_context


def validate_source_path(file_path: str, max_size_bytes: int) -> Dict[str, Any]:
    """Validate a source file path and return error info if invalid."""
    if not file_path or not isinstance(file_path, str):
        return {"valid": False, "error": "File path is required"}

    if not os.path.isfile(file_path):
        return {"valid": False, "error": f"File not found: {file_path}"}

    size = os.path.getsize(file_path)
    if size > max_size_bytes:
        return {
            "valid": False,
            "error": f"File too large: {size} bytes (limit {max_size_bytes})",
        }

    return {"valid": True, "size": size}


def _tree_response(tree, max_depth: int, **extra) -> str:
    response = {
        "success": True,
        **extra,
        "byte_length": len(tree.source),
        "error_count": len(tree.error_nodes()),
        **tree.to_dict(max_depth),
    }
    return json.dumps(response, indent=2)


def _error_response(error: Exception, **extra) -> str:
    if isinstance(error, SyntaxParserError):
        details = format_error_details(error)
    else:
        details = {"error_type": error.__class__.__name__, "message": str(error)}
    return json.dumps({"success": False, **extra, "error": details}, indent=2)


async def parse_code(
    ctx: Context, code: str, language: str, max_depth: int = DEFAULT_MAX_DEPTH
) -> str:
    """
    Parse a snippet of source code into a syntax tree outline.

    Args:
        ctx: The MCP server provided context
        code: Source code to parse
        language: One of the supported languages (java, python, typescript, javascript)
        max_depth: How many levels of the tree to include in the outline

    Returns:
        JSON string with the tree outline, or error details
    """
    service = _get_service(ctx)
    try:
        tree = await service.parse(code, language)
        return _tree_response(tree, max_depth)
    except SyntaxParserError as e:
        logger.warning(f"parse_code failed for {language}: {e.message}")
        return _error_response(e, language=language)


async def parse_source_file(
    ctx: Context, file_path: str, max_depth: int = DEFAULT_MAX_DEPTH
) -> str:
    """
    Parse a source file from disk, detecting its language from the extension.

    Unsupported file types are skipped rather than reported as errors.

    Args:
        ctx: The MCP server provided context
        file_path: Path of the file to parse
        max_depth: How many levels of the tree to include in the outline

    Returns:
        JSON string with the tree outline, a skip notice, or error details
    """
    service = _get_service(ctx)

    language = service.detect_language(file_path)
    if language is None:
        return json.dumps(
            {
                "success": True,
                "skipped": True,
                "file_path": file_path,
                "reason": "Unsupported file type",
            },
            indent=2,
        )

    validation = validate_source_path(
        file_path, service.context.config.max_file_size_bytes
    )
    if not validation["valid"]:
        return json.dumps(
            {"success": False, "file_path": file_path, "error": validation["error"]},
            indent=2,
        )

    try:
        with open(file_path, "rb") as f:
            source = f.read()
    except OSError as e:
        return _error_response(e, file_path=file_path)

    try:
        tree = await service.parse_file(source, file_path)
        return _tree_response(tree, max_depth, file_path=file_path)
    except SyntaxParserError as e:
        logger.warning(f"parse_source_file failed for {file_path}: {e.message}")
        return _error_response(e, file_path=file_path)


async def detect_file_language(ctx: Context, file_path: str) -> str:
    """
    Detect the language a file would be parsed as.

    Args:
        ctx: The MCP server provided context
        file_path: Path or name of the file

    Returns:
        JSON string with the detected language (null if unsupported)
    """
    service = _get_service(ctx)
    language = service.detect_language(file_path)
    return json.dumps(
        {"file_path": file_path, "language": language, "supported": language is not None},
        indent=2,
    )


async def get_parser_status(ctx: Context) -> str:
    """
    Report the parsing runtime's boot state, loaded grammars and statistics.

    Args:
        ctx: The MCP server provided context

    Returns:
        JSON string with the runtime status
    """
    service = _get_service(ctx)
    return json.dumps(service.get_status(), indent=2)
