"""
Core application module for the syntax parser MCP server.

This module contains the central application setup logic including FastMCP
instance creation, lifespan management, and tool registration.
"""

import os
import logging
from contextlib import asynccontextmanager
from collections.abc import AsyncIterator

from mcp.server.fastmcp import FastMCP
from dotenv import load_dotenv

from .context import ParsingContext
from ..parsing.service import ParseService
from ..utils.grammar_initialization import initialize_grammars_if_needed
from ..utils.parsing_config import get_parsing_config

# Load environment variables
load_dotenv()

logger = logging.getLogger(__name__)


def configure_logging() -> None:
    """Configure root logging from the LOG_LEVEL environment variable."""
    log_level = os.getenv("LOG_LEVEL", "INFO").upper()
    logging.basicConfig(
        level=getattr(logging, log_level, logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


@asynccontextmanager
async def parsing_lifespan(server: FastMCP) -> AsyncIterator[ParseService]:
    """
    Manages the parsing runtime for the lifetime of the server.

    One ParsingContext is created per server, warmed up before the first
    request and shut down when the server stops.

    Args:
        server: The FastMCP server instance

    Yields:
        ParseService: The service shared by all tool calls
    """
    config = get_parsing_config()

    async with ParsingContext.create(config) as context:
        service = ParseService(context)
        try:
            if await initialize_grammars_if_needed(service):
                logger.info("Parsing runtime warmed up")
            else:
                logger.warning(
                    "Parsing runtime warm-up incomplete; failed steps are retried on demand"
                )
            yield service
        except Exception as e:
            logger.error(f"Error in application lifespan: {e}")
            raise
        finally:
            logger.debug("Application lifespan context manager exiting")


def create_app() -> FastMCP:
    """
    Create and configure the FastMCP application instance.

    Returns:
        FastMCP: Configured FastMCP server instance ready for tool registration
    """
    logger.info("Creating FastMCP application instance...")

    host = os.getenv("HOST", "0.0.0.0")
    port = int(os.getenv("PORT", "8052"))

    app = FastMCP(
        name="syntax-parser",
        instructions="MCP server that parses source code into tree-sitter syntax trees",
        host=host,
        port=port,
        lifespan=parsing_lifespan,
    )

    logger.info(f"FastMCP application created - Host: {host}, Port: {port}")
    return app


def register_tools(app: FastMCP) -> None:
    """
    Register all MCP tools with the application instance.

    Args:
        app: The FastMCP application instance to register tools with
    """
    logger.info("Registering MCP tools...")

    from ..tools import parse_tools

    app.tool()(parse_tools.parse_code)
    app.tool()(parse_tools.parse_source_file)
    app.tool()(parse_tools.detect_file_language)
    app.tool()(parse_tools.get_parser_status)

    logger.info("MCP tools registration completed")


async def run_server() -> None:
    """
    Run the MCP server with the appropriate transport protocol.

    Uses SSE or stdio transport based on the TRANSPORT environment variable.
    """
    logger.info("Starting syntax parser MCP server...")

    app = create_app()
    register_tools(app)

    transport = os.getenv("TRANSPORT", "sse")
    logger.info(f"Using transport: {transport}")

    try:
        if transport == "sse":
            logger.info("Starting SSE transport server...")
            await app.run_sse_async()
        else:
            logger.info("Starting stdio transport server...")
            await app.run_stdio_async()
    except KeyboardInterrupt:
        logger.info("Keyboard interrupt received, shutting down...")
    except Exception as e:
        logger.error(f"Server error: {e}")
        raise
    finally:
        logger.info("Server shutdown completed")


def main() -> None:
    """Console script entry point."""
    import asyncio

    configure_logging()
    asyncio.run(run_server())
