"""
Entry point for running the syntax parser MCP server as a module.
"""

import asyncio

if __name__ == "__main__":
    from .core.app import configure_logging, run_server

    configure_logging()

    # Run the server
    asyncio.run(run_server())
