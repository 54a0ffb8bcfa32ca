#!/usr/bin/env python3
"""
Simple entry point for the syntax parser MCP server.
This avoids relative import issues by running from the project root.
"""

import sys
import asyncio
from pathlib import Path

# Add src directory to Python path before importing the package
src_path = Path(__file__).parent / "src"
sys.path.insert(0, str(src_path))

if __name__ == "__main__":
    # Import after path setup - this is intentional for standalone scripts
    from syntax_parser.core.app import run_server, configure_logging  # noqa: E402

    configure_logging()

    asyncio.run(run_server())
