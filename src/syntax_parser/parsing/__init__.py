"""Tree-sitter parsing engine and related utilities.

Self-contained parsing engine including:
- Language detection from file paths
- Engine boot, grammar loading and the parser pool
- The parse service composing them
"""
