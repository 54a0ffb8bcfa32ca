"""Core models, exceptions, context and application wiring.

Fundamental building blocks including:
- Syntax tree models and the runtime state enumeration
- The exception hierarchy of the parsing service
- ParsingContext, the shared runtime value passed to call sites
- The FastMCP application
"""
