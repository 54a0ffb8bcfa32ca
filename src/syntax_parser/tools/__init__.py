"""
MCP tools layer exposing the parse service.
"""
