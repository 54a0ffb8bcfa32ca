"""
Utility modules for the syntax parser: configuration, singleflight
coordination and grammar warm-up.
"""
