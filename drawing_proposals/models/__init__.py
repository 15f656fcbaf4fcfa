"""
Data models and contracts module.

Immutable data structures for detected lines, chart patterns, drawing
proposals and the request/result contract of the engine. Follows
functional programming principles with frozen dataclasses.
"""
