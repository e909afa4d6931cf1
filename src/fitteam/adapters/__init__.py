"""Adapters - Infrastructure implementations of core interfaces.

Adapters are organized by type:
- store/: Document stores (in-memory, PostgreSQL)
- rules/: Rule engine and the rule-enforcing store wrapper
- cache/: Read-view cache
"""
