"""Dialect-aware SQL generation, a SQLite database adapter and vector similarity search."""

__version__ = "0.1.0"
__all__ = ["adapter", "dialect", "pgvector", "schema", "vector"]