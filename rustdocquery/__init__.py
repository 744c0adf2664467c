"""Query adapter over rustdoc JSON crate data, with attribute parsing and indexed lookups."""

__version__ = "0.1.0"

__all__ = ["adapter", "attributes", "edges", "optimizations", "properties", "vertex"]