"""tree-lint: declarative lint rules for parsed document trees."""

__version__ = "0.1.0"
