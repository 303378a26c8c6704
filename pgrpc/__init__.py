"""Configuration and analysis helpers for PostgreSQL client code generation."""

__version__ = "0.1.0"