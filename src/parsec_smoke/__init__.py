"""End-to-end smoke tests for a Parsec service."""

__version__ = "0.1.0"
