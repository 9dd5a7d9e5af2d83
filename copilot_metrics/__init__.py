"""Copilot usage and seat metrics ingestion pipeline."""

__version__ = "0.1.0"
