"""Incremental task index and timeline minimap for markdown task vaults."""

__version__ = "0.1.0"
