"""Terminal client for browsing Metabase questions, collections, and databases."""

__version__ = "0.3.0"
