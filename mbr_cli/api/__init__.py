"""Metabase REST API client and payload models."""

from __future__ import annotations

from .client import MetabaseClient
from .models import CollectionItem, CurrentUser, Database, Question, ResultSet, TableInfo

__all__ = [
    "CollectionItem",
    "CurrentUser",
    "Database",
    "MetabaseClient",
    "Question",
    "ResultSet",
    "TableInfo",
]
