"""Infra layer: remote platform clients and storage."""

from .apify import ApifyScrapeClient
from .openai_batch import OpenAIBatchClient
from .storage import SQLiteManager

__all__ = ["ApifyScrapeClient", "OpenAIBatchClient", "SQLiteManager"]
