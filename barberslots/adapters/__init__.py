"""
Adapters layer - Data store implementations and row conversion.
"""

from .rest_store import RestStore
from .store import DataStore, InMemoryStore

__all__ = ["DataStore", "InMemoryStore", "RestStore"]
