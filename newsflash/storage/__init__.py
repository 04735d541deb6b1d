"""Key-value persistence used by the quota tracker and reading history."""
from .backends import JsonFileStore, MemoryStore, NullStore, build_store
from .base import KeyValueStore

__all__ = ["KeyValueStore", "JsonFileStore", "MemoryStore", "NullStore", "build_store"]
