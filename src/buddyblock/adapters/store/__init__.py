from .json_file import JsonFileKeyValueStore
from .memory import MemoryKeyValueStore

__all__ = ["JsonFileKeyValueStore", "MemoryKeyValueStore"]
