"""Configuration store adapters.

Implementations support multiple backends:
- In-memory (process lifetime)
- JSON file (persisted between runs)
"""

from .json_file import JsonFileConfigurationStore
from .memory import InMemoryConfigurationStore

__all__ = ["InMemoryConfigurationStore", "JsonFileConfigurationStore"]
