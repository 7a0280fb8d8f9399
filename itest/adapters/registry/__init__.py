"""Dynamic component registry adapters."""

from .memory import InMemoryRegistry, InMemorySubscription

__all__ = ["InMemoryRegistry", "InMemorySubscription"]
