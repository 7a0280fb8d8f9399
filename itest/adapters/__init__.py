"""External adapters for the itest harness.

This package provides implementations of the core port interfaces.

Adapter Organization:

- registry/: Dynamic component registries (in-memory)
- configuration/: Configuration stores (in-memory, JSON file)
"""
