"""Fake implementations of core ports for testing.

These in-memory implementations allow the harness core to be tested
without a running registry:

- FakeRegistryPort: Hands out scripted subscriptions, records publications
- FakeSubscription: Canned wait results, records open/close/cancel
- RecordingHooks: Suite hooks that log their invocations
"""

from .hooks import RecordingHooks
from .registry import FakeRegistryPort, FakeSubscription

__all__ = [
    "FakeRegistryPort",
    "FakeSubscription",
    "RecordingHooks",
]
