"""Core of the itest harness.

This package contains zero external dependencies: the suite lifecycle
tracker, the bounded component locator, the filter language and the port
interfaces that adapters implement.
"""

from .errors import (
    ComponentNotFound,
    ConfigurationIOFailure,
    HarnessError,
    InterleavedSuiteError,
    InvalidFilterError,
    SubscriptionInterrupted,
    SuiteHookFailure,
    SuiteSetupFailure,
    SuiteTeardownFailure,
)
from .models import (
    CapabilityQuery,
    ConfigurationRecord,
    ServiceRegistration,
    SuiteContext,
    TestDescriptor,
)

__all__ = [
    "CapabilityQuery",
    "ComponentNotFound",
    "ConfigurationIOFailure",
    "ConfigurationRecord",
    "HarnessError",
    "InterleavedSuiteError",
    "InvalidFilterError",
    "ServiceRegistration",
    "SubscriptionInterrupted",
    "SuiteContext",
    "SuiteHookFailure",
    "SuiteSetupFailure",
    "SuiteTeardownFailure",
    "TestDescriptor",
]
