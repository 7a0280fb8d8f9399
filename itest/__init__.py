"""itest: integration test harness for dynamic component runtimes.

Runs unittest-style test cases against components that register and
disappear asynchronously, with suite-level setup/teardown and bounded,
filterable component lookups.
"""

from itest.core.errors import (
    ComponentNotFound,
    ConfigurationIOFailure,
    HarnessError,
    InterleavedSuiteError,
    InvalidFilterError,
    SuiteSetupFailure,
    SuiteTeardownFailure,
)
from itest.core.models import CapabilityQuery, ConfigurationRecord
from itest.environment import IntegrationEnvironment, build_environment
from itest.testcase import IntegrationTestCase

__version__ = "1.0.0"

__all__ = [
    "CapabilityQuery",
    "ComponentNotFound",
    "ConfigurationIOFailure",
    "ConfigurationRecord",
    "HarnessError",
    "IntegrationEnvironment",
    "IntegrationTestCase",
    "InterleavedSuiteError",
    "InvalidFilterError",
    "SuiteSetupFailure",
    "SuiteTeardownFailure",
    "build_environment",
]
