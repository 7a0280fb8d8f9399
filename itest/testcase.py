"""Base class for integration tests against a dynamic component runtime.

Subclasses get suite-level hooks on top of unittest's per-test hooks and
convenience methods to look up, publish and configure components:

    class GreeterTests(IntegrationTestCase):
        def before_suite(self) -> None:
            self.configure("greeter", {"language": "en"})

        def test_greets(self) -> None:
            greeter = self.get_component(Greeter, "(language=en)")
            self.assertEqual(greeter.greet("Ada"), "Hello, Ada")
"""

import logging
import unittest
from collections.abc import Mapping
from functools import partial
from typing import Any, ClassVar, TypeVar

from itest.core.discovery import suite_descriptors
from itest.core.lifecycle import SuiteLifecycleTracker
from itest.core.models import CapabilityQuery, ServiceRegistration
from itest.core.ports import ConfigurationPort
from itest.environment import IntegrationEnvironment, get_environment, get_tracker

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _withdraw(registration: ServiceRegistration) -> None:
    try:
        registration.unregister()
    except ValueError:
        # Already withdrawn by the test itself.
        logger.debug(f"Service {registration.service_id} was already unregistered")


class IntegrationTestCase(unittest.TestCase):
    """unittest.TestCase with suite hooks and component conveniences.

    Override before_suite/after_suite for work done once per suite, and
    before/after for work done around every test. setUp and tearDown drive
    the hooks; subclasses overriding them must call super().

    Class attributes:
        environment: Collaborators to run against. Defaults to the
            process-wide environment from itest.environment.
        lifecycle_tracker: Tracker deciding suite boundaries. Defaults to
            the process-wide tracker.
    """

    environment: ClassVar[IntegrationEnvironment | None] = None
    lifecycle_tracker: ClassVar[SuiteLifecycleTracker | None] = None

    def __init_subclass__(cls, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        suite_descriptors.register(cls)

    def __init__(self, methodName: str = "runTest") -> None:
        super().__init__(methodName)
        self._registrations: list[ServiceRegistration] = []

    # ------------------------------------------------------------------
    # Hooks
    # ------------------------------------------------------------------

    def before_suite(self) -> None:
        """Run once before the first test of the suite."""

    def before(self) -> None:
        """Run before each test. Initializing resources could be one example."""

    def after(self) -> None:
        """Run after each test. Cleaning up resources could be one example."""

    def after_suite(self) -> None:
        """Run once after the last test of the suite."""

    # ------------------------------------------------------------------
    # unittest integration
    # ------------------------------------------------------------------

    def setUp(self) -> None:
        super().setUp()
        try:
            self._tracker().on_test_start(type(self), self._testMethodName, self)
        except BaseException:
            # unittest skips tearDown when setUp raises.
            self._unregister_services()
            raise

    def tearDown(self) -> None:
        try:
            self._tracker().on_test_end(self)
        finally:
            self._unregister_services()
            super().tearDown()

    @classmethod
    def tearDownClass(cls) -> None:
        try:
            cls._tracker().finish_incomplete(cls)
        finally:
            super().tearDownClass()

    @classmethod
    def _tracker(cls) -> SuiteLifecycleTracker:
        return cls.lifecycle_tracker or get_tracker()

    @classmethod
    def _environment(cls) -> IntegrationEnvironment:
        return cls.environment or get_environment()

    # ------------------------------------------------------------------
    # Components
    # ------------------------------------------------------------------

    def get_component(
        self,
        capability: type[T],
        filter_expression: str | None = None,
        timeout: float | None = None,
    ) -> T:
        """Return a component, failing the test if none appears in time.

        Args:
            capability: Type the component is registered under.
            filter_expression: Optional filter over component properties,
                combined with the type by AND.
            timeout: Seconds to wait; defaults to the configured timeout.

        Raises:
            ComponentNotFound: An AssertionError, so the test fails.
        """
        locator = self._environment().locator
        return locator.locate(CapabilityQuery(capability, filter_expression), timeout)

    def find_component(
        self,
        capability: type[T],
        filter_expression: str | None = None,
        timeout: float | None = None,
    ) -> T | None:
        """Return a component if one appears in time, None otherwise."""
        return self._environment().locator.find(capability, filter_expression, timeout)

    def register_service(
        self,
        capability: type[T],
        instance: T,
        properties: Mapping[str, Any] | None = None,
    ) -> ServiceRegistration:
        """Publish a component for the duration of the current test.

        The registration is withdrawn after the test, in tearDown. Called
        from before_suite, it lasts for the whole suite run instead and is
        withdrawn after after_suite.
        """
        registration = self._environment().registry.publish(
            capability, instance, properties
        )
        tracker = self._tracker()
        if tracker.in_suite_setup:
            tracker.add_suite_cleanup(partial(_withdraw, registration))
        else:
            self._registrations.append(registration)
        return registration

    def _unregister_services(self) -> None:
        while self._registrations:
            _withdraw(self._registrations.pop())

    # ------------------------------------------------------------------
    # Configuration
    # ------------------------------------------------------------------

    def get_configuration(self, config_id: str) -> ConfigurationPort:
        """Get an existing configuration or create a new one.

        Raises:
            ConfigurationIOFailure: If access to the store failed.
        """
        return self._environment().configuration_store.fetch_or_create(config_id)

    def configure(self, config_id: str, properties: Mapping[str, Any]) -> None:
        """Write the configuration of a single component.

        Raises:
            ConfigurationIOFailure: If the store could not persist it.
        """
        self.get_configuration(config_id).update(properties)
        logger.debug(
            f"Configured {config_id}",
            extra={"config_id": config_id, "keys": list(properties)},
        )
