"""Port interfaces for the itest harness.

These abstract base classes define the boundaries between the harness core
and the runtime it observes. Implementations live in the adapters/ package.

Port Interface Categories:

1. **Driven Ports** (core calls out to adapters)
   - RegistryPort: Publish components and subscribe to their arrival
   - SubscriptionPort: One scoped, filtered view of a registry
   - ConfigurationStorePort: Fetch or create configuration records
   - ConfigurationPort: One configuration record in a store

2. **Driving Ports** (the test framework calls into core)
   - SuiteHooks: The per-suite and per-test hooks a test case provides
"""

from abc import ABC, abstractmethod
from collections.abc import Mapping
from typing import Any, Protocol

from .models import ConfigurationRecord, ServiceRegistration


# ============================================================================
# DRIVEN PORTS (Core calls out to adapters)
# ============================================================================


class SubscriptionPort(ABC):
    """A filtered subscription to registry change notifications.

    A subscription is a scoped resource: callers open it, wait on it and
    must close it on every exit path so that no listener stays registered.
    """

    @abstractmethod
    def open(self) -> None:
        """Start receiving notifications.

        Components already registered and matching the filter are tracked
        immediately; later arrivals and departures are tracked as the
        registry announces them.
        """

    @abstractmethod
    def wait_for_match(self, timeout_seconds: float) -> Any | None:
        """Block until a matching component is tracked or the timeout elapses.

        Args:
            timeout_seconds: Maximum time to wait. Must be non-negative.

        Returns:
            The best matching component instance (highest ranking, then
            lowest service id), or None if the timeout elapsed first.

        Raises:
            SubscriptionInterrupted: If cancel() was called during the wait.
            ValueError: If timeout_seconds is negative.
        """

    @abstractmethod
    def cancel(self) -> None:
        """Interrupt any wait in progress on this subscription.

        Safe to call from any thread.
        """

    @abstractmethod
    def close(self) -> None:
        """Stop receiving notifications and release tracked components.

        Closing an already closed subscription is a no-op.
        """


class RegistryPort(ABC):
    """Port for the dynamic component registry.

    Adapters implementing this port must deliver notifications to open
    subscriptions whenever a matching component is published or withdrawn,
    possibly on a thread other than the one waiting.
    """

    @abstractmethod
    def subscribe(
        self, type_name: str, filter_expression: str | None = None
    ) -> SubscriptionPort:
        """Create a subscription for components of a type.

        Args:
            type_name: Registered type name (module.qualname).
            filter_expression: Full filter including the objectclass term.
                If None, components are matched on type alone.

        Returns:
            An unopened SubscriptionPort.

        Raises:
            InvalidFilterError: If filter_expression is malformed.
        """

    @abstractmethod
    def publish(
        self,
        capability: type,
        instance: Any,
        properties: Mapping[str, Any] | None = None,
    ) -> ServiceRegistration:
        """Register a component under a capability type.

        Args:
            capability: Type the component is registered under.
            instance: The component.
            properties: Optional properties for filtering. The keys
                objectclass and service.id are managed by the registry.

        Returns:
            The registration, which can withdraw the component again.
        """

    @abstractmethod
    def unregister(self, registration: ServiceRegistration) -> None:
        """Withdraw a published component.

        Raises:
            ValueError: If the registration is unknown or already withdrawn.
        """


class ConfigurationPort(ABC):
    """A single configuration record held by a configuration store."""

    @property
    @abstractmethod
    def id(self) -> str:
        """Configuration identifier."""

    @abstractmethod
    def get_properties(self) -> dict[str, Any] | None:
        """Return a copy of the stored properties, or None if never updated.

        Raises:
            ConfigurationIOFailure: If the backing store cannot be read.
        """

    @abstractmethod
    def update(self, properties: Mapping[str, Any]) -> None:
        """Replace the stored properties.

        Raises:
            ConfigurationIOFailure: If the backing store cannot be written.
        """

    @abstractmethod
    def delete(self) -> None:
        """Remove this record from the store.

        Raises:
            ConfigurationIOFailure: If the backing store cannot be written.
        """

    def to_record(self) -> ConfigurationRecord:
        """Snapshot this configuration as a ConfigurationRecord."""
        return ConfigurationRecord(id=self.id, properties=self.get_properties() or {})


class ConfigurationStorePort(ABC):
    """Port for the configuration store.

    The harness never caches records: every call goes through to the store.
    """

    @abstractmethod
    def fetch_or_create(self, config_id: str) -> ConfigurationPort:
        """Get an existing configuration or create an empty one.

        Args:
            config_id: Configuration identifier.

        Returns:
            A ConfigurationPort, never None.

        Raises:
            ConfigurationIOFailure: If access to the backing store failed.
            ValueError: If config_id is empty.
        """

    @abstractmethod
    def list_ids(self) -> list[str]:
        """Return the ids of all stored configurations, sorted.

        Raises:
            ConfigurationIOFailure: If access to the backing store failed.
        """


# ============================================================================
# DRIVING PORTS (Test framework calls into core)
# ============================================================================


class SuiteHooks(Protocol):
    """Hooks a test case exposes to the suite lifecycle tracker."""

    def before_suite(self) -> None:
        """Run once before the first test of a suite."""

    def before(self) -> None:
        """Run before every test."""

    def after(self) -> None:
        """Run after every test."""

    def after_suite(self) -> None:
        """Run once after the last test of a suite."""
