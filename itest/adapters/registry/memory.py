"""In-memory dynamic registry adapter.

Implements RegistryPort for tests and for runtimes that live in the same
process as the test. Components can be published and withdrawn from any
thread; open subscriptions are notified synchronously on the publishing
thread and wake their waiters through a condition variable.
"""

import itertools
import logging
import threading
from collections.abc import Mapping
from typing import Any

from itest.core.filters import (
    OBJECTCLASS,
    SERVICE_ID,
    SERVICE_RANKING,
    Filter,
    objectclass_term,
    parse_filter,
)
from itest.core.errors import SubscriptionInterrupted
from itest.core.models import ServiceRegistration, type_name_of
from itest.core.ports import RegistryPort, SubscriptionPort

logger = logging.getLogger(__name__)


def _best(registrations: list[ServiceRegistration]) -> ServiceRegistration | None:
    """Highest ranking wins, then the oldest registration."""
    if not registrations:
        return None
    return min(registrations, key=lambda r: (-r.ranking, r.service_id))


class InMemorySubscription(SubscriptionPort):
    """Tracks the registrations of an InMemoryRegistry that match a filter."""

    def __init__(self, registry: "InMemoryRegistry", type_name: str, filter_: Filter):
        self.registry = registry
        self.type_name = type_name
        self.filter = filter_
        self._tracked: dict[int, ServiceRegistration] = {}
        self._condition = threading.Condition()
        self._opened = False
        self._closed = False
        self._cancelled = False

    @property
    def tracked_count(self) -> int:
        with self._condition:
            return len(self._tracked)

    def open(self) -> None:
        if self._opened:
            return
        self._opened = True
        self.registry._attach(self)

    def wait_for_match(self, timeout_seconds: float) -> Any | None:
        if timeout_seconds < 0:
            raise ValueError(f"timeout must be non-negative, got {timeout_seconds}")

        with self._condition:
            self._condition.wait_for(
                lambda: self._cancelled or self._closed or bool(self._tracked),
                timeout=timeout_seconds,
            )
            if self._cancelled:
                raise SubscriptionInterrupted(
                    f"wait for {self.type_name} was cancelled"
                )
            best = _best(list(self._tracked.values()))
            return best.instance if best is not None else None

    def cancel(self) -> None:
        with self._condition:
            self._cancelled = True
            self._condition.notify_all()

    def close(self) -> None:
        with self._condition:
            if self._closed:
                return
            self._closed = True
            self._tracked.clear()
            self._condition.notify_all()
        if self._opened:
            self.registry._detach(self)

    def _added(self, registration: ServiceRegistration) -> None:
        if not self.filter.matches(registration.properties):
            return
        with self._condition:
            if self._closed:
                return
            self._tracked[registration.service_id] = registration
            self._condition.notify_all()

    def _removed(self, registration: ServiceRegistration) -> None:
        with self._condition:
            self._tracked.pop(registration.service_id, None)


class InMemoryRegistry(RegistryPort):
    """Thread-safe in-process registry of components."""

    def __init__(self) -> None:
        self._registrations: dict[int, ServiceRegistration] = {}
        self._subscriptions: list[InMemorySubscription] = []
        self._lock = threading.RLock()
        self._ids = itertools.count(1)

    @property
    def subscription_count(self) -> int:
        """Number of open subscriptions, for leak checks."""
        with self._lock:
            return len(self._subscriptions)

    def registrations(self, type_name: str | None = None) -> list[ServiceRegistration]:
        """Return current registrations, optionally of one type."""
        with self._lock:
            registrations = list(self._registrations.values())
        if type_name is None:
            return registrations
        return [r for r in registrations if type_name in r.properties[OBJECTCLASS]]

    def subscribe(
        self, type_name: str, filter_expression: str | None = None
    ) -> InMemorySubscription:
        expression = filter_expression or objectclass_term(type_name)
        return InMemorySubscription(self, type_name, parse_filter(expression))

    def publish(
        self,
        capability: type,
        instance: Any,
        properties: Mapping[str, Any] | None = None,
    ) -> ServiceRegistration:
        type_name = type_name_of(capability)
        props: dict[str, Any] = {}
        ranking = 0
        for key, value in (properties or {}).items():
            # Reserved keys match case-insensitively, like filter keys.
            reserved = key.lower()
            if reserved == SERVICE_RANKING:
                ranking = value
            elif reserved not in (OBJECTCLASS, SERVICE_ID):
                props[key] = value
        if not isinstance(ranking, int) or isinstance(ranking, bool):
            raise ValueError(f"{SERVICE_RANKING} must be an integer, got {ranking!r}")

        with self._lock:
            service_id = next(self._ids)
            props[OBJECTCLASS] = [type_name]
            props[SERVICE_ID] = service_id
            props[SERVICE_RANKING] = ranking
            registration = ServiceRegistration(
                service_id=service_id,
                type_name=type_name,
                instance=instance,
                properties=props,
                ranking=ranking,
                _unregister=self.unregister,
            )
            self._registrations[service_id] = registration
            for subscription in self._subscriptions:
                subscription._added(registration)

        logger.debug(
            f"Published {type_name} as service {service_id}",
            extra={"type_name": type_name, "service_id": service_id},
        )
        return registration

    def unregister(self, registration: ServiceRegistration) -> None:
        with self._lock:
            if self._registrations.pop(registration.service_id, None) is None:
                raise ValueError(
                    f"Service {registration.service_id} is not registered"
                )
            for subscription in self._subscriptions:
                subscription._removed(registration)

        logger.debug(
            f"Unregistered {registration.type_name} service {registration.service_id}",
            extra={
                "type_name": registration.type_name,
                "service_id": registration.service_id,
            },
        )

    def _attach(self, subscription: InMemorySubscription) -> None:
        with self._lock:
            self._subscriptions.append(subscription)
            for registration in self._registrations.values():
                subscription._added(registration)

    def _detach(self, subscription: InMemorySubscription) -> None:
        with self._lock:
            if subscription in self._subscriptions:
                self._subscriptions.remove(subscription)
