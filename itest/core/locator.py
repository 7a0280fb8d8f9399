"""Bounded component locator.

Resolves a capability from a live registry within a fixed deadline. Each
lookup opens its own subscription, performs one bounded wait on it and
closes it again, whatever the outcome.
"""

import logging
import threading
from typing import Any, TypeVar

from .errors import ComponentNotFound, InvalidFilterError, SubscriptionInterrupted
from .models import CapabilityQuery
from .ports import RegistryPort, SubscriptionPort

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_TIMEOUT_SECONDS = 5.0


class BoundedComponentLocator:
    """Blocks the calling thread until a matching component appears or time runs out."""

    def __init__(
        self,
        registry: RegistryPort,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
        optional_timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
    ):
        """Initialize the locator.

        Args:
            registry: RegistryPort to subscribe to.
            timeout_seconds: Default wait of locate() and locate_type().
            optional_timeout_seconds: Default wait of find().
        """
        if timeout_seconds <= 0 or optional_timeout_seconds <= 0:
            raise ValueError("locator timeouts must be positive")
        self.registry = registry
        self.timeout_seconds = timeout_seconds
        self.optional_timeout_seconds = optional_timeout_seconds
        self._active: set[SubscriptionPort] = set()
        self._active_lock = threading.Lock()

    def locate(self, query: CapabilityQuery, timeout: float | None = None) -> Any:
        """Return a component matching the query.

        Args:
            query: Capability type and optional filter predicate.
            timeout: Seconds to wait; defaults to the locator timeout.

        Returns:
            The matching component instance.

        Raises:
            ComponentNotFound: If no match appeared in time or the wait was
                interrupted.
            InvalidFilterError: If the query predicate is malformed.
        """
        wait = self.timeout_seconds if timeout is None else timeout
        filter_expression = query.to_filter()

        subscription = self.registry.subscribe(query.type_name, filter_expression)
        with self._active_lock:
            self._active.add(subscription)
        try:
            subscription.open()
            logger.debug(
                f"Waiting up to {wait:g}s for {query.describe()}",
                extra={"type_name": query.type_name, "filter": filter_expression},
            )
            component = subscription.wait_for_match(wait)
        except SubscriptionInterrupted as e:
            logger.warning(f"Wait for {query.describe()} interrupted")
            raise ComponentNotFound(
                query.type_name,
                query.filter_expression,
                wait,
                reason=f"service not available: {e}",
            ) from e
        finally:
            with self._active_lock:
                self._active.discard(subscription)
            subscription.close()

        if component is None:
            raise ComponentNotFound(query.type_name, query.filter_expression, wait)
        return component

    def locate_type(self, capability: type[T], timeout: float | None = None) -> T:
        """Return a component registered under capability, matched on type alone."""
        return self.locate(CapabilityQuery(capability), timeout)

    def find(
        self,
        capability: type[T],
        filter_expression: str | None = None,
        timeout: float | None = None,
    ) -> T | None:
        """Return a matching component, or None if there is none.

        For optional dependencies: failures do not abort the calling test.
        """
        wait = self.optional_timeout_seconds if timeout is None else timeout
        try:
            return self.locate(CapabilityQuery(capability, filter_expression), wait)
        except (ComponentNotFound, InvalidFilterError) as e:
            logger.debug(f"Optional component unavailable: {e}")
            return None

    def interrupt(self) -> int:
        """Cancel every wait in progress on this locator.

        Safe to call from any thread. Interrupted lookups fail with
        ComponentNotFound.

        Returns:
            Number of subscriptions cancelled.
        """
        with self._active_lock:
            active = list(self._active)
        for subscription in active:
            subscription.cancel()
        if active:
            logger.info(f"Interrupted {len(active)} component lookup(s)")
        return len(active)
