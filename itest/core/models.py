"""Domain models for the itest harness.

All models in this module use only Python standard library types,
ensuring zero external dependencies in the core domain.
"""

from collections.abc import Callable
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any

from .filters import conjunction, objectclass_term, parse_filter

# Sentinel reported as total_tests while no suite run is in progress.
NO_RUN = -1


def type_name_of(capability: type) -> str:
    """Return the registry name of a capability type (module.qualname)."""
    return f"{capability.__module__}.{capability.__qualname__}"


@dataclass(frozen=True)
class TestDescriptor:
    """A method found on a suite class that may count as a test.

    A descriptor is counted toward the suite total only when its name
    starts with "test", it takes no parameters besides self and its
    return annotation is absent or None. Skipped tests never reach setUp
    and are therefore not counted either.
    """

    name: str
    parameter_count: int
    returns_void: bool
    skipped: bool = False

    __test__ = False  # not a pytest test class

    @property
    def is_test(self) -> bool:
        """Whether this method qualifies as a test method."""
        return (
            self.name.startswith("test")
            and self.parameter_count == 0
            and self.returns_void
        )

    @property
    def counted(self) -> bool:
        """Whether this method counts toward the suite total."""
        return self.is_test and not self.skipped


@dataclass
class SuiteContext:
    """State of one suite run.

    Created when the first counted test of a suite starts and discarded
    right after suite teardown, so a run never leaks into the next one.
    """

    suite_class: type
    total_tests: int
    tests_completed: int = 0
    owner: Any = None  # hooks object that ran suite setup
    setup_failure: Exception | None = None
    # Run when the context is discarded, most recent first.
    cleanups: list[Callable[[], None]] = field(default_factory=list)

    def __post_init__(self) -> None:
        """Validate counter invariants on creation."""
        if self.total_tests < 0:
            raise ValueError(
                f"total_tests must be non-negative, got {self.total_tests}"
            )
        if not 0 <= self.tests_completed <= self.total_tests:
            raise ValueError(
                f"tests_completed must be between 0 and {self.total_tests}, "
                f"got {self.tests_completed}"
            )

    @property
    def suite_name(self) -> str:
        return self.suite_class.__qualname__

    @property
    def is_first_test(self) -> bool:
        return self.tests_completed == 0

    @property
    def is_complete(self) -> bool:
        return self.tests_completed >= self.total_tests

    def record_test_finished(self) -> None:
        """Count one finished test body.

        Raises:
            ValueError: If every test of the suite was already counted.
        """
        if self.is_complete:
            raise ValueError(
                f"Suite {self.suite_name} already finished "
                f"{self.total_tests} tests"
            )
        self.tests_completed += 1


@dataclass(frozen=True)
class CapabilityQuery:
    """What the component locator must find: a type plus an optional filter."""

    capability: type
    filter_expression: str | None = None

    @property
    def type_name(self) -> str:
        return type_name_of(self.capability)

    def to_filter(self) -> str:
        """Build the subscription filter for this query.

        The optional predicate is ANDed with the objectclass term so that
        callers never repeat the type condition themselves.

        Raises:
            InvalidFilterError: If the predicate is not a valid filter.
        """
        type_term = objectclass_term(self.type_name)
        if self.filter_expression is None:
            return type_term
        parse_filter(self.filter_expression)
        return conjunction(type_term, self.filter_expression)

    def describe(self) -> str:
        if self.filter_expression is None:
            return self.type_name
        return f"{self.type_name} matching {self.filter_expression}"


@dataclass(frozen=True)
class ConfigurationRecord:
    """A configuration as handed to the configuration store."""

    id: str
    properties: dict[str, Any] | MappingProxyType[str, Any] = field(
        default_factory=dict
    )

    def __post_init__(self) -> None:
        """Validate the id and convert properties to a read-only proxy."""
        if not self.id or not self.id.strip():
            raise ValueError("id must be a non-empty string")
        if isinstance(self.properties, dict):
            object.__setattr__(
                self, "properties", MappingProxyType(dict(self.properties))
            )


@dataclass(frozen=True)
class ServiceRegistration:
    """A component published in a registry.

    Properties always carry the registry-managed keys objectclass,
    service.id and service.ranking.
    """

    service_id: int
    type_name: str
    instance: Any
    properties: dict[str, Any] | MappingProxyType[str, Any]
    ranking: int = 0
    _unregister: Callable[["ServiceRegistration"], None] | None = field(
        default=None, repr=False, compare=False
    )

    def __post_init__(self) -> None:
        """Convert properties dict to read-only proxy."""
        if isinstance(self.properties, dict):
            object.__setattr__(
                self, "properties", MappingProxyType(self.properties)
            )

    def unregister(self) -> None:
        """Withdraw this component from its registry."""
        if self._unregister is not None:
            self._unregister(self)
