"""Test method discovery for suite classes.

Descriptors are derived once per suite class, when the class is defined,
by walking the class and its ancestors in method resolution order. The
first definition of a name shadows every ancestor definition of it, so an
overridden test counts once, exactly as attribute lookup dispatches it.
"""

import inspect
import logging
import threading
import unittest

from .models import TestDescriptor

logger = logging.getLogger(__name__)


def _returns_void(function: object) -> bool:
    annotation = inspect.signature(function).return_annotation
    return annotation in (inspect.Signature.empty, None, type(None), "None")


def describe_method(name: str, function: object) -> TestDescriptor | None:
    """Describe a class attribute, or return None if it is not a plain method."""
    if not inspect.isfunction(function):
        return None

    parameters = list(inspect.signature(function).parameters.values())
    # The first positional parameter is self.
    parameter_count = max(len(parameters) - 1, 0)
    return TestDescriptor(
        name=name,
        parameter_count=parameter_count,
        returns_void=_returns_void(function),
        skipped=bool(getattr(function, "__unittest_skip__", False)),
    )


def collect_test_descriptors(
    suite_class: type, base: type = unittest.TestCase
) -> tuple[TestDescriptor, ...]:
    """Collect the qualifying test methods of a suite class.

    Args:
        suite_class: The suite class to inspect.
        base: Ancestors that are not subclasses of base are not walked.

    Returns:
        Descriptors of the qualifying test methods (skipped ones included),
        sorted by name.
    """
    seen: set[str] = set()
    descriptors: list[TestDescriptor] = []

    for klass in suite_class.__mro__:
        if not (isinstance(klass, type) and issubclass(klass, base)):
            continue
        for name, value in vars(klass).items():
            if name in seen:
                continue
            seen.add(name)

            descriptor = describe_method(name, value)
            if descriptor is not None and descriptor.is_test:
                descriptors.append(descriptor)

    return tuple(sorted(descriptors, key=lambda descriptor: descriptor.name))


class TestDescriptorRegistry:
    """Test descriptors per suite class, computed once at definition time."""

    __test__ = False  # not a pytest test class

    def __init__(self, base: type = unittest.TestCase):
        self.base = base
        self._descriptors: dict[type, tuple[TestDescriptor, ...]] = {}
        self._lock = threading.Lock()

    def register(self, suite_class: type) -> tuple[TestDescriptor, ...]:
        """Compute and store the descriptors of a suite class."""
        descriptors = collect_test_descriptors(suite_class, self.base)
        with self._lock:
            self._descriptors[suite_class] = descriptors

        logger.debug(
            f"Registered suite {suite_class.__qualname__} with "
            f"{sum(1 for d in descriptors if d.counted)} counted tests",
            extra={
                "suite": suite_class.__qualname__,
                "tests": [d.name for d in descriptors],
            },
        )
        return descriptors

    def descriptors_for(self, suite_class: type) -> tuple[TestDescriptor, ...]:
        """Return the descriptors of a suite class, registering it if needed."""
        with self._lock:
            descriptors = self._descriptors.get(suite_class)
        if descriptors is None:
            descriptors = self.register(suite_class)
        return descriptors

    def counted_names(self, suite_class: type) -> frozenset[str]:
        """Names of the tests that count toward the suite total."""
        return frozenset(
            d.name for d in self.descriptors_for(suite_class) if d.counted
        )

    def total_tests(self, suite_class: type) -> int:
        return len(self.counted_names(suite_class))

    def __contains__(self, suite_class: object) -> bool:
        with self._lock:
            return suite_class in self._descriptors


# Suite classes register here when they are defined.
suite_descriptors = TestDescriptorRegistry()
