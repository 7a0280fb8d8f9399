"""Composition root for the itest harness.

This module is the ONLY location that imports both core logic and concrete
adapter implementations. Test cases reach the registry, the configuration
store and the component locator through the IntegrationEnvironment built
here.

Module Structure:
- Configuration loading via config module
- Logging setup
- Adapter instantiation
- Default environment shared by a test process
"""

import logging
import sys
import threading
from dataclasses import dataclass

from itest.adapters.configuration.json_file import JsonFileConfigurationStore
from itest.adapters.configuration.memory import InMemoryConfigurationStore
from itest.adapters.registry.memory import InMemoryRegistry
from itest.config import Settings, load_settings
from itest.core.lifecycle import SuiteLifecycleTracker
from itest.core.locator import BoundedComponentLocator
from itest.core.ports import ConfigurationStorePort, RegistryPort

logger = logging.getLogger(__name__)


@dataclass
class IntegrationEnvironment:
    """The collaborators a test process runs against."""

    registry: RegistryPort
    configuration_store: ConfigurationStorePort
    locator: BoundedComponentLocator
    settings: Settings


def configure_logging(log_level: str, log_format: str) -> None:
    """Configure harness logging.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        log_format: Log format (json, text).
    """
    level = getattr(logging, log_level, logging.INFO)

    if log_format == "json":
        format_str = '{"time": "%(asctime)s", "level": "%(levelname)s", "logger": "%(name)s", "message": "%(message)s"}'
    else:
        format_str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    logging.basicConfig(
        level=level,
        format=format_str,
        handlers=[
            logging.StreamHandler(sys.stderr),
        ],
    )


def build_configuration_store(settings: Settings) -> ConfigurationStorePort:
    """Instantiate the configuration store selected by settings."""
    if settings.configuration_backend == "json":
        logger.info(f"Using JSON configuration store at {settings.configuration_path}")
        return JsonFileConfigurationStore(settings.configuration_path)
    return InMemoryConfigurationStore()


def build_environment(
    settings: Settings | None = None,
    registry: RegistryPort | None = None,
    configuration_store: ConfigurationStorePort | None = None,
) -> IntegrationEnvironment:
    """Wire an environment from settings.

    Args:
        settings: Harness settings; loaded from the environment if omitted.
        registry: Registry to use instead of a fresh InMemoryRegistry.
        configuration_store: Store to use instead of the configured backend.

    Returns:
        A ready IntegrationEnvironment.
    """
    settings = settings or load_settings()
    registry = registry or InMemoryRegistry()
    store = configuration_store or build_configuration_store(settings)
    locator = BoundedComponentLocator(
        registry,
        timeout_seconds=settings.locate_timeout_seconds,
        optional_timeout_seconds=settings.optional_locate_timeout_seconds,
    )
    return IntegrationEnvironment(
        registry=registry,
        configuration_store=store,
        locator=locator,
        settings=settings,
    )


_default_environment: IntegrationEnvironment | None = None
_default_tracker: SuiteLifecycleTracker | None = None
_default_lock = threading.Lock()


def get_environment() -> IntegrationEnvironment:
    """Return the process-wide environment, building it on first use."""
    global _default_environment
    with _default_lock:
        if _default_environment is None:
            settings = load_settings()
            configure_logging(settings.log_level, settings.log_format)
            _default_environment = build_environment(settings)
            logger.info("itest environment ready")
        return _default_environment


def set_environment(environment: IntegrationEnvironment | None) -> None:
    """Replace the process-wide environment (None rebuilds it on next use)."""
    global _default_environment
    with _default_lock:
        _default_environment = environment


def get_tracker() -> SuiteLifecycleTracker:
    """Return the process-wide suite lifecycle tracker."""
    global _default_tracker
    settings = get_environment().settings
    with _default_lock:
        if _default_tracker is None:
            _default_tracker = SuiteLifecycleTracker(
                strict_isolation=settings.strict_suite_isolation
            )
        return _default_tracker


__all__ = [
    "IntegrationEnvironment",
    "build_configuration_store",
    "build_environment",
    "configure_logging",
    "get_environment",
    "get_tracker",
    "set_environment",
]
