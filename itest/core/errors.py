"""Errors raised by the itest harness.

ComponentNotFound derives from AssertionError so that unittest reports an
unmet lookup as a test failure rather than as an error.
"""


class HarnessError(Exception):
    """Base class for all harness errors."""


class InvalidFilterError(HarnessError, ValueError):
    """A filter expression could not be parsed."""

    def __init__(self, expression: str, reason: str, position: int | None = None):
        self.expression = expression
        self.reason = reason
        self.position = position
        where = f" at position {position}" if position is not None else ""
        super().__init__(f"Invalid filter {expression!r}{where}: {reason}")


class ComponentNotFound(HarnessError, AssertionError):
    """No matching component appeared before the deadline, or the wait was interrupted."""

    def __init__(
        self,
        type_name: str,
        filter_expression: str | None = None,
        timeout: float | None = None,
        reason: str = "service not found",
    ):
        self.type_name = type_name
        self.filter_expression = filter_expression
        self.timeout = timeout
        message = f"{type_name} {reason}"
        if filter_expression is not None:
            message += f" (filter {filter_expression})"
        if timeout is not None:
            message += f" within {timeout:g}s"
        super().__init__(message)


class SubscriptionInterrupted(HarnessError):
    """A wait on a registry subscription was cancelled."""


class ConfigurationIOFailure(HarnessError, OSError):
    """The configuration store could not read or persist a record."""

    def __init__(self, config_id: str, message: str):
        self.config_id = config_id
        super().__init__(f"Configuration {config_id!r}: {message}")


class SuiteHookFailure(HarnessError):
    """A suite-level hook raised an error."""

    phase = "hook"

    def __init__(self, suite_name: str, hook_name: str, message: str | None = None):
        self.suite_name = suite_name
        self.hook_name = hook_name
        text = f"Suite {self.phase} {hook_name}() failed for {suite_name}"
        if message:
            text += f": {message}"
        super().__init__(text)


class SuiteSetupFailure(SuiteHookFailure):
    """Suite setup failed; no test of the suite may run."""

    phase = "setup"


class SuiteTeardownFailure(SuiteHookFailure):
    """Suite teardown failed after the last test of the suite."""

    phase = "teardown"


class InterleavedSuiteError(HarnessError):
    """A suite started while another suite run was still in progress."""

    def __init__(self, running: str, starting: str, completed: int, total: int):
        self.running = running
        self.starting = starting
        super().__init__(
            f"Cannot start {starting} while {running} is in progress "
            f"({completed} of {total} tests finished); "
            "concurrent or interleaved suite runs are not supported"
        )
