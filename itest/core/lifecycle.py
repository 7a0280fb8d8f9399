"""Suite lifecycle tracker: suite-level hooks on a per-test framework.

unittest only calls hooks around single test methods. The tracker turns
those calls into suite boundaries by counting: the first counted test of a
suite opens a SuiteContext and runs suite setup, the test that brings the
completed count up to the suite total runs suite teardown and discards the
context again.

Suite runs are sequential. Starting a test of another suite while a run is
open is an InterleavedSuiteError unless strict isolation is turned off.
"""

import logging
from collections.abc import Callable

from .discovery import TestDescriptorRegistry, suite_descriptors
from .errors import (
    InterleavedSuiteError,
    SuiteSetupFailure,
    SuiteTeardownFailure,
)
from .models import NO_RUN, SuiteContext
from .ports import SuiteHooks

logger = logging.getLogger(__name__)


class SuiteLifecycleTracker:
    """Decides when suite setup and suite teardown fire.

    One tracker serves a whole test process; the state of the suite run in
    progress lives in an explicit SuiteContext.
    """

    def __init__(
        self,
        descriptors: TestDescriptorRegistry | None = None,
        strict_isolation: bool = True,
    ):
        """Initialize the tracker.

        Args:
            descriptors: Registry of test descriptors per suite class;
                defaults to the registry suite classes register with.
            strict_isolation: Raise InterleavedSuiteError when a suite starts
                while another one is in progress. If False, the stale run
                is abandoned with a warning instead.
        """
        self.descriptors = descriptors or suite_descriptors
        self.strict_isolation = strict_isolation
        self.context: SuiteContext | None = None
        self._counting_current = False
        self._in_suite_setup = False

    @property
    def total_tests(self) -> int:
        """Expected tests of the run in progress, or -1 when idle."""
        return self.context.total_tests if self.context else NO_RUN

    @property
    def tests_completed(self) -> int:
        return self.context.tests_completed if self.context else 0

    @property
    def in_progress(self) -> bool:
        return self.context is not None

    @property
    def in_suite_setup(self) -> bool:
        """Whether suite setup of the run in progress is executing right now."""
        return self._in_suite_setup

    def add_suite_cleanup(self, cleanup: Callable[[], None]) -> None:
        """Run cleanup when the run in progress is discarded.

        Cleanups run after suite teardown, or as soon as suite setup fails or
        the run is abandoned, most recently added first.

        Raises:
            RuntimeError: If no suite run is in progress.
        """
        if self.context is None:
            raise RuntimeError("No suite run in progress")
        self.context.cleanups.append(cleanup)

    def on_test_start(
        self, suite_class: type, test_name: str, hooks: SuiteHooks
    ) -> None:
        """Run suite setup if this is the first test, then per-test setup.

        Args:
            suite_class: Concrete class of the test about to run.
            test_name: Name of the test method about to run.
            hooks: The test case instance providing the hooks.

        Raises:
            SuiteSetupFailure: If suite setup failed, now or for an earlier
                test of the same suite run.
            InterleavedSuiteError: If another suite run is in progress.
        """
        self._counting_current = False
        if test_name not in self.descriptors.counted_names(suite_class):
            # Zero-test suites and uncounted methods never touch suite hooks.
            self._log_uncounted(suite_class, test_name)
            hooks.before()
            return

        context = self._context_for(suite_class)
        self._counting_current = True

        if context.setup_failure is not None:
            self._finish_test(context, hooks, run_teardown=False)
            raise SuiteSetupFailure(
                context.suite_name, "before_suite", "suite setup already failed"
            ) from context.setup_failure

        if context.is_first_test:
            self._run_suite_setup(context, hooks)

        try:
            hooks.before()
        except Exception:
            # tearDown is skipped when setUp raises, so count the test here.
            self._counting_current = False
            self._finish_test(context, hooks, run_teardown=True)
            raise

    def on_test_end(self, hooks: SuiteHooks) -> None:
        """Run per-test teardown, count the test, then suite teardown if last.

        Raises:
            SuiteTeardownFailure: If suite teardown failed.
        """
        counting = self._counting_current
        self._counting_current = False
        try:
            hooks.after()
        finally:
            if counting and self.context is not None:
                self._finish_test(self.context, hooks, run_teardown=True)

    def finish_incomplete(self, suite_class: type) -> bool:
        """Close a run whose remaining tests were never executed.

        Called after the last test of a class ran. When tests were
        deselected the completed count never reaches the total; suite
        teardown then runs on the hooks that ran suite setup.

        Returns:
            True if a run was closed.

        Raises:
            SuiteTeardownFailure: If suite teardown failed.
        """
        context = self.context
        if context is None or context.suite_class is not suite_class:
            return False

        logger.warning(
            f"Suite {context.suite_name} finished after "
            f"{context.tests_completed} of {context.total_tests} tests",
            extra={
                "suite": context.suite_name,
                "tests_completed": context.tests_completed,
                "total_tests": context.total_tests,
            },
        )
        if context.setup_failure is not None or context.owner is None:
            self.reset()
            return True
        self._run_suite_teardown(context, context.owner)
        return True

    def reset(self) -> None:
        """Discard the run in progress without running any suite hook.

        Suite cleanups registered for the run still run.
        """
        context = self.context
        self.context = None
        self._counting_current = False
        self._in_suite_setup = False
        if context is not None:
            self._run_cleanups(context)

    def _log_uncounted(self, suite_class: type, test_name: str) -> None:
        suite_name = suite_class.__qualname__
        extra = {"suite": suite_name, "test": test_name}
        if test_name.startswith("test") and self.context is None:
            # e.g. a test inherited from a mixin that is not a TestCase.
            logger.warning(
                f"{suite_name}.{test_name} is not counted toward its suite "
                "and runs outside suite setup and teardown",
                extra=extra,
            )
        else:
            logger.debug(f"{suite_name}.{test_name} is not a counted test", extra=extra)

    def _run_cleanups(self, context: SuiteContext) -> None:
        while context.cleanups:
            cleanup = context.cleanups.pop()
            try:
                cleanup()
            except Exception as e:
                logger.error(
                    f"Suite cleanup failed for {context.suite_name}: {e}",
                    exc_info=True,
                )

    def _context_for(self, suite_class: type) -> SuiteContext:
        context = self.context
        if context is not None and context.suite_class is not suite_class:
            if context.setup_failure is not None:
                logger.debug(
                    f"Discarding failed run of {context.suite_name}",
                    extra={"suite": context.suite_name},
                )
            elif self.strict_isolation:
                raise InterleavedSuiteError(
                    running=context.suite_name,
                    starting=suite_class.__qualname__,
                    completed=context.tests_completed,
                    total=context.total_tests,
                )
            else:
                logger.warning(
                    f"Abandoning run of {context.suite_name} "
                    f"({context.tests_completed} of {context.total_tests} tests) "
                    f"to start {suite_class.__qualname__}",
                    extra={"suite": context.suite_name},
                )
            self._run_cleanups(context)
            context = None

        if context is None:
            context = SuiteContext(
                suite_class=suite_class,
                total_tests=self.descriptors.total_tests(suite_class),
            )
            self.context = context
        return context

    def _run_suite_setup(self, context: SuiteContext, hooks: SuiteHooks) -> None:
        logger.info(
            f"Starting suite {context.suite_name} ({context.total_tests} tests)",
            extra={"suite": context.suite_name, "total_tests": context.total_tests},
        )
        context.owner = hooks
        self._in_suite_setup = True
        try:
            hooks.before_suite()
        except Exception as e:
            logger.error(
                f"Suite setup failed for {context.suite_name}: {e}",
                exc_info=True,
            )
            self._run_cleanups(context)
            failure = SuiteSetupFailure(context.suite_name, "before_suite", str(e))
            context.setup_failure = failure
            self._counting_current = False
            self._finish_test(context, hooks, run_teardown=False)
            raise failure from e
        finally:
            self._in_suite_setup = False

    def _finish_test(
        self, context: SuiteContext, hooks: SuiteHooks, run_teardown: bool
    ) -> None:
        context.record_test_finished()
        if not context.is_complete:
            return
        if run_teardown and context.setup_failure is None:
            self._run_suite_teardown(context, hooks)
        else:
            self.reset()

    def _run_suite_teardown(self, context: SuiteContext, hooks: SuiteHooks) -> None:
        try:
            hooks.after_suite()
        except Exception as e:
            logger.error(
                f"Suite teardown failed for {context.suite_name}: {e}",
                exc_info=True,
            )
            raise SuiteTeardownFailure(
                context.suite_name, "after_suite", str(e)
            ) from e
        finally:
            self.reset()

        logger.info(
            f"Finished suite {context.suite_name}",
            extra={"suite": context.suite_name, "total_tests": context.total_tests},
        )
