"""Run one step handler and classify how it ended.

Each invocation gets its own CaptureHandle holding the output buffer and
the failure origin. The only process-wide state is the redirection of
``sys.stdout``/``sys.stderr``, which the engine guards with a lock; a
handler that leaves those streams swapped poisons the engine until
``reset()`` is called.
"""

from __future__ import annotations

import contextlib
import dataclasses
import inspect
import io
import logging
import sys
import threading
import traceback
from dataclasses import dataclass, field
from typing import Any, Callable, Optional

from cukes.core.models import UNKNOWN_ORIGIN, OutcomeStatus, Step, StepOutcome

logger = logging.getLogger(__name__)

UNIMPLEMENTED_MARKER = "not yet implemented"


class StepUnimplemented(NotImplementedError):
    """Raised by a handler that is still a stub."""

    def __init__(self, message: str = UNIMPLEMENTED_MARKER):
        super().__init__(message)


def unimplemented() -> None:
    """Declare the calling step handler a stub."""
    raise StepUnimplemented()


def is_unimplemented(exc: BaseException) -> bool:
    return isinstance(exc, NotImplementedError) or str(exc) == UNIMPLEMENTED_MARKER


def format_origin(tb) -> str:
    """``file:line[:column]`` of the innermost frame of a traceback."""
    frames = traceback.extract_tb(tb)
    if not frames:
        return UNKNOWN_ORIGIN
    frame = frames[-1]
    colno = getattr(frame, "colno", None)
    if colno is not None:
        return f"{frame.filename}:{frame.lineno}:{colno + 1}"
    return f"{frame.filename}:{frame.lineno}"


def format_exception(exc: BaseException) -> str:
    return "".join(traceback.format_exception_only(type(exc), exc)).strip()


@dataclass
class CaptureHandle:
    """Output and failure details collected during one invocation."""
    buffer: io.StringIO = field(default_factory=io.StringIO)
    error: Optional[Exception] = None
    origin: Optional[str] = None
    value: Any = None

    @property
    def output(self) -> str:
        return self.buffer.getvalue()

    def record(self, exc: Exception) -> None:
        self.error = exc
        self.origin = format_origin(exc.__traceback__)

    def outcome(self) -> StepOutcome:
        """Classify the invocation."""
        if self.error is None:
            return _returned_outcome(self.value)

        if is_unimplemented(self.error):
            return StepOutcome.unimplemented()

        output = self.output
        message = output if output else format_exception(self.error)
        return StepOutcome.failed(message, self.origin or UNKNOWN_ORIGIN)


def _returned_outcome(value: Any) -> StepOutcome:
    if inspect.iscoroutine(value):
        value.close()
        return StepOutcome.failed(
            "Step handler returned a coroutine; handlers must be synchronous", UNKNOWN_ORIGIN
        )
    if not isinstance(value, StepOutcome):
        return StepOutcome.passed()
    if value.status == OutcomeStatus.FAILED and not value.origin:
        return dataclasses.replace(value, origin=UNKNOWN_ORIGIN)
    if value.status in (OutcomeStatus.SKIPPED, OutcomeStatus.CORRUPTED):
        return StepOutcome.failed(
            f"Step returned reserved outcome: {value.status.value}", UNKNOWN_ORIGIN
        )
    return value


class CaptureEngine:
    """Executes handlers one at a time under output capture."""

    def __init__(self, capture_output: bool = True):
        self.capture_output = capture_output
        self._lock = threading.Lock()
        self._poisoned: Optional[str] = None

    @property
    def poisoned(self) -> bool:
        return self._poisoned is not None

    def reset(self) -> None:
        """Clear a poisoned state after the streams have been repaired."""
        self._poisoned = None

    def invoke(
        self,
        handler: Callable[..., Any],
        world: Any,
        step: Step,
        captures: Optional[list[str]] = None,
    ) -> StepOutcome:
        """Run ``handler(world, captures, step)`` and classify the result.

        Args:
            handler: Step handler
            world: Scenario state, mutated by the handler
            step: Step being executed
            captures: Pattern captures, empty for exact matches

        Returns:
            StepOutcome
        """
        handle, corrupted = self._run(lambda: handler(world, captures or [], step))
        if corrupted is not None:
            return corrupted
        return handle.outcome()

    def construct(self, factory: Callable[[], Any]) -> tuple[Any, StepOutcome]:
        """Build a world under capture.

        Returns:
            Tuple of (world or None, outcome)
        """
        handle, corrupted = self._run(factory)
        if corrupted is not None:
            return None, corrupted
        if handle.error is not None:
            output = handle.output
            message = output if output else format_exception(handle.error)
            return None, StepOutcome.failed(message, handle.origin or UNKNOWN_ORIGIN)
        return handle.value, StepOutcome.passed()

    def _run(self, call: Callable[[], Any]) -> tuple[CaptureHandle, Optional[StepOutcome]]:
        handle = CaptureHandle()

        if self._poisoned is not None:
            return handle, StepOutcome.corrupted(self._poisoned)

        if not self._lock.acquire(blocking=False):
            logger.error("Capture requested while another step is running")
            return handle, StepOutcome.corrupted("Capture is already in use by another step")

        try:
            if not self.capture_output:
                self._call(call, handle)
                return handle, None

            original = (sys.stdout, sys.stderr)
            with contextlib.redirect_stdout(handle.buffer), contextlib.redirect_stderr(handle.buffer):
                self._call(call, handle)
                leaked = sys.stdout is not handle.buffer or sys.stderr is not handle.buffer

            if leaked:
                # redirect_* restored what they saved; make sure that is the original pair
                sys.stdout, sys.stderr = original
                self._poisoned = "Output capture was left inconsistent by a previous step"
                logger.error("Step replaced sys.stdout/sys.stderr during capture; engine poisoned")
                return handle, StepOutcome.corrupted(
                    "Step replaced sys.stdout or sys.stderr during capture"
                )
            if handle.buffer.closed:
                logger.error("Step closed the capture buffer; its output is lost")
                return handle, StepOutcome.corrupted("Step closed sys.stdout or sys.stderr during capture")
            return handle, None
        finally:
            self._lock.release()

    @staticmethod
    def _call(call: Callable[[], Any], handle: CaptureHandle) -> None:
        try:
            handle.value = call()
        except Exception as e:
            handle.record(e)
