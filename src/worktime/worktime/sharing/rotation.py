"""Periodic replacement of every active sharing code.

``CodeRotator`` performs one pass; ``CodeRotationScheduler`` owns the
background thread that runs passes at a fixed interval. One scheduler is built
per process by the container and reached through it.
"""
from __future__ import annotations

import logging
import threading
from dataclasses import asdict, dataclass
from datetime import datetime
from typing import Callable, List, Optional, Sequence

from ..common.datetime_utils import now_local
from ..core.constants import CODE_ROTATION_INTERVAL_SECONDS, MAX_ROTATION_ATTEMPTS
from ..core.enums import SchedulerState
from ..core.exceptions import DomainError
from .codes import CodeGenerator, generate_code, unique_code
from .model import CodeAssignment, RotationResult
from .repository import SharingRepository

logger = logging.getLogger(__name__)


class CodeRotator:
    def __init__(
        self,
        sharing: SharingRepository,
        *,
        generate: CodeGenerator = generate_code,
        max_attempts: int = MAX_ROTATION_ATTEMPTS,
        clock: Callable[[], datetime] = now_local,
    ):
        self._sharing = sharing
        self._generate = generate
        self._max_attempts = int(max_attempts)
        self._clock = clock

    def plan(self, holders: Sequence[CodeAssignment]) -> List[CodeAssignment]:
        """Pick a new code for every holder, pairwise distinct and distinct from all current codes."""

        taken = {h.code for h in holders}
        planned: List[CodeAssignment] = []
        for holder in holders:
            code = unique_code(taken.__contains__, generate=self._generate, max_attempts=self._max_attempts)
            taken.add(code)
            planned.append(CodeAssignment(user_id=holder.user_id, code=code))
        return planned

    def rotate_all(self) -> RotationResult:
        started_at = self._clock()
        holders = self._sharing.list_code_holders()
        logger.info("Found %d users with sharing codes", len(holders))

        if not holders:
            return RotationResult(rotated=0, started_at=started_at, finished_at=self._clock())

        assignments = self.plan(holders)
        self._sharing.batch_update_codes(assignments)

        logger.info("Rotated %d sharing codes", len(assignments))
        return RotationResult(rotated=len(assignments), started_at=started_at, finished_at=self._clock())


@dataclass(frozen=True)
class SchedulerStatus:
    state: SchedulerState
    interval_seconds: float
    passes: int = 0
    failures: int = 0
    last_pass_at: Optional[datetime] = None
    last_rotated: int = 0
    last_error: Optional[str] = None

    @property
    def running(self) -> bool:
        return self.state is SchedulerState.RUNNING

    def to_dict(self) -> dict:
        data = asdict(self)
        data["state"] = self.state.value
        data["last_pass_at"] = self.last_pass_at.isoformat() if self.last_pass_at else None
        return data


class CodeRotationScheduler:
    """stopped -> running -> stopped.

    ``start`` runs one pass right away and then one per interval; calling it
    while running changes nothing. ``stop`` prevents further passes but lets an
    in-flight pass finish. Passes never overlap, even across a stop/start.
    """

    def __init__(
        self,
        rotator: CodeRotator,
        *,
        interval_seconds: float = CODE_ROTATION_INTERVAL_SECONDS,
        clock: Callable[[], datetime] = now_local,
    ):
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be positive")
        self._rotator = rotator
        self._interval = float(interval_seconds)
        self._clock = clock

        self._lock = threading.Lock()
        self._pass_lock = threading.Lock()
        self._thread: Optional[threading.Thread] = None
        self._stop_event: Optional[threading.Event] = None

        self._passes = 0
        self._failures = 0
        self._last_pass_at: Optional[datetime] = None
        self._last_rotated = 0
        self._last_error: Optional[str] = None

    @property
    def interval_seconds(self) -> float:
        return self._interval

    def start(self) -> bool:
        """Start the background thread. Returns False if it was already running."""

        with self._lock:
            if self._thread is not None:
                return False
            stop_event = threading.Event()
            thread = threading.Thread(
                target=self._run,
                args=(stop_event,),
                name="sharing-code-rotation",
                daemon=True,
            )
            self._stop_event = stop_event
            self._thread = thread
            thread.start()

        logger.info("Started sharing code rotation (every %ss)", int(self._interval))
        return True

    def stop(self, *, wait: bool = False, timeout: Optional[float] = None) -> bool:
        """Stop scheduling passes. Returns False if it was not running."""

        with self._lock:
            thread, stop_event = self._thread, self._stop_event
            if thread is None or stop_event is None:
                return False
            stop_event.set()
            self._thread = None
            self._stop_event = None

        if wait and thread is not threading.current_thread():
            thread.join(timeout)
        logger.info("Stopped sharing code rotation")
        return True

    def status(self) -> SchedulerStatus:
        with self._lock:
            return SchedulerStatus(
                state=SchedulerState.RUNNING if self._thread is not None else SchedulerState.STOPPED,
                interval_seconds=self._interval,
                passes=self._passes,
                failures=self._failures,
                last_pass_at=self._last_pass_at,
                last_rotated=self._last_rotated,
                last_error=self._last_error,
            )

    def run_pass(self) -> Optional[RotationResult]:
        """Run one rotation pass now. Failures are logged and recorded, never raised."""

        with self._pass_lock:
            try:
                result = self._rotator.rotate_all()
            except DomainError as exc:
                # Batch was not applied: the previous codes stay valid until the next pass.
                self._record_failure(exc)
                logger.error("Sharing code rotation pass failed: %s", exc)
                return None
            except Exception as exc:
                self._record_failure(exc)
                logger.exception("Unexpected error in sharing code rotation pass")
                return None

            with self._lock:
                self._passes += 1
                self._last_pass_at = result.finished_at
                self._last_rotated = result.rotated
                self._last_error = None
            return result

    def _record_failure(self, exc: Exception) -> None:
        with self._lock:
            self._passes += 1
            self._failures += 1
            self._last_pass_at = self._clock()
            self._last_error = f"{type(exc).__name__}: {exc}"

    def _run(self, stop_event: threading.Event) -> None:
        if not stop_event.is_set():
            self.run_pass()
        while not stop_event.wait(self._interval):
            self.run_pass()
