"""
Synthetic log emission scheduler.

A Dispatcher owns a bounded FIFO queue of EmissionRequest. A single daemon
consumer thread pulls requests in submission order and starts one detached
EmissionTask thread per request. Each task emits one structured record per
tick at a fixed cadence until its deadline passes, then exits on its own.

Tasks are never joined or cancelled. At shutdown any task still running dies
with the process.
"""

import base64
import enum
import os
import queue
import threading
import time
from dataclasses import dataclass
from datetime import timedelta
from typing import Any, Callable, Dict, Optional, Tuple

from logtestserver.durations import parse_duration
from logtestserver.errors import EntropyUnavailable, InvalidDuration, InvalidRequest
from logtestserver.response import DUMMY_RESPONSE
from logtestserver.structured_log import StructuredLogger

ID_SIZE = 10
SYNTHETIC_MSG = "some random fake data for log testing"
DEFAULT_QUEUE_SIZE = 5
DEFAULT_MIN_CADENCE = 0.001


# --- Requests ---
@dataclass(frozen=True)
class EmissionRequest:
    """How long to emit for and how many records per second."""

    lifetime: timedelta
    rate: int

    def __post_init__(self):
        if not isinstance(self.lifetime, timedelta) or self.lifetime <= timedelta(0):
            raise InvalidDuration(str(self.lifetime), reason="duration must be positive")
        if isinstance(self.rate, bool) or not isinstance(self.rate, int):
            raise InvalidRequest(f"rate must be an integer, got {self.rate!r}")
        if self.rate <= 0:
            raise InvalidRequest(f"rate must be a positive number of emissions per second, got {self.rate}")

    @classmethod
    def parse(cls, duration: str, rate: int) -> "EmissionRequest":
        """
        Build a request from its wire fields.

        Raises InvalidDuration for a bad or non-positive duration, and
        InvalidRequest for a bad rate. The duration is checked first.
        """
        return cls(lifetime=parse_duration(duration), rate=rate)


def cadence_for(rate: int, floor: float = DEFAULT_MIN_CADENCE) -> float:
    """Seconds between ticks for a rate, never below floor."""
    return max(1.0 / rate, floor)


# --- Random ids ---
class RandomPayloadSource:
    """Fixed-length random identifiers from the operating system CSPRNG."""

    def __init__(self, size: int = ID_SIZE, reader: Callable[[int], bytes] = os.urandom):
        self.size = size
        self.reader = reader

    def next(self) -> bytes:
        try:
            data = self.reader(self.size)
        except (OSError, NotImplementedError) as exc:
            raise EntropyUnavailable(str(exc) or type(exc).__name__) from exc
        if len(data) != self.size:
            raise EntropyUnavailable(f"short read: got {len(data)} of {self.size} bytes")
        return data


# --- Tasks ---
class TaskState(enum.Enum):
    RUNNING = "running"
    TERMINATED = "terminated"


class EmissionTask:
    """
    Emits one record per tick until the deadline passes.

    The deadline is checked before every tick, so a task runs for at least its
    lifetime and at most one cadence longer. An EntropyUnavailable from the
    source is logged once at error level and ends the task.
    """

    def __init__(
        self,
        deadline: float,
        cadence: float,
        source: RandomPayloadSource,
        logger: StructuredLogger,
        extra: Optional[Dict[str, Any]] = None,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
        name: str = "emission",
    ):
        self.deadline = deadline
        self.cadence = cadence
        self.source = source
        self.logger = logger
        self.extra = DUMMY_RESPONSE if extra is None else extra
        self.clock = clock
        self.sleep = sleep
        self.name = name
        self.state = TaskState.RUNNING
        self.emitted = 0

    def run(self) -> None:
        try:
            while self.clock() < self.deadline:
                try:
                    payload_id = self.source.next()
                except EntropyUnavailable as exc:
                    self.logger.error("rand failed", err=str(exc), task=self.name)
                    return
                self.logger.info(
                    SYNTHETIC_MSG,
                    id=base64.b64encode(payload_id).decode("ascii"),
                    extra=self.extra,
                )
                self.emitted += 1
                self.sleep(self.cadence)
        finally:
            self.state = TaskState.TERMINATED
            self.logger.debug("emission task finished", task=self.name, emitted=self.emitted)


# --- Dispatcher ---
class Dispatcher:
    """Bounded intake queue with one consumer that starts a task per request."""

    def __init__(
        self,
        logger: StructuredLogger,
        source: Optional[RandomPayloadSource] = None,
        queue_size: int = DEFAULT_QUEUE_SIZE,
        min_cadence: float = DEFAULT_MIN_CADENCE,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ):
        if queue_size < 1:
            raise ValueError(f"queue_size must be at least 1, got {queue_size}")
        self.logger = logger
        self.source = source if source is not None else RandomPayloadSource()
        self.min_cadence = min_cadence
        self.clock = clock
        self.sleep = sleep
        self.queue_size = queue_size
        self._queue: "queue.Queue[Tuple[EmissionRequest, float]]" = queue.Queue(maxsize=queue_size)
        self._consumer: Optional[threading.Thread] = None
        self._start_lock = threading.Lock()
        self.started = 0

    @property
    def pending(self) -> int:
        return self._queue.qsize()

    @property
    def running(self) -> bool:
        return self._consumer is not None and self._consumer.is_alive()

    def cadence_for(self, request: EmissionRequest) -> float:
        return cadence_for(request.rate, self.min_cadence)

    def start(self) -> None:
        """Start the consumer thread. Calling it again is a no-op."""
        with self._start_lock:
            if self._consumer is not None:
                return
            self._consumer = threading.Thread(target=self._consume, name="emission-dispatcher", daemon=True)
            self._consumer.start()
        self.logger.debug("emission dispatcher started", queue_size=self.queue_size)

    def submit(self, request: EmissionRequest) -> None:
        """
        Queue a request. Blocks while the queue is full.

        The deadline is fixed here, so time spent waiting in the queue counts
        against the request's lifetime.
        """
        deadline = self.clock() + request.lifetime.total_seconds()
        self._queue.put((request, deadline))

    def _consume(self) -> None:
        while True:
            request, deadline = self._queue.get()
            try:
                self._spawn(request, deadline)
            except Exception as exc:
                self.logger.error(
                    "failed to start emission task",
                    err=str(exc),
                    err_type=type(exc).__name__,
                    rate=request.rate,
                )
            finally:
                self._queue.task_done()

    def _spawn(self, request: EmissionRequest, deadline: float) -> None:
        self.started += 1
        name = f"emission-{self.started}"
        cadence = self.cadence_for(request)
        if cadence > 1.0 / request.rate:
            self.logger.warning(
                "rate exceeds cadence floor, clamping",
                task=name,
                rate=request.rate,
                cadence_ms=cadence * 1000,
            )
        task = EmissionTask(
            deadline=deadline,
            cadence=cadence,
            source=self.source,
            logger=self.logger,
            clock=self.clock,
            sleep=self.sleep,
            name=name,
        )
        self.logger.info(
            "emission task started",
            task=name,
            rate=request.rate,
            lifetime_ms=int(request.lifetime.total_seconds() * 1000),
            cadence_ms=cadence * 1000,
        )
        threading.Thread(target=task.run, name=name, daemon=True).start()
