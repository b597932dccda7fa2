from __future__ import annotations
import threading
import time
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional

from .logger import get_logger
from .models import Sample
from .workers import Evaluation, MonitorWorker

logger = get_logger(__name__)


class CycleState(str, Enum):
    IDLE = "idle"
    COLLECTING = "collecting"
    EVALUATING = "evaluating"
    PERSISTING = "persisting"
    SLEEPING = "sleeping"
    STOPPED = "stopped"


@dataclass(frozen=True)
class CycleResult:
    number: int
    sample: Optional[Sample]
    evaluation: Optional[Evaluation]
    persisted: bool
    collect_started: float      # monotonic
    persist_finished: float     # monotonic
    error: str = ""


class Ticker:
    """Cancellable sleep between cycles."""
    def __init__(self):
        self._stop = threading.Event()

    def wait(self, seconds: float) -> bool:
        """Sleep; False if stop() was called before or during the wait."""
        return not self._stop.wait(seconds)

    def stop(self) -> None:
        self._stop.set()

    @property
    def stopped(self) -> bool:
        return self._stop.is_set()


class Scheduler:
    """
    Drives the worker through
    IDLE → COLLECTING → EVALUATING → PERSISTING → SLEEPING → IDLE.

    The sleep is a fixed interval measured from the end of one cycle; time
    spent collecting is not subtracted. Cycles never overlap.
    """

    def __init__(self, worker: MonitorWorker, interval_seconds: float,
                 ticker: Optional[Ticker] = None,
                 clock: Callable[[], float] = time.monotonic,
                 on_state: Optional[Callable[[CycleState], None]] = None):
        self.worker = worker
        self.interval_seconds = interval_seconds
        self.ticker = ticker or Ticker()
        self._clock = clock
        self._on_state = on_state
        self._state = CycleState.IDLE
        self.cycles = 0

    @property
    def state(self) -> CycleState:
        return self._state

    def _enter(self, state: CycleState) -> None:
        self._state = state
        if self._on_state:
            self._on_state(state)

    def stop(self) -> None:
        """Stop after the in-flight cycle; cuts a pending sleep short."""
        logger.info("stop requested")
        self.ticker.stop()

    def step(self) -> CycleResult:
        """Run exactly one cycle, without sleeping."""
        self.cycles += 1
        n = self.cycles
        started = self._clock()
        sample = None
        ev = None
        try:
            self._enter(CycleState.COLLECTING)
            sample = self.worker.collect()

            self._enter(CycleState.EVALUATING)
            ev = self.worker.evaluate(sample)

            self._enter(CycleState.PERSISTING)
            persisted = self.worker.persist(sample, ev)
        except Exception as e:
            # keep the loop alive; next cycle starts fresh
            logger.exception(f"cycle {n} aborted: {e}")
            self._enter(CycleState.IDLE)
            return CycleResult(n, sample, ev, False, started, self._clock(), error=str(e))

        finished = self._clock()
        self._enter(CycleState.IDLE)
        logger.debug(
            f"cycle {n} done in {finished - started:.2f}s, "
            f"{len(ev.alerts)} alert(s)"
        )
        return CycleResult(n, sample, ev, persisted, started, finished)

    def run(self, max_cycles: Optional[int] = None) -> int:
        """Loop until stop() or max_cycles; returns the number of cycles run."""
        ran = 0
        logger.info(f"monitor loop started, interval {self.interval_seconds}s")
        try:
            while not self.ticker.stopped:
                self.step()
                ran += 1
                if max_cycles is not None and ran >= max_cycles:
                    break
                self._enter(CycleState.SLEEPING)
                if not self.ticker.wait(self.interval_seconds):
                    break
                self._enter(CycleState.IDLE)
        finally:
            self._enter(CycleState.STOPPED)
            logger.info(f"monitor loop stopped after {ran} cycle(s)")
        return ran
