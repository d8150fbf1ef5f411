from __future__ import annotations

import logging
import time
from concurrent.futures import Future
from concurrent.futures import TimeoutError as FutureTimeout
from enum import Enum
from typing import Callable, Optional, Protocol

from .types import TakeoffOutcome, TakeoffRequest

log = logging.getLogger(__name__)


class TakeoffExecutor(Protocol):
    """Collaborator that physically commands the climb."""

    def wait_until_ready(self) -> None: ...

    def request_takeoff(self, request: TakeoffRequest) -> Future: ...


class TakeoffState(Enum):
    IDLE = 0
    AWAITING_SERVER = 1
    REQUESTED = 2
    SUCCEEDED = 3
    TIMED_OUT = 4
    FAILED = 5


_TERMINAL = {
    TakeoffOutcome.SUCCEEDED: TakeoffState.SUCCEEDED,
    TakeoffOutcome.TIMED_OUT: TakeoffState.TIMED_OUT,
    TakeoffOutcome.FAILED: TakeoffState.FAILED,
}


class TakeoffSequencer:
    """One-shot takeoff handshake that gates the control loop.

    IDLE -> AWAITING_SERVER -> REQUESTED -> SUCCEEDED | TIMED_OUT | FAILED.
    On success the settle delay is observed before ``run`` returns.
    """

    def __init__(
        self,
        executor: TakeoffExecutor,
        height_m: float = 3.0,
        timeout_s: float = 60.0,
        settle_s: float = 10.0,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.executor = executor
        self.height_m = height_m
        self.timeout_s = timeout_s
        self.settle_s = settle_s
        self._sleep = sleep
        self.state = TakeoffState.IDLE
        self.outcome: Optional[TakeoffOutcome] = None

    def _transition(self, state: TakeoffState) -> None:
        log.debug("Takeoff state %s -> %s", self.state.name, state.name)
        self.state = state

    def run(self) -> TakeoffOutcome:
        if self.state is not TakeoffState.IDLE:
            raise RuntimeError(f"takeoff sequencer already ran (state={self.state.name})")

        self._transition(TakeoffState.AWAITING_SERVER)
        log.info("Waiting for takeoff executor to become ready")
        self.executor.wait_until_ready()

        log.info("Takeoff executor ready, requesting takeoff to %.1f m", self.height_m)
        future = self.executor.request_takeoff(TakeoffRequest(height_m=self.height_m))
        self._transition(TakeoffState.REQUESTED)

        try:
            future.result(timeout=self.timeout_s)
            outcome = TakeoffOutcome.SUCCEEDED
        except FutureTimeout:
            future.cancel()
            outcome = TakeoffOutcome.TIMED_OUT
        except Exception as exc:
            log.error("Takeoff request failed: %s", exc)
            outcome = TakeoffOutcome.FAILED

        self.outcome = outcome
        self._transition(_TERMINAL[outcome])

        if outcome is TakeoffOutcome.SUCCEEDED:
            log.info("Reached target height, settling for %.1f s", self.settle_s)
            self._sleep(self.settle_s)
        elif outcome is TakeoffOutcome.TIMED_OUT:
            log.warning("Takeoff did not complete within %.1f s: manual landing required", self.timeout_s)
        else:
            log.warning("Takeoff aborted: manual landing required")
        return outcome
