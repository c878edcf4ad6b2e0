"""
Procedure execution backends.

Executions are created Pending by the store and handed to a runner, which
later resolves each one exactly once to Success or Failed. The simulated
runner stands in for real agent dispatch; the manual runner resolves on
demand and is used wherever outcomes must be deterministic.
"""

import logging
import random
import threading
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Dict, List, Optional

from sqlalchemy.orm.exc import StaleDataError

from rmm.config import EXECUTION_MAX_DELAY_SEC, EXECUTION_MIN_DELAY_SEC, EXECUTION_SUCCESS_RATE
from rmm.models import ExecutionStatus, ProcedureExecution

logger = logging.getLogger(__name__)

SUCCESS_LOG_LINE = "Execution completed successfully."
FAILURE_LOG_LINE = "Execution failed. Error: Simulated error."
SUCCESS_OUTPUT = "Output: OK"
FAILURE_OUTPUT = "Output: Error"


def complete_execution(db, execution_id: str, success: bool) -> bool:
    """
    Move a Pending execution to its terminal state.

    Returns False (and changes nothing) when the execution is gone or was
    already resolved.
    """
    execution = db.get(ProcedureExecution, execution_id)
    if execution is None:
        logger.info(f"Execution {execution_id} no longer exists, skipping completion")
        return False
    if execution.status != ExecutionStatus.PENDING:
        logger.warning(f"Execution {execution_id} already {execution.status.value}, skipping completion")
        return False

    execution.status = ExecutionStatus.SUCCESS if success else ExecutionStatus.FAILED
    execution.end_time = datetime.utcnow()
    line = SUCCESS_LOG_LINE if success else FAILURE_LOG_LINE
    execution.logs = f"{execution.logs}\n{line}" if execution.logs else line
    execution.output = SUCCESS_OUTPUT if success else FAILURE_OUTPUT
    try:
        db.commit()
    except StaleDataError:
        # Deleted by a request between the read and the write
        db.rollback()
        logger.info(f"Execution {execution_id} was deleted while completing, skipping")
        return False

    if success:
        logger.info(f"Execution {execution_id} on {execution.computer_name} succeeded")
    else:
        logger.warning(f"Execution {execution_id} on {execution.computer_name} failed")
    return True


class ExecutionRunner(ABC):
    """Dispatches Pending executions and reports their outcome back to the store."""

    def __init__(self, session_factory):
        self.session_factory = session_factory

    def start(self):
        pass

    def stop(self):
        pass

    @abstractmethod
    def submit(self, execution_id: str) -> None:
        ...

    def _resolve(self, execution_id: str, success: bool) -> bool:
        db = self.session_factory()
        try:
            return complete_execution(db, execution_id, success)
        finally:
            db.close()


class SimulatedExecutionRunner(ExecutionRunner):
    """
    Resolves each execution after a random delay with a weighted coin flip.
    Runs timers in background threads.
    """

    def __init__(
        self,
        session_factory,
        min_delay_sec: float = EXECUTION_MIN_DELAY_SEC,
        max_delay_sec: float = EXECUTION_MAX_DELAY_SEC,
        success_rate: float = EXECUTION_SUCCESS_RATE,
        rng: Optional[random.Random] = None,
    ):
        """
        Initialize simulated runner.

        Args:
            session_factory: SQLAlchemy session factory
            min_delay_sec: Shortest simulated run time
            max_delay_sec: Longest simulated run time
            success_rate: Probability that an execution succeeds
            rng: Random source (seedable for reproducible runs)
        """
        super().__init__(session_factory)
        self.min_delay = min_delay_sec
        self.max_delay = max_delay_sec
        self.success_rate = success_rate
        self.rng = rng or random.Random()

        self.running = False
        self._timers: Dict[str, threading.Timer] = {}
        self._timers_lock = threading.Lock()

        logger.info(
            f"Simulated execution runner initialized: delay={min_delay_sec}-{max_delay_sec}s, "
            f"success_rate={success_rate:.0%}"
        )

    def start(self):
        """Accept submissions"""
        if self.running:
            logger.warning("Execution runner already running")
            return
        self.running = True
        logger.info("Execution runner started")

    def stop(self):
        """Cancel outstanding timers; their executions stay Pending"""
        self.running = False
        with self._timers_lock:
            timers = list(self._timers.values())
            self._timers.clear()
        for timer in timers:
            timer.cancel()
        logger.info(f"Execution runner stopped ({len(timers)} pending timers cancelled)")

    def submit(self, execution_id: str) -> None:
        if not self.running:
            logger.warning(f"Execution runner not running, execution {execution_id} stays Pending")
            return

        delay = self.rng.uniform(self.min_delay, self.max_delay)
        success = self.rng.random() < self.success_rate
        timer = threading.Timer(delay, self._fire, args=(execution_id, success))
        timer.daemon = True
        with self._timers_lock:
            self._timers[execution_id] = timer
        timer.start()
        logger.debug(f"Execution {execution_id} scheduled to finish in {delay:.2f}s")

    def pending_count(self) -> int:
        with self._timers_lock:
            return len(self._timers)

    def _fire(self, execution_id: str, success: bool):
        with self._timers_lock:
            self._timers.pop(execution_id, None)
        try:
            self._resolve(execution_id, success)
        except Exception as e:
            logger.error(f"Failed to complete execution {execution_id}: {e}", exc_info=True)


class ManualExecutionRunner(ExecutionRunner):
    """Queues submissions until the caller resolves them."""

    def __init__(self, session_factory):
        super().__init__(session_factory)
        self.submitted: List[str] = []

    def submit(self, execution_id: str) -> None:
        self.submitted.append(execution_id)

    def resolve(self, execution_id: str, success: bool = True) -> bool:
        if execution_id in self.submitted:
            self.submitted.remove(execution_id)
        return self._resolve(execution_id, success)

    def resolve_all(self, success: bool = True) -> int:
        resolved = 0
        for execution_id in list(self.submitted):
            if self.resolve(execution_id, success):
                resolved += 1
        return resolved
