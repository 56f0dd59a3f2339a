"""
Phase manager for tracking the sweep state machine and its timing.
"""

import time
import logging
from typing import Optional

logger = logging.getLogger(__name__)

IDLE = "idle"
DISPATCHING = "dispatching"
DRAINING = "draining"
SUMMARIZED = "summarized"
DONE = "done"

# Allowed transitions, per configuration: idle -> dispatching -> draining -> summarized -> idle.
# After the last configuration, idle -> done.
_TRANSITIONS = {
    IDLE: (DISPATCHING, DONE),
    DISPATCHING: (DRAINING,),
    DRAINING: (SUMMARIZED,),
    SUMMARIZED: (IDLE,),
    DONE: (),
}


class PhaseManager:
    """Tracks which sweep is running and which phase it is in."""

    def __init__(self):
        """Initialize the phase manager."""
        self.phase: str = IDLE
        self.sweep_id: str = ""
        self.sweeps_completed: int = 0
        self.phase_start_ts: Optional[float] = None
        self.sweep_start_ts: Optional[float] = None

        logger.debug("Initialized PhaseManager")

    def transition(self, new_phase: str) -> None:
        """Move to ``new_phase``.

        Raises:
            RuntimeError: If the transition is not allowed from the current phase
        """
        if new_phase not in _TRANSITIONS[self.phase]:
            raise RuntimeError(f"Invalid sweep transition: {self.phase} -> {new_phase}")

        now = time.time()
        old_phase = self.phase
        phase_duration = now - self.phase_start_ts if self.phase_start_ts is not None else 0.0
        self.phase = new_phase
        self.phase_start_ts = now

        logger.debug(
            f"Sweep {self.sweep_id or '-'}: {old_phase} -> {new_phase} "
            f"({old_phase} took {phase_duration:.3f}s)"
        )
        if new_phase == SUMMARIZED:
            self.sweeps_completed += 1
            logger.info(f"Sweep {self.sweep_id} summarized after {self.sweep_duration():.3f}s")

    def sweep_duration(self) -> float:
        """Seconds since the current sweep began, 0.0 outside a sweep."""
        if self.sweep_start_ts is None:
            return 0.0
        return time.time() - self.sweep_start_ts

    def begin_sweep(self, sweep_id: str) -> None:
        """Start dispatching a new sweep.

        Args:
            sweep_id: Unique identifier for the sweep (e.g., "cpc_10")
        """
        self.sweep_id = sweep_id
        self.sweep_start_ts = time.time()
        self.transition(DISPATCHING)
        logger.info(f"Began sweep: {sweep_id}")

    def finish(self) -> None:
        """Mark the whole run as done."""
        self.sweep_id = ""
        self.transition(DONE)

    def is_done(self) -> bool:
        return self.phase == DONE

    def __repr__(self) -> str:
        """String representation of the phase manager."""
        return f"PhaseManager(phase='{self.phase}', sweep_id='{self.sweep_id}', completed={self.sweeps_completed})"
