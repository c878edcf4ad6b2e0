"""
Agent telemetry simulation.

Online computers report fresh usage figures and a recent last-seen stamp
every time they are read. Nothing is written back to the store.
"""

import random
from datetime import datetime, timedelta
from typing import Optional

from rmm.models import Computer, ComputerStatus
from rmm.schemas import ComputerOut


class TelemetrySampler:
    """Produces read-time views of computers with simulated agent metrics."""

    CPU_RANGE = (5, 95)
    RAM_RANGE = (20, 95)
    DISK_RANGE = (10, 90)
    MAX_LAST_SEEN_AGE_SEC = 60

    def __init__(self, rng: Optional[random.Random] = None):
        self.rng = rng or random.Random()

    def observe(self, computer: Computer) -> ComputerOut:
        view = ComputerOut.model_validate(computer)
        if computer.status != ComputerStatus.ONLINE:
            return view

        age = self.rng.uniform(0, self.MAX_LAST_SEEN_AGE_SEC)
        return view.model_copy(update={
            "cpu_usage": float(self.rng.randint(*self.CPU_RANGE)),
            "ram_usage": float(self.rng.randint(*self.RAM_RANGE)),
            "disk_usage": float(self.rng.randint(*self.DISK_RANGE)),
            "last_seen": datetime.utcnow() - timedelta(seconds=age),
        })
