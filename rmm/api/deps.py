"""
Shared router dependencies.

The execution runner is created at startup and injected by main.py; tests
override get_execution_runner with a deterministic runner.
"""

from rmm.services.telemetry import TelemetrySampler

# Will be injected by main.py
_execution_runner = None
_telemetry = TelemetrySampler()


def set_execution_runner(runner):
    """Set execution runner reference (called by main.py)"""
    global _execution_runner
    _execution_runner = runner


def get_execution_runner():
    return _execution_runner


def get_telemetry() -> TelemetrySampler:
    return _telemetry
