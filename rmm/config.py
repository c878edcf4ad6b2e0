import os


def _int_env(name: str, default: int) -> int:
    raw = str(os.getenv(name, str(default))).strip()
    try:
        return int(raw)
    except Exception:
        return default


def _float_env(name: str, default: float) -> float:
    raw = str(os.getenv(name, str(default))).strip()
    try:
        return float(raw)
    except Exception:
        return default


# In-memory by default (a private file removed at exit): all data is reset on restart.
DATABASE_URL = str(os.getenv("RMM_DATABASE_URL", "sqlite://")).strip()

API_PORT = _int_env("RMM_API_PORT", 3001)
BIND_HOST = str(os.getenv("RMM_BIND_HOST", "0.0.0.0")).strip()
API_BASE_URL = str(os.getenv("RMM_API_BASE_URL", "http://localhost:3001/api")).strip()

EXECUTION_MIN_DELAY_SEC = _float_env("RMM_EXECUTION_MIN_DELAY_SEC", 1.5)
EXECUTION_MAX_DELAY_SEC = _float_env("RMM_EXECUTION_MAX_DELAY_SEC", 4.0)
EXECUTION_SUCCESS_RATE = _float_env("RMM_EXECUTION_SUCCESS_RATE", 0.7)
COMMAND_SUCCESS_RATE = _float_env("RMM_COMMAND_SUCCESS_RATE", 0.8)

DEFAULT_LICENSED_PC_COUNT = _int_env("RMM_DEFAULT_LICENSED_PC_COUNT", 10)
SEED_DEMO_DATA = _int_env("RMM_SEED_DEMO_DATA", 1) == 1

SQLITE_BUSY_TIMEOUT_SEC = _float_env("RMM_SQLITE_BUSY_TIMEOUT_SEC", 30.0)

AI_REQUEST_TIMEOUT_SEC = _int_env("RMM_AI_TIMEOUT_SEC", 30)

LOG_LEVEL = str(os.getenv("RMM_LOG_LEVEL", "INFO")).strip().upper()
