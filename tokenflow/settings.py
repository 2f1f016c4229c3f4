import os
from dataclasses import dataclass

DEFAULT_BACKEND_URL = "http://localhost:8001/execute"


def _env_float(name: str, default: float) -> float:
    try:
        return float(os.getenv(name, default))
    except (TypeError, ValueError):
        return default


def _env_int(name: str, default: int) -> int:
    try:
        return int(os.getenv(name, default))
    except (TypeError, ValueError):
        return default


@dataclass
class Settings:
    backend_url: str = DEFAULT_BACKEND_URL
    timeout_s: float = 30.0
    trigger_attempts: int = 3
    trigger_delay_s: float = 0.1
    step_delay_s: float = 0.0
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "Settings":
        """Read ``TOKENFLOW_*`` variables; malformed numbers keep their defaults."""
        return cls(
            backend_url=os.getenv("TOKENFLOW_BACKEND_URL", DEFAULT_BACKEND_URL),
            timeout_s=_env_float("TOKENFLOW_TIMEOUT_S", 30.0),
            trigger_attempts=max(1, _env_int("TOKENFLOW_TRIGGER_ATTEMPTS", 3)),
            trigger_delay_s=_env_float("TOKENFLOW_TRIGGER_DELAY_S", 0.1),
            step_delay_s=_env_float("TOKENFLOW_STEP_DELAY_S", 0.0),
            log_level=os.getenv("TOKENFLOW_LOG_LEVEL", "INFO").upper(),
        )
