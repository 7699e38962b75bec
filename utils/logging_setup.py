from __future__ import annotations

import logging
import os
import sys
from typing import Any, Dict

from config.settings import get_settings


_INITIALIZED: bool = False

# Third-party loggers that log every HTTP connection at DEBUG/INFO
_NOISY_LOGGERS = ("urllib3", "requests")

_FORMAT = (
    "%(asctime)s %(levelname)s %(name)s %(message)s "
    "op=%(op)s status=%(status)s duration_ms=%(duration_ms)s "
    "backend=%(backend)s error=%(error)s run_id=%(run_id)s"
)


class SafeExtraFormatter(logging.Formatter):
    """Formatter for records logged with ``extra={"op": ..., "status": ...}``.

    Records without those extras (third-party libraries, plain ``logger.info``
    calls) get "-" placeholders so the format string never raises.
    """

    DEFAULTS: Dict[str, Any] = {
        "op": "-",
        "status": "-",
        "duration_ms": "-",
        "backend": "-",
        "error": "-",
        "run_id": "-",
    }

    def format(self, record: logging.LogRecord) -> str:  # type: ignore[override]
        for key, value in self.DEFAULTS.items():
            if not hasattr(record, key):
                setattr(record, key, value)
        return super().format(record)


class RunIdFilter(logging.Filter):
    """Stamp records with the current ``RUN_ID`` unless the caller set one."""

    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "run_id"):
            record.run_id = os.getenv("RUN_ID") or "-"
        return True


def init_logging(level: str | None = None) -> None:
    """Configure the root logger once per process; later calls are no-ops."""
    global _INITIALIZED
    if _INITIALIZED:
        return

    settings = get_settings()
    log_level = getattr(logging, (level or settings.log_level).upper(), logging.INFO)

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)

    if not root_logger.handlers:
        # stderr keeps CLI stdout clean for JSON output
        handler = logging.StreamHandler(sys.stderr)
        handler.setLevel(log_level)
        handler.setFormatter(SafeExtraFormatter(fmt=_FORMAT))
        handler.addFilter(RunIdFilter())
        root_logger.addHandler(handler)

    if log_level > logging.DEBUG:
        for name in _NOISY_LOGGERS:
            logging.getLogger(name).setLevel(logging.WARNING)

    _INITIALIZED = True
