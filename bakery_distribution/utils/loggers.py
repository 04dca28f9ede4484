"""
utils/loggers.py

Logging for the back office.

Public API
----------
- get_logger(name) -> logging.Logger          plain console logger (CLI, scripts)
- configure_ledger_log(file_path, level)      JSON-lines file log for ledger mutations
- log_event(logger, op, phase, message, extra)
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, Optional

__all__ = ["get_logger", "configure_ledger_log", "log_event"]

# Package root logger; module loggers (logging.getLogger(__name__)) propagate here.
_LEDGER_LOGGER_NAME = "bakery_distribution"


def get_logger(name="bakery_distribution"):
    logger = logging.getLogger(name)
    if not logger.handlers:
        logger.setLevel(logging.INFO)
        ch = logging.StreamHandler()
        ch.setFormatter(logging.Formatter("%(asctime)s [%(levelname)s] %(name)s: %(message)s"))
        logger.addHandler(ch)
    return logger


class _JsonLineFormatter(logging.Formatter):
    """
    Minimal JSON-lines formatter:
      {"ts":"2025-09-16T12:00:01.123Z","level":"INFO","name":"...","msg":"...","extra":{...}}
    """
    def format(self, record: logging.LogRecord) -> str:  # type: ignore[override]
        payload = {
            "ts": datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z"),
            "level": record.levelname,
            "name": record.name,
            "msg": record.getMessage(),
        }
        if hasattr(record, "extra_payload") and isinstance(record.extra_payload, dict):
            payload["extra"] = record.extra_payload
        return json.dumps(payload, ensure_ascii=False, default=str)


def configure_ledger_log(file_path: Optional[str | Path] = None, level: int | str = logging.INFO) -> logging.Logger:
    """
    Attach a JSON-lines file handler to the package logger, once.
    Defaults to config.LOG_PATH. WARNING+ is mirrored to stderr.
    """
    from ..config import LOG_PATH

    logger = logging.getLogger(_LEDGER_LOGGER_NAME)
    logger.setLevel(level)
    logger.propagate = False  # don't duplicate to root

    if any(getattr(h, "_ledger_handler", False) for h in logger.handlers):
        return logger

    log_file = Path(file_path) if file_path else LOG_PATH
    log_file.parent.mkdir(parents=True, exist_ok=True)

    fh = logging.FileHandler(str(log_file), mode="a", encoding="utf-8", delay=True)
    fh.setLevel(level)
    fh.setFormatter(_JsonLineFormatter())
    fh._ledger_handler = True  # type: ignore[attr-defined]
    logger.addHandler(fh)

    sh = logging.StreamHandler()
    sh.setLevel(logging.WARNING)
    sh.setFormatter(_JsonLineFormatter())
    sh._ledger_handler = True  # type: ignore[attr-defined]
    logger.addHandler(sh)

    return logger


def log_event(
    logger: logging.Logger,
    op: str,
    phase: str,
    message: str,
    extra: Dict[str, object] | None = None,
    level: int = logging.INFO,
) -> None:
    """
    Log a structured ledger event.

    Args:
        logger: any logger; the JSON formatter picks up the payload when configured.
        op: operation name, e.g. "generate_bill" or "record_payment".
        phase: "done", "rejected", "correction", ...
        message: short human-readable message.
        extra: ids and amounts involved.
        level: logging level (default INFO).
    """
    extra_payload = {"op": op, "phase": phase}
    if extra:
        # Merge without overwriting the required keys
        for k, v in extra.items():
            if k not in extra_payload:
                extra_payload[k] = v

    logger.log(level, message, extra={"extra_payload": extra_payload})
