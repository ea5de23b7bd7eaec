# src/arcflow_produce/config.py
from __future__ import annotations

import logging
import os

# ---- Settings ---------------------------------------------------------------
# All overridable through the environment.
OUT_DIR = os.getenv("ARCFLOW_OUT_DIR", "out")
EXPORT_PREFIX = os.getenv("ARCFLOW_EXPORT_PREFIX", "bln")

# ---- Logging ---------------------------------------------------------------
# Controlled by env var ARCFLOW_LOG:
#   off | info | debug
# - info: one line per stage (counts, timings) plus skipped-row warnings
# - debug: also merge gaps and other per-row decisions
_log_mode = os.getenv("ARCFLOW_LOG", "info").strip().lower()

_LEVELS = {"info": logging.INFO, "debug": logging.DEBUG}

_logger = logging.getLogger("arcflow_produce")


def configure_logging(mode: str | None = None) -> None:
    """Attach a stderr handler to the package logger (idempotent)."""
    mode = (mode or _log_mode).strip().lower()
    if mode == "off":
        _logger.setLevel(logging.CRITICAL + 1)
        return
    _logger.setLevel(_LEVELS.get(mode, logging.INFO))
    if not _logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s"))
        _logger.addHandler(handler)
