from __future__ import annotations

import logging
import sys

LOG_FORMAT = "%(asctime)s [%(levelname)-8s] %(name)-20s: %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def setup_logging(level: str = "INFO") -> logging.Logger:
    """Attaches a console handler to the root logger once."""
    root = logging.getLogger()
    root.setLevel(getattr(logging, str(level).upper(), logging.INFO))
    if not any(getattr(h, "_proctor", False) for h in root.handlers):
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(LOG_FORMAT, LOG_DATE_FORMAT))
        handler._proctor = True  # type: ignore[attr-defined]
        root.addHandler(handler)
    return root
