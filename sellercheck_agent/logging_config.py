from __future__ import annotations

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path

from .config import load_logging_config

_FILE_HANDLER_NAME = "sellercheck_file_handler"
_CONSOLE_HANDLER_NAME = "sellercheck_console_handler"


def setup_logging(log_path: str | None = None, level: int | str | None = None) -> None:
    cfg = load_logging_config()
    if log_path is None:
        log_path = str(cfg.log_file)
    if level is None:
        level = cfg.level

    Path(log_path).parent.mkdir(parents=True, exist_ok=True)

    fmt = logging.Formatter(
        fmt="%(asctime)s %(levelname)s %(name)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    file_handler = RotatingFileHandler(
        log_path,
        maxBytes=5_000_000,  # 5MB
        backupCount=3,
        encoding="utf-8",
    )
    file_handler.setFormatter(fmt)
    file_handler.name = _FILE_HANDLER_NAME

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(fmt)
    console_handler.name = _CONSOLE_HANDLER_NAME

    root = logging.getLogger()
    root.setLevel(level)

    # Idempotent: only our own handlers are replaced (uvicorn installs its own).
    ours = {_FILE_HANDLER_NAME, _CONSOLE_HANDLER_NAME}
    for handler in [h for h in root.handlers if getattr(h, "name", "") in ours]:
        root.removeHandler(handler)
        handler.close()

    root.addHandler(file_handler)
    root.addHandler(console_handler)
