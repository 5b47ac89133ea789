"""
Logging for installation passes.

Ledger decisions go to the module logger as usual and are mirrored to the
install context's ``progress`` listener when it has one, so the host
installer's own output shows which actions were skipped or recorded.
"""

from __future__ import annotations

import logging
from typing import Any


class InstallLogger:
    """Module logger that also reports to an install context."""

    def __init__(self, name: str):
        self.logger = logging.getLogger(name)

    def debug(self, ctx: Any, msg: str, *args: Any) -> None:
        self.log(logging.DEBUG, ctx, msg, *args)

    def info(self, ctx: Any, msg: str, *args: Any) -> None:
        self.log(logging.INFO, ctx, msg, *args)

    def warning(self, ctx: Any, msg: str, *args: Any) -> None:
        self.log(logging.WARNING, ctx, msg, *args)

    def log(self, level: int, ctx: Any, msg: str, *args: Any) -> None:
        if not self.logger.isEnabledFor(level):
            return
        self.logger.log(level, msg, *args)
        progress = getattr(ctx, "progress", None)
        if callable(progress):
            text = msg % args if args else msg
            progress(f"{logging.getLevelName(level)} {text}")
