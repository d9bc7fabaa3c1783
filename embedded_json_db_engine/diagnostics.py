from __future__ import annotations
import logging
import sys
from typing import Any, Callable, Dict, Optional

from rich.console import Console
from rich.markup import escape

logger = logging.getLogger(__name__)

ProgressSink = Callable[[Dict[str, Any]], None]
ErrorSink = Callable[[Dict[str, Any]], None]


class Diagnostics:
    """
    Reporting channel injected into collections and cursors.

    progress() forwards {"phase", "pct", "msg"} events to on_progress.
    error() logs the failure and forwards {"op", "error", "msg"} to on_error;
    the caller re-raises afterwards.
    """

    def __init__(self, on_progress: Optional[ProgressSink] = None, on_error: Optional[ErrorSink] = None) -> None:
        self._on_progress = on_progress
        self._on_error = on_error

    def progress(self, phase: str, pct: float, msg: str = "") -> None:
        if self._on_progress is None:
            return
        evt = {"phase": phase, "pct": max(0.0, min(100.0, float(pct))), "msg": msg}
        try:
            self._on_progress(evt)
        except Exception:
            logger.exception(f"progress sink failed on {phase}")

    def error(self, op: str, exc: BaseException) -> None:
        logger.error(f"{op} failed: {type(exc).__name__}: {exc}")
        if self._on_error is None:
            return
        evt = {"op": op, "error": exc, "msg": str(exc)}
        try:
            self._on_error(evt)
        except Exception:
            logger.exception(f"error sink failed while reporting {op}")


def _stderr_console() -> Console:
    return Console(file=sys.stderr, color_system="standard")


def console_progress_printer(console: Optional[Console] = None) -> ProgressSink:
    """Progress sink printing start/done lines through a rich console."""
    con = console or _stderr_console()

    def printer(evt: Dict[str, Any]) -> None:
        pct = int(evt.get("pct", 0))
        parts = [p for p in (evt.get("phase", ""), f"{pct}%", (f"- {evt['msg']}" if evt.get("msg") else "")) if p]
        con.print(escape("[progress] " + " ".join(parts)), highlight=False)

    return printer


def console_error_printer(console: Optional[Console] = None) -> ErrorSink:
    """Error sink printing failed operations in red through a rich console."""
    con = console or _stderr_console()

    def printer(evt: Dict[str, Any]) -> None:
        err = evt.get("error")
        name = type(err).__name__ if err is not None else "Error"
        con.print(f"[bold red]{escape(str(evt.get('op', '?')))} failed[/bold red]: {escape(name)}: {escape(str(evt.get('msg', '')))}", highlight=False)

    return printer
