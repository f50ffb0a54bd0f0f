"""Caller location resolution for default telemetry event names.

When a telemetry item is logged without an explicit event name, the name is
derived from the first stack frame outside this package and the stdlib
``logging`` machinery, rendered as ``"<module>:<function>"``.
"""
from __future__ import annotations

import os
import sys
from dataclasses import dataclass
from types import FrameType
from typing import Optional

__all__ = ["CallerInfo", "resolve_caller", "default_event_name"]

_PACKAGE_DIR = os.path.dirname(os.path.abspath(__file__))
_LOGGING_DIR = os.path.dirname(os.path.abspath(sys.modules["logging"].__file__ or ""))


@dataclass(frozen=True)
class CallerInfo:
    module: str
    function: str
    file_path: str
    line_number: int

    @property
    def event_name(self) -> str:
        return f"{self.module}:{self.function}"

    @property
    def file_name(self) -> str:
        return os.path.basename(self.file_path)


def _is_internal(frame: FrameType) -> bool:
    path = os.path.abspath(frame.f_code.co_filename)
    return path.startswith(_PACKAGE_DIR + os.sep) or path.startswith(_LOGGING_DIR + os.sep)


def resolve_caller(skip: int = 1) -> Optional[CallerInfo]:
    """Return the first frame above ``skip`` that is not library-internal."""
    try:
        frame: Optional[FrameType] = sys._getframe(skip)
    except ValueError:
        return None
    while frame is not None and _is_internal(frame):
        frame = frame.f_back
    if frame is None:
        return None
    return CallerInfo(
        module=frame.f_globals.get("__name__", "?"),
        function=frame.f_code.co_name,
        file_path=frame.f_code.co_filename,
        line_number=frame.f_lineno,
    )


def default_event_name(skip: int = 2) -> str:
    caller = resolve_caller(skip)
    return caller.event_name if caller else "unknown:unknown"
