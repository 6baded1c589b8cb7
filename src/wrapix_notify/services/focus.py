"""Decide whether the terminal that owns a session currently has focus.

Two live queries exist, picked by platform at startup:

- ActiveWindowQuery (X11): compares the session's ``window_id`` with
  ``xdotool getactivewindow``.
- FrontmostAppQuery (macOS): compares the session's ``terminal_app`` with
  the frontmost application reported by System Events.

FocusResolver fails open: any doubt (no record, empty field, query error)
means "not focused" so the notification is shown.
"""
from __future__ import annotations

import logging
import subprocess
import sys
from typing import Optional, Protocol, Tuple

from ..models.session import SessionRegistry

log = logging.getLogger(__name__)


class FocusQueryError(RuntimeError):
    pass


class FocusQuery(Protocol):
    record_field: str

    def focused(self) -> Optional[str]:
        ...


class _CommandQuery:
    command: Tuple[str, ...] = ()
    record_field = ""

    def __init__(self, timeout: float = 2.0) -> None:
        self.timeout = timeout

    def focused(self) -> Optional[str]:
        try:
            result = subprocess.run(
                list(self.command),
                stdin=subprocess.DEVNULL,
                capture_output=True,
                text=True,
                timeout=self.timeout,
                check=False,
            )
        except (OSError, subprocess.SubprocessError) as e:
            raise FocusQueryError(f"{self.command[0]}: {e}") from e
        if result.returncode != 0:
            raise FocusQueryError(f"{self.command[0]} exited {result.returncode}: {(result.stderr or '').strip()}")
        return result.stdout.strip() or None


class ActiveWindowQuery(_CommandQuery):
    command = ("xdotool", "getactivewindow")
    record_field = "window_id"


class FrontmostAppQuery(_CommandQuery):
    command = (
        "osascript",
        "-e",
        'tell application "System Events" to name of first application process whose frontmost is true',
    )
    record_field = "terminal_app"


def focus_query_for_platform(platform: Optional[str] = None, timeout: float = 2.0) -> FocusQuery:
    platform = sys.platform if platform is None else platform
    if platform == "darwin":
        return FrontmostAppQuery(timeout=timeout)
    return ActiveWindowQuery(timeout=timeout)


class FocusResolver:
    def __init__(self, registry: SessionRegistry, query: FocusQuery) -> None:
        self.registry = registry
        self.query = query

    def is_session_focused(self, session_id: str) -> bool:
        """True only if the session's terminal is known to hold focus right now."""
        if not session_id:
            return False
        try:
            record = self.registry.lookup(session_id)
        except Exception as e:
            log.debug("Session lookup for %s failed: %s", session_id, e)
            return False
        if record is None:
            return False

        expected = getattr(record, self.query.record_field, "")
        if not expected:
            log.debug("Session %s has no %s", session_id, self.query.record_field)
            return False

        try:
            current = self.query.focused()
        except Exception as e:
            log.debug("Focus query failed: %s", e)
            return False
        # Exact match only; renamed or transient ids fall through to "not focused"
        return current is not None and current == expected
