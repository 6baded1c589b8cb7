"""Native desktop notification dispatch on the host.

Uses notify-send on Linux and terminal-notifier on macOS, with osascript
as the macOS fallback. If no notifier program is installed the message is
printed to stderr instead. Dispatch never raises.
"""
from __future__ import annotations

import logging
import shutil
import subprocess
import sys
from typing import Callable, List, Optional, Tuple

log = logging.getLogger(__name__)

CommandBuilder = Callable[[str, str, str], List[str]]


def _applescript_string(value: str) -> str:
    return '"' + value.replace("\\", "\\\\").replace('"', '\\"') + '"'


def notify_send_command(title: str, message: str, sound: str = "") -> List[str]:
    # notify-send has no sound option
    return ["notify-send", "--", title, message]


def terminal_notifier_command(title: str, message: str, sound: str = "") -> List[str]:
    cmd = ["terminal-notifier", "-title", title, "-message", message]
    if sound:
        cmd += ["-sound", sound]
    return cmd


def osascript_command(title: str, message: str, sound: str = "") -> List[str]:
    script = f"display notification {_applescript_string(message)} with title {_applescript_string(title)}"
    if sound:
        script += f" sound name {_applescript_string(sound)}"
    return ["osascript", "-e", script]


class Notifier:
    """Runs the platform notifier program for each notification."""

    def __init__(self, platform: Optional[str] = None, timeout: float = 10.0) -> None:
        self.platform = sys.platform if platform is None else platform
        self.timeout = timeout
        self.backend, self._build = self._select_backend()

    def _select_backend(self) -> Tuple[str, Optional[CommandBuilder]]:
        if self.platform == "darwin":
            if shutil.which("terminal-notifier"):
                return "terminal-notifier", terminal_notifier_command
            if shutil.which("osascript"):
                return "osascript", osascript_command
        elif shutil.which("notify-send"):
            return "notify-send", notify_send_command
        log.info("No notifier program found; notifications go to stderr")
        return "stderr", None

    def notify(self, title: str, message: str, sound: str = "") -> bool:
        """Show a notification. Returns True if it was handed off successfully."""
        if self._build is None:
            print(f"[Notification] {title}: {message}", file=sys.stderr)
            return True

        cmd = self._build(title, message, sound)
        try:
            result = subprocess.run(
                cmd,
                stdin=subprocess.DEVNULL,
                capture_output=True,
                text=True,
                timeout=self.timeout,
                check=False,
            )
        except subprocess.TimeoutExpired:
            log.debug("%s timed out after %ss", cmd[0], self.timeout)
            return False
        except OSError as e:
            log.debug("%s failed to start: %s", cmd[0], e)
            return False
        if result.returncode != 0:
            log.debug("%s exited %s: %s", cmd[0], result.returncode, (result.stderr or "").strip())
            return False
        return True


def notify(title: str, message: str, sound: str = "") -> bool:
    """Show a notification with the default notifier for this platform. Never raises."""
    return Notifier().notify(title, message, sound)
