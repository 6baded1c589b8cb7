"""Read-only access to the terminal-session records.

The records are written by an external session tracker, one small JSON file
per session named after a filesystem-safe form of the session id. This
module never writes them; a record that is missing, half-written or
otherwise unreadable is reported as absent.
"""
from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Iterable, Mapping, Optional, Protocol

log = logging.getLogger(__name__)

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9_-]")


def session_key(session_id: str) -> str:
    """Return the filesystem-safe key used to name a session's record file."""
    return _UNSAFE_CHARS.sub("_", session_id)


@dataclass(frozen=True)
class SessionRecord:
    session_id: str
    terminal_app: str = ""
    window_id: str = ""

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any], session_id: str = "") -> "SessionRecord":
        def _str(key: str) -> str:
            value = data.get(key)
            if value is None or isinstance(value, (dict, list)):
                return ""
            return str(value)

        return cls(
            session_id=_str("session_id") or session_id,
            terminal_app=_str("terminal_app"),
            window_id=_str("window_id"),
        )


class SessionRegistry(Protocol):
    def lookup(self, session_id: str) -> Optional[SessionRecord]:
        ...


class DirectorySessionRegistry:
    """Session records stored as ``<root>/<session_key>.json``."""

    suffix = ".json"

    def __init__(self, root: Path | str) -> None:
        self.root = Path(root)

    def path_for(self, session_id: str) -> Path:
        return self.root / f"{session_key(session_id)}{self.suffix}"

    def lookup(self, session_id: str) -> Optional[SessionRecord]:
        if not session_id:
            return None
        path = self.path_for(session_id)
        try:
            raw = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            log.debug("No session record for %s at %s", session_id, path)
            return None
        except (OSError, UnicodeDecodeError) as e:
            log.debug("Unreadable session record %s: %s", path, e)
            return None
        try:
            data = json.loads(raw)
        except json.JSONDecodeError as e:
            # The tracker may be mid-write; treat as absent
            log.debug("Unparseable session record %s: %s", path, e)
            return None
        if not isinstance(data, dict):
            log.debug("Session record %s is not an object", path)
            return None
        return SessionRecord.from_mapping(data, session_id=session_id)


class StaticSessionRegistry:
    """In-memory registry, keyed by session id."""

    def __init__(self, records: Iterable[SessionRecord] = ()) -> None:
        self._records: Dict[str, SessionRecord] = {r.session_id: r for r in records}

    def lookup(self, session_id: str) -> Optional[SessionRecord]:
        return self._records.get(session_id)
