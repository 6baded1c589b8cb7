"""Notification request record and its newline-delimited JSON wire codec.

Each request travels as exactly one UTF-8 line holding a JSON object with
the keys ``title``, ``message``, ``sound`` and ``session_id``. JSON string
escaping keeps quotes, backslashes and embedded newlines from breaking the
record framing.
"""
from __future__ import annotations

import json
from dataclasses import asdict, dataclass
from typing import Any, Dict, Union

DEFAULT_TITLE = "Claude Code"
MAX_RECORD_BYTES = 64 * 1024
FIELDS = ("title", "message", "sound", "session_id")


class MalformedRecord(ValueError):
    """A wire line that cannot be turned into a NotificationRequest."""


@dataclass(frozen=True)
class NotificationRequest:
    title: str = DEFAULT_TITLE
    message: str = ""
    sound: str = ""
    session_id: str = ""

    def to_dict(self) -> Dict[str, str]:
        return asdict(self)


def encode_request(req: NotificationRequest) -> bytes:
    """Serialize a request to a single newline-terminated wire record."""
    # json.dumps escapes control characters, so the only raw newline is the terminator
    line = json.dumps(req.to_dict(), ensure_ascii=False, separators=(",", ":"))
    return line.encode("utf-8") + b"\n"


def decode_request(line: Union[bytes, str]) -> NotificationRequest:
    """Parse one wire record, applying defaults for absent fields.

    Raises MalformedRecord for anything that is not a JSON object of string values.
    """
    raw = line if isinstance(line, bytes) else line.encode("utf-8", "surrogatepass")
    if len(raw) > MAX_RECORD_BYTES:
        raise MalformedRecord(f"record exceeds {MAX_RECORD_BYTES} bytes")

    if isinstance(line, bytes):
        try:
            text = line.decode("utf-8")
        except UnicodeDecodeError as e:
            raise MalformedRecord(f"invalid UTF-8: {e}") from e
    else:
        text = line

    try:
        data: Any = json.loads(text)
    except (json.JSONDecodeError, RecursionError) as e:
        # Deeply nested arrays exhaust the decoder stack before failing to parse
        raise MalformedRecord(f"invalid JSON: {e}") from e
    if not isinstance(data, dict):
        raise MalformedRecord(f"expected a JSON object, got {type(data).__name__}")

    values: Dict[str, str] = {}
    for key in FIELDS:
        value = data.get(key)
        if value is None:
            continue
        if not isinstance(value, str):
            raise MalformedRecord(f"field {key!r} must be a string")
        values[key] = value

    if not values.get("title"):
        values["title"] = DEFAULT_TITLE
    return NotificationRequest(**values)
