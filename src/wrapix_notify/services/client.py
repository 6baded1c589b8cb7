"""Fire-and-forget notification client used from inside the sandbox.

`send` never raises and always returns 0: a missing daemon, an unreachable
gateway or a failed write are all reported only through debug logging.
"""
from __future__ import annotations

import logging
from typing import Optional

from ..config import load_config
from ..models.request import DEFAULT_TITLE, NotificationRequest, encode_request
from .transport import select_transport

log = logging.getLogger(__name__)


def build_request(
    title: Optional[str] = None,
    message: Optional[str] = None,
    sound: Optional[str] = None,
    session_id: Optional[str] = None,
) -> NotificationRequest:
    return NotificationRequest(
        title=title or DEFAULT_TITLE,
        message=message or "",
        sound=sound or "",
        session_id=session_id or "",
    )


def send(
    title: Optional[str] = None,
    message: Optional[str] = None,
    sound: Optional[str] = None,
    *,
    cfg: Optional[object] = None,
) -> int:
    """Send one notification request to the host daemon. Always returns 0."""
    try:
        if cfg is None:
            cfg = load_config().client
        endpoint = select_transport(cfg)
        if endpoint is None:
            return 0

        req = build_request(title, message, sound, getattr(cfg, "session_id", ""))
        payload = encode_request(req)
        timeout = float(getattr(cfg, "timeout", 1.0))

        sock = endpoint.connect(timeout)
        try:
            sock.sendall(payload)
        finally:
            sock.close()
        log.debug("sent to %s", endpoint)
    except Exception as e:  # best-effort: the caller must never see a failure
        log.debug("send failed: %s", e)
    return 0
