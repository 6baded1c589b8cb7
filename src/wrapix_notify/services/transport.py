"""Pick how the client reaches the host daemon.

Inside a Linux sandbox the host's unix socket is mounted at a fixed path.
The darwin sandbox cannot pass unix sockets through its shared filesystem,
so there the client talks TCP to the default-route gateway, which is the
host as seen from the sandbox network.
"""
from __future__ import annotations

import logging
import os
import socket
import stat
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union

from ..utils import routes

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class UnixEndpoint:
    path: Path

    def connect(self, timeout: float) -> socket.socket:
        sock = socket.socket(socket.AF_UNIX, socket.SOCK_STREAM)
        try:
            sock.settimeout(timeout)
            sock.connect(str(self.path))
        except OSError:
            sock.close()
            raise
        return sock

    def __str__(self) -> str:
        return f"unix:{self.path}"


@dataclass(frozen=True)
class TcpEndpoint:
    host: str
    port: int

    def connect(self, timeout: float) -> socket.socket:
        sock = socket.create_connection((self.host, self.port), timeout=timeout)
        sock.settimeout(timeout)
        return sock

    def __str__(self) -> str:
        return f"tcp:{self.host}:{self.port}"


Endpoint = Union[UnixEndpoint, TcpEndpoint]


def is_socket(path: Path) -> bool:
    try:
        return stat.S_ISSOCK(os.stat(path).st_mode)
    except OSError:
        return False


def select_transport(cfg: object) -> Optional[Endpoint]:
    """Return the endpoint to use, or None when no transport is available.

    `cfg` is the client config section (see config.load_config).
    """
    if getattr(cfg, "use_tcp", False):
        gateway = routes.default_gateway()
        if not gateway:
            log.debug("TCP transport requested but no default gateway found")
            return None
        return TcpEndpoint(gateway, int(getattr(cfg, "tcp_port")))

    path = Path(getattr(cfg, "socket_path"))
    if not is_socket(path):
        log.debug("socket not found at %s", path)
        return None
    return UnixEndpoint(path)
