from __future__ import annotations

import logging
import socket
import struct
import subprocess
from pathlib import Path
from typing import Optional

log = logging.getLogger(__name__)

PROC_NET_ROUTE = Path("/proc/net/route")
RTF_GATEWAY = 0x2


def parse_proc_net_route(text: str) -> Optional[str]:
    """Return the gateway of the first default route in /proc/net/route content.

    Columns are: Iface Destination Gateway Flags ...; addresses are
    little-endian hex.
    """
    for line in text.splitlines()[1:]:
        cols = line.split()
        if len(cols) < 4:
            continue
        try:
            destination = int(cols[1], 16)
            gateway = int(cols[2], 16)
            flags = int(cols[3], 16)
        except ValueError:
            continue
        if destination != 0 or not flags & RTF_GATEWAY or gateway == 0:
            continue
        return socket.inet_ntoa(struct.pack("<L", gateway))
    return None


def parse_ip_route(text: str) -> Optional[str]:
    """Return the `via` address of the first `default` line of `ip route` output."""
    for line in text.splitlines():
        words = line.split()
        if not words or words[0] != "default":
            continue
        if "via" in words:
            idx = words.index("via")
            if idx + 1 < len(words):
                return words[idx + 1]
    return None


def default_gateway(*, timeout: float = 2.0) -> Optional[str]:
    """Resolve the default-route gateway address. Never raises; None if unknown."""
    try:
        gw = parse_proc_net_route(PROC_NET_ROUTE.read_text())
        if gw:
            return gw
    except OSError as e:
        log.debug("Cannot read %s: %s", PROC_NET_ROUTE, e)

    try:
        result = subprocess.run(
            ["ip", "route", "show", "default"],
            capture_output=True,
            text=True,
            timeout=timeout,
            check=False,
        )
    except (OSError, subprocess.SubprocessError) as e:
        log.debug("ip route failed: %s", e)
        return None
    if result.returncode != 0:
        log.debug("ip route exited %s: %s", result.returncode, result.stderr.strip())
        return None
    return parse_ip_route(result.stdout)
