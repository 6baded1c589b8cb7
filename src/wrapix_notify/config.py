from __future__ import annotations

import logging
import os
import sys
from types import SimpleNamespace
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

try:
    import tomllib  # Python 3.11+
except Exception:  # pragma: no cover
    import tomli as tomllib  # type: ignore[no-redef]

from platformdirs import PlatformDirs

log = logging.getLogger(__name__)

CONFIG_FILENAME = "config.toml"
APP_NAME = "wrapix"
APP_AUTHOR = "wrapix"

# Where the host socket is mounted inside the sandbox
CONTAINER_SOCKET_PATH = "/run/wrapix/notify.sock"
TCP_PORT = 5959
# Host side of the sandbox VM network; containers see the host at this address
TCP_BIND_HOST = "192.168.64.1"

ENV_TCP = "WRAPIX_NOTIFY_TCP"
ENV_VERBOSE = "WRAPIX_NOTIFY_VERBOSE"
ENV_ALWAYS = "WRAPIX_NOTIFY_ALWAYS"
ENV_SOCKET = "WRAPIX_NOTIFY_SOCKET"
ENV_SESSION_ID = "WRAPIX_SESSION_ID"

_TRUE_VALUES = {"1", "true", "yes", "on"}


def _dirs() -> PlatformDirs:
    return PlatformDirs(appname=APP_NAME, appauthor=APP_AUTHOR, roaming=False)


def _load_from_path(p: Path) -> Dict[str, Any]:
    with p.open("rb") as f:
        return tomllib.load(f)


def env_flag(env: Mapping[str, str], name: str) -> bool:
    """Return True when the environment toggle `name` is set to a truthy value."""
    return str(env.get(name, "")).strip().lower() in _TRUE_VALUES


def default_socket_path() -> Path:
    """Host-side socket location under the per-user runtime directory."""
    return Path(_dirs().user_runtime_dir) / "notify.sock"


def default_sessions_dir() -> Path:
    """Directory the session tracker writes its per-session records into."""
    return Path(_dirs().user_state_dir) / "sessions"


def user_config_path() -> Path:
    return Path(_dirs().user_config_dir) / CONFIG_FILENAME


def load_config(
    path: Optional[Path | str] = None,
    env: Optional[Mapping[str, str]] = None,
    platform: Optional[str] = None,
) -> SimpleNamespace:
    """Load configuration into a SimpleNamespace with `client` and `daemon` sections.

    Behavior:
    - If an explicit `path` is provided and the file doesn't exist, raise FileNotFoundError.
    - If `path` is None, read the config file from the user config folder when present,
      otherwise use built-in defaults. Nothing is written to disk.
    - Environment toggles (WRAPIX_NOTIFY_*) are applied last and win over the file.
    """
    env = os.environ if env is None else env
    platform = sys.platform if platform is None else platform
    data: Dict[str, Any] = {}

    if path is not None:
        cfg_path = Path(path)
        if not cfg_path.exists():
            raise FileNotFoundError(f"Config file not found at {cfg_path}")
        data = _load_from_path(cfg_path)
    else:
        user_cfg = user_config_path()
        if user_cfg.exists():
            try:
                data = _load_from_path(user_cfg)
            except (OSError, tomllib.TOMLDecodeError) as e:
                log.warning("Ignoring unreadable config %s: %s", user_cfg, e)
                data = {}

    verbose = env_flag(env, ENV_VERBOSE)
    socket_override = env.get(ENV_SOCKET) or None

    client = data.get("client", {})
    client_ns = SimpleNamespace(
        socket_path=Path(socket_override or client.get("socket_path", CONTAINER_SOCKET_PATH)),
        tcp_port=int(client.get("tcp_port", TCP_PORT)),
        timeout=float(client.get("timeout", 1.0)),
        use_tcp=env_flag(env, ENV_TCP) or bool(client.get("use_tcp", False)),
        session_id=str(env.get(ENV_SESSION_ID, "")),
        verbose=verbose,
    )

    daemon = data.get("daemon", {})
    log_level = str(daemon.get("log_level", "INFO")).upper()
    if verbose:
        log_level = "DEBUG"
    daemon_ns = SimpleNamespace(
        socket_path=Path(socket_override or daemon.get("socket_path") or default_socket_path()),
        # The darwin sandbox cannot pass unix sockets through its shared filesystem
        tcp_enabled=bool(daemon.get("tcp_enabled", platform == "darwin")),
        tcp_host=str(daemon.get("tcp_host", TCP_BIND_HOST)),
        tcp_port=int(daemon.get("tcp_port", TCP_PORT)),
        sessions_dir=Path(daemon.get("sessions_dir") or default_sessions_dir()),
        dispatch_timeout=float(daemon.get("dispatch_timeout", 10.0)),
        focus_timeout=float(daemon.get("focus_timeout", 2.0)),
        always_notify=env_flag(env, ENV_ALWAYS) or bool(daemon.get("always_notify", False)),
        verbose=verbose,
        log_level=log_level,
        platform=platform,
    )

    log.debug(
        "Loaded config: client socket=%s tcp=%s port=%s; daemon socket=%s tcp_enabled=%s bind=%s:%s sessions=%s always=%s",
        client_ns.socket_path, client_ns.use_tcp, client_ns.tcp_port,
        daemon_ns.socket_path, daemon_ns.tcp_enabled, daemon_ns.tcp_host, daemon_ns.tcp_port,
        daemon_ns.sessions_dir, daemon_ns.always_notify,
    )
    return SimpleNamespace(client=client_ns, daemon=daemon_ns)
