import logging
import os
import sys
from typing import List, Optional

from .config import ENV_VERBOSE, env_flag, load_config
from .models.session import DirectorySessionRegistry
from .services import client
from .services.daemon import ListenerError, NotificationDaemon
from .services.focus import FocusResolver, focus_query_for_platform
from .services.notifier import Notifier

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def _setup_logging(level_name: str) -> None:
    level = getattr(logging, str(level_name).upper(), logging.INFO)
    logging.basicConfig(level=level, format=LOG_FORMAT, stream=sys.stderr)
    logging.getLogger().setLevel(level)


def build_daemon(cfg) -> NotificationDaemon:
    """Wire notifier, focus resolver and listeners for the daemon config section."""
    notifier = Notifier(platform=cfg.platform, timeout=cfg.dispatch_timeout)
    resolver = FocusResolver(
        DirectorySessionRegistry(cfg.sessions_dir),
        focus_query_for_platform(cfg.platform, timeout=cfg.focus_timeout),
    )
    return NotificationDaemon(cfg, notifier, resolver)


def main(argv: Optional[List[str]] = None) -> int:
    """wrapix-notifyd: serve notification requests until signalled."""
    ns = load_config()
    cfg = ns.daemon
    _setup_logging(cfg.log_level)
    log = logging.getLogger("wrapix_notify")

    daemon = build_daemon(cfg)
    log.info("Notifier backend: %s; sessions at %s", daemon.notifier.backend, cfg.sessions_dir)
    if cfg.always_notify:
        log.info("Focus suppression disabled")
    try:
        daemon.serve()
    except ListenerError as e:
        print(f"wrapix-notifyd: {e}", file=sys.stderr)
        return 1
    return 0


def notify_main(argv: Optional[List[str]] = None) -> int:
    """wrapix-notify [title [message [sound]]]: always exits 0."""
    args = list(sys.argv[1:] if argv is None else argv)
    # Positional title, message, sound; anything past the third is ignored
    title, message, sound = (args + [None, None, None])[:3]

    _setup_logging("DEBUG" if env_flag(os.environ, ENV_VERBOSE) else "WARNING")
    log = logging.getLogger("wrapix_notify")
    try:
        cfg = load_config().client
    except Exception as e:
        log.debug("wrapix-notify: bad configuration: %s", e)
        return 0
    return client.send(title, message, sound, cfg=cfg)


if __name__ == "__main__":
    raise SystemExit(main())
