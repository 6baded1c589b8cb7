"""Host-side notification daemon.

Listens on a unix socket (always) and on a TCP port bound to the sandbox
network's host address (darwin only, where the sandbox cannot reach a unix
socket). Every connection is served on its own thread and may carry any
number of newline-terminated request records. A bad record, a failed focus
query or a failed notifier run only affect that one record.
"""
from __future__ import annotations

import logging
import signal
import socketserver
import threading
from pathlib import Path
from typing import List, Optional, Tuple

from ..models.request import MAX_RECORD_BYTES, MalformedRecord, NotificationRequest, decode_request

log = logging.getLogger(__name__)

DISPATCHED = "dispatched"
FAILED = "failed"
SUPPRESSED = "suppressed"
MALFORMED = "malformed"
EMPTY = "empty"


class ListenerError(RuntimeError):
    """The daemon could not bind one of its listeners."""


class RecordHandler(socketserver.StreamRequestHandler):
    """Reads request records from one connection until the peer closes it."""

    def handle(self) -> None:
        daemon: NotificationDaemon = self.server.owner  # type: ignore[attr-defined]
        try:
            while True:
                line = self.rfile.readline(MAX_RECORD_BYTES + 1)
                if not line:
                    break
                if len(line) > MAX_RECORD_BYTES:
                    if not line.endswith(b"\n"):
                        self._skip_rest_of_line()
                    log.debug("Dropping record longer than %s bytes", MAX_RECORD_BYTES)
                    continue
                try:
                    daemon.handle_record(line)
                except Exception:
                    log.exception("Dropping record that failed to process")
        except OSError as e:
            log.debug("Connection error: %s", e)

    def _skip_rest_of_line(self) -> None:
        while True:
            chunk = self.rfile.readline(MAX_RECORD_BYTES)
            if not chunk or chunk.endswith(b"\n"):
                return


class _ServerMixin:
    owner: "NotificationDaemon"
    daemon_threads = True

    def handle_error(self, request, client_address) -> None:  # type: ignore[override]
        log.exception("Unhandled error serving %s", client_address or "unix client")


class UnixRecordServer(_ServerMixin, socketserver.ThreadingUnixStreamServer):
    def __init__(self, path: Path, owner: "NotificationDaemon") -> None:
        self.owner = owner
        super().__init__(str(path), RecordHandler)


class TcpRecordServer(_ServerMixin, socketserver.ThreadingTCPServer):
    allow_reuse_address = True

    def __init__(self, address: Tuple[str, int], owner: "NotificationDaemon") -> None:
        self.owner = owner
        super().__init__(address, RecordHandler)


class NotificationDaemon:
    """Owns the listeners and turns each record into a desktop notification.

    `cfg` is the daemon config section, `notifier` anything with
    ``notify(title, message, sound) -> bool`` and `resolver` anything with
    ``is_session_focused(session_id) -> bool``.

    Use as a context manager so the socket file is removed on every exit path::

        with NotificationDaemon(cfg, notifier, resolver) as daemon:
            ...
    """

    def __init__(self, cfg: object, notifier: object, resolver: object) -> None:
        self.cfg = cfg
        self.notifier = notifier
        self.resolver = resolver
        self.socket_path = Path(getattr(cfg, "socket_path"))
        self._servers: List[socketserver.BaseServer] = []
        self._threads: List[threading.Thread] = []
        self._owns_socket = False

    # Lifecycle
    def __enter__(self) -> "NotificationDaemon":
        self.start()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    @property
    def running(self) -> bool:
        return bool(self._servers)

    @property
    def tcp_address(self) -> Optional[Tuple[str, int]]:
        for server in self._servers:
            if isinstance(server, TcpRecordServer):
                return server.server_address[:2]  # type: ignore[return-value]
        return None

    def start(self) -> None:
        """Bind all listeners and start serving them in background threads."""
        if self._servers:
            return
        path = self.socket_path
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            # A crashed previous instance leaves its socket file behind
            if path.exists() or path.is_symlink():
                log.info("Removing stale socket %s", path)
                path.unlink()
            self._servers.append(UnixRecordServer(path, self))
            self._owns_socket = True
        except OSError as e:
            self.close()
            raise ListenerError(f"cannot listen on {path}: {e}") from e

        if getattr(self.cfg, "tcp_enabled", False):
            address = (str(getattr(self.cfg, "tcp_host")), int(getattr(self.cfg, "tcp_port")))
            try:
                self._servers.append(TcpRecordServer(address, self))
            except OSError as e:
                self.close()
                raise ListenerError(f"cannot listen on {address[0]}:{address[1]}: {e}") from e

        for server in self._servers:
            t = threading.Thread(target=server.serve_forever, name=f"listener-{type(server).__name__}", daemon=True)
            t.start()
            self._threads.append(t)

        if self.tcp_address:
            host, port = self.tcp_address
            log.info("wrapix-notifyd: listening on TCP %s:%s and %s", host, port, path)
        else:
            log.info("wrapix-notifyd: listening on %s", path)

    def close(self) -> None:
        """Stop listening and remove the socket file. Safe to call more than once."""
        servers, self._servers = self._servers, []
        threads, self._threads = self._threads, []
        for server, thread in zip(servers, threads):
            server.shutdown()
            thread.join(timeout=5)
        for server in servers:
            try:
                server.server_close()
            except OSError as e:
                log.debug("Error closing listener: %s", e)
        if self._owns_socket:
            self._owns_socket = False
            try:
                self.socket_path.unlink()
            except FileNotFoundError:
                pass
            except OSError as e:
                log.warning("Could not remove socket %s: %s", self.socket_path, e)

    def serve(self, stop_event: Optional[threading.Event] = None) -> None:
        """Serve until SIGTERM/SIGINT (or `stop_event`), then clean up."""
        stop = stop_event or threading.Event()
        previous = {}
        with self:
            if threading.current_thread() is threading.main_thread():
                for sig in (signal.SIGTERM, signal.SIGINT):
                    previous[sig] = signal.signal(sig, lambda signum, frame: stop.set())
            try:
                while not stop.wait(1.0):
                    pass
                log.info("wrapix-notifyd: shutting down")
            finally:
                for sig, handler in previous.items():
                    signal.signal(sig, handler)

    # Records
    def should_suppress(self, req: NotificationRequest) -> bool:
        if getattr(self.cfg, "always_notify", False) or not req.session_id:
            return False
        try:
            return bool(self.resolver.is_session_focused(req.session_id))  # type: ignore[attr-defined]
        except Exception as e:
            log.debug("Focus check failed for %s: %s", req.session_id, e)
            return False

    def handle_record(self, line: bytes) -> str:
        """Process one wire record and return what happened to it."""
        line = line.strip()
        if not line:
            return EMPTY
        try:
            req = decode_request(line)
        except MalformedRecord as e:
            log.debug("Dropping malformed record: %s", e)
            return MALFORMED

        if self.should_suppress(req):
            log.debug("suppressed: session %s is focused (%r)", req.session_id, req.title)
            return SUPPRESSED

        try:
            ok = self.notifier.notify(req.title, req.message, req.sound)  # type: ignore[attr-defined]
        except Exception as e:
            log.debug("Notifier failed for %r: %s", req.title, e)
            return FAILED
        if not ok:
            log.debug("Notifier did not deliver %r", req.title)
            return FAILED
        log.debug("dispatched %r", req.title)
        return DISPATCHED
