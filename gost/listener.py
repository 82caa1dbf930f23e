from __future__ import annotations

import logging
import os
import threading
from typing import Callable, Optional, Tuple

from werkzeug.serving import make_server

from gost.registry import TaskRegistry
from gost.web import QuietRequestHandler

logger = logging.getLogger(__name__)

TerminateFn = Callable[[int], None]


class Listener:
    """One endpoint's accept-and-serve loop, run on a daemon thread.

    The loop holds a registry slot for as long as it serves. When it exits
    for any reason other than ``stop()`` the slot is released first and then
    the whole process is terminated.
    """

    def __init__(
        self,
        name: str,
        app,
        registry: TaskRegistry,
        host: str = "",
        port: int = 8000,
        tls: Optional[Tuple[str, str]] = None,
        terminate: TerminateFn = os._exit,
    ) -> None:
        self.name = name
        self.host = host
        self.port = int(port)
        self._app = app
        self._registry = registry
        self._tls = tls
        self._terminate = terminate
        self._server = None
        self._thread: threading.Thread | None = None
        self._lock = threading.Lock()
        self._ready = threading.Event()
        self._stop_requested = False

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    @property
    def bound_port(self) -> Optional[int]:
        server = self._server
        if server is None:
            return None
        return int(server.server_address[1])

    def start(self) -> None:
        with self._lock:
            if self.is_running:
                return
            self._stop_requested = False
            self._ready.clear()
            self._thread = threading.Thread(target=self._run, name=f"gost-{self.name}", daemon=True)
            self._thread.start()

    def wait_ready(self, timeout: Optional[float] = None) -> bool:
        """Wait until the listener has bound (or failed to). Returns ``bound_port is not None``."""
        self._ready.wait(timeout)
        return self.bound_port is not None

    def stop(self) -> None:
        with self._lock:
            self._stop_requested = True
            server = self._server
            thread = self._thread
            self._thread = None
        if server is not None:
            server.shutdown()
        if thread is not None:
            thread.join(timeout=2.0)

    def _run(self) -> None:
        self._registry.occupy()
        error: BaseException | None = None
        try:
            logger.info("Listening on :%d", self.port)
            # werkzeug reports bind failures by raising SystemExit.
            server = make_server(
                self.host,
                self.port,
                self._app,
                threaded=True,
                request_handler=QuietRequestHandler,
                ssl_context=self._tls,
            )
            with self._lock:
                stop_requested = self._stop_requested
                if not stop_requested:
                    self._server = server
            self._ready.set()
            if stop_requested:
                server.server_close()
            else:
                server.serve_forever()
        except (Exception, SystemExit) as exc:
            error = exc
        finally:
            self._registry.release()
            with self._lock:
                self._server = None
            self._ready.set()

        if self._stop_requested and error is None:
            logger.info("%s listener on :%d stopped", self.name, self.port)
            return
        if error is None:
            logger.critical("%s listener on :%d exited its serve loop", self.name, self.port)
        else:
            logger.critical("%s listener on :%d failed: %r", self.name, self.port, error)
        self._terminate(1)
