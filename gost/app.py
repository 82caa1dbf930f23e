from __future__ import annotations

import configparser
import logging
import signal
import sys
import threading
from datetime import datetime
from pathlib import Path
from typing import List, Optional, Tuple

from gost.listener import Listener
from gost.registry import TaskRegistry
from gost.settings_store import ServiceSettings, load_settings
from gost.web import create_app

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s %(filename)s:%(lineno)d: %(message)s"


class MicrosecondFormatter(logging.Formatter):
    """``2009/01/23 01:23:23.123123`` timestamps."""

    def formatTime(self, record: logging.LogRecord, datefmt: Optional[str] = None) -> str:
        stamp = datetime.fromtimestamp(record.created)
        return stamp.strftime(datefmt or "%Y/%m/%d %H:%M:%S.%f")


def configure_logging(debug: bool = False) -> None:
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(MicrosecondFormatter(LOG_FORMAT))
    root = logging.getLogger()
    for existing in list(root.handlers):
        root.removeHandler(existing)
    root.addHandler(handler)
    root.setLevel(logging.DEBUG if debug else logging.INFO)
    logging.getLogger("werkzeug").setLevel(logging.ERROR)


def _parse_startup_args(argv: List[str]) -> Tuple[bool, Optional[Path]]:
    debug_tokens = {"-debug", "--debug"}
    debug = False
    config_path: Optional[Path] = None
    args = iter(argv[1:])
    for arg in args:
        token = str(arg or "").strip()
        if token.lower() in debug_tokens:
            debug = True
            continue
        if token == "--config":
            value = next(args, "")
            if not value:
                raise ValueError("--config requires a path")
            config_path = Path(value)
            continue
        if token.startswith("--config="):
            config_path = Path(token.split("=", 1)[1])
            continue
        raise ValueError(f"unknown argument: {arg}")
    return debug, config_path


def build_listeners(settings: ServiceSettings) -> Tuple[TaskRegistry, List[Listener]]:
    """Create the plaintext and TLS listeners sharing one registry and one app.

    The registry's capacity is the number of listeners, so the service reports
    healthy only while every listener is serving.
    """
    endpoints = [
        ("http", settings.http_port, None),
        ("https", settings.https_port, (settings.cert_file, settings.key_file)),
    ]
    registry = TaskRegistry(len(endpoints))
    app = create_app(registry)
    listeners = [
        Listener(name, app, registry, host=settings.host, port=port, tls=tls)
        for name, port, tls in endpoints
    ]
    return registry, listeners


def wait_for_interrupt() -> None:
    interrupted = threading.Event()

    def _on_interrupt(_signum, _frame) -> None:
        interrupted.set()

    previous = signal.signal(signal.SIGINT, _on_interrupt)
    try:
        # Short waits keep the main thread responsive to signal delivery.
        while not interrupted.wait(0.5):
            pass
    finally:
        signal.signal(signal.SIGINT, previous)


def main(argv: Optional[List[str]] = None) -> int:
    try:
        debug, config_path = _parse_startup_args(list(sys.argv if argv is None else argv))
    except ValueError as exc:
        print(f"gost: {exc}", file=sys.stderr)
        return 2
    configure_logging(debug)
    try:
        settings = load_settings(config_path)
    except (OSError, configparser.Error) as exc:
        logger.error("Could not load settings: %s", exc)
        return 2

    _registry, listeners = build_listeners(settings)
    for listener in listeners:
        listener.start()

    wait_for_interrupt()
    logger.info("Killed.")
    return 0
