from __future__ import annotations

import logging

from flask import Flask, Response, request
from werkzeug.serving import WSGIRequestHandler

from gost.registry import TaskRegistry

logger = logging.getLogger(__name__)

ANY_METHOD = ["GET", "HEAD", "POST", "PUT", "DELETE", "PATCH", "OPTIONS"]


class QuietRequestHandler(WSGIRequestHandler):
    # Requests are logged by the app itself, in one line per request.
    def log_request(self, _code: int | str = "-", _size: int | str = "-") -> None:
        return

    def log_message(self, _format: str, *args) -> None:
        return


def _text(body: str, status: int = 200) -> Response:
    return Response(body, status=status, mimetype="text/plain")


def create_app(registry: TaskRegistry) -> Flask:
    """Build the probe application. Every listener serves the same instance.

    Routing is by path only. Methods outside ``ANY_METHOD`` never match a
    rule, so the 405 handler sends them to the same per-path responses.
    """
    app = Flask(__name__)
    app.logger.setLevel(logging.ERROR)
    logging.getLogger("werkzeug").setLevel(logging.ERROR)

    def status_response() -> Response:
        if not registry.is_saturated():
            return _text("Unhealthy", 404)
        return _text("Healthy")

    @app.before_request
    def log_request():
        uri = request.full_path if request.query_string else request.path
        logger.info("%s %s from %s", request.method, uri, request.remote_addr)

    @app.route("/", methods=ANY_METHOD, provide_automatic_options=False)
    def route_default():
        return _text("")

    @app.route("/<path:_unmatched>", methods=ANY_METHOD, provide_automatic_options=False)
    def route_not_found(_unmatched: str):
        return _text("Not Found", 404)

    @app.route("/status/", methods=ANY_METHOD, provide_automatic_options=False)
    @app.route("/status/<path:_rest>", methods=ANY_METHOD, provide_automatic_options=False)
    def route_status(_rest: str = ""):
        return status_response()

    # GET: downstream bandwidth test.
    @app.route("/down", methods=ANY_METHOD, provide_automatic_options=False)
    def route_down():
        if request.method != "GET":
            return _text("Method Not Allowed", 405)
        return _text("Download Test")

    # PUT: upstream bandwidth test.
    @app.route("/up", methods=ANY_METHOD, provide_automatic_options=False)
    def route_up():
        if request.method != "PUT":
            return _text("Method Not Allowed", 405)
        return _text("Upload Test")

    @app.errorhandler(404)
    def not_found(_exc):
        return _text("Not Found", 404)

    @app.errorhandler(405)
    def method_not_allowed(_exc):
        path = request.path
        if path in ("/down", "/up"):
            return _text("Method Not Allowed", 405)
        if path == "/":
            return _text("")
        if path.startswith("/status/"):
            return status_response()
        return _text("Not Found", 404)

    return app
