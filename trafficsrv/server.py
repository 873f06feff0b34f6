"""
server.py — HTTP traffic generator
----------------------------------
GET  /<any>   streams `size` random bytes (default 1M)
PUT  /<any>   reads and discards the request body
Query parameters: size, rate, delayPre, delayRes
Everything else answers 405
"""

import logging
import threading
import time

from flask import Flask, Response, request
from flask_cors import CORS
from werkzeug.exceptions import MethodNotAllowed

from .config import ServerConfig
from .errors import Cancelled, ParameterError, ShortRead
from .transfer import Direction, Transfer, resolve_request

log = logging.getLogger("trafficsrv.server")

SHUTDOWN_KEY = "trafficsrv.shutdown"
ROUTED_METHODS = ["GET", "PUT", "POST", "DELETE", "PATCH", "OPTIONS"]


def _plain(body, status):
    return Response(body, status=status, mimetype="text/plain")


def create_app(config=None):
    config = config or ServerConfig()
    app = Flask(__name__)
    if config.cors:
        CORS(app)

    # set on shutdown so in-flight delays and rate-limit waits unblock
    shutdown = threading.Event()
    app.extensions[SHUTDOWN_KEY] = shutdown

    def new_transfer(req):
        deadline = None
        if config.request_timeout:
            deadline = time.monotonic() + config.request_timeout
        return Transfer(req, cancel=shutdown, deadline=deadline)

    @app.before_request
    def log_request():
        log.info(f"[REQUEST] {request.method} {request.full_path.rstrip('?')}")

    @app.errorhandler(MethodNotAllowed)
    def method_not_allowed(e):
        return _plain("Method Not Allowed", 405)

    # --------------------------------------------------------
    #  DOWNLOAD
    # --------------------------------------------------------
    def serve_download():
        try:
            req = resolve_request(Direction.DOWNLOAD, request.args, config.default_size)
        except ParameterError as e:
            log.warning(f"[BAD REQUEST] {request.method} {e}")
            return _plain(str(e), 400)

        transfer = new_transfer(req)
        try:
            transfer.download_delay()
        except Cancelled:
            return _plain("Service Unavailable", 503)

        return Response(
            transfer.iter_download(),
            status=200,
            mimetype="application/octet-stream",
            headers={"Content-Length": str(req.size)},
        )

    # --------------------------------------------------------
    #  UPLOAD
    # --------------------------------------------------------
    def serve_upload():
        try:
            req = resolve_request(Direction.UPLOAD, request.args)
        except ParameterError as e:
            log.warning(f"[BAD REQUEST] {request.method} {e}")
            return _plain(str(e), 400)

        transfer = new_transfer(req)
        try:
            transfer.consume_upload(request.stream, request.content_length)
        except ShortRead as e:
            return _plain(f"{e}\n", 500)
        return Response(status=201)

    # --------------------------------------------------------
    #  MAIN TRAFFIC HANDLER
    # --------------------------------------------------------
    @app.route("/", defaults={"path": ""}, methods=ROUTED_METHODS, provide_automatic_options=False)
    @app.route("/<path:path>", methods=ROUTED_METHODS, provide_automatic_options=False)
    def handle(path):
        if request.method == "GET":
            return serve_download()
        if request.method == "PUT":
            return serve_upload()
        return _plain("Method Not Allowed", 405)

    return app


def run(config: ServerConfig):
    """Serve until interrupted; one worker thread per request."""
    app = create_app(config)
    log.info(f"[START] listening on http://{config.address}")
    try:
        app.run(host=config.host, port=config.port, debug=False, threaded=True)
    finally:
        app.extensions[SHUTDOWN_KEY].set()
    return app


