"""The HTTP server: key-checking middleware, route registration and start-up."""

from __future__ import annotations

import argparse
import logging
import signal
import sys
import threading
from wsgiref.simple_server import WSGIRequestHandler, WSGIServer, make_server

from flask import Flask, jsonify, request

from .config import DEFAULT_IP, DEFAULT_PORT, DEFAULT_SEC_KEY, ServerConfig

SECURITY_KEY_HEADER = "SECURITY_KEY_HEADER"
SECURITY_KEY_QUERY = "security-key"
INVALID_KEY_MESSAGE = "invalid API key"
REQUEST_TIMEOUT = 30.0

_log = logging.getLogger(__name__)


def register_routes(app: Flask, config: ServerConfig) -> None:
    """Install the security-key check in front of every request to ``app``."""

    @app.before_request
    def _check_security_key():
        client_key = request.headers.get(SECURITY_KEY_HEADER, "")
        if not client_key:
            client_key = request.args.get(SECURITY_KEY_QUERY, "")
        if client_key != config.sec_key:
            return jsonify({"error": INVALID_KEY_MESSAGE}), 401
        return None


def create_app(config: ServerConfig | None = None) -> Flask:
    """Build the Flask application for the given server settings."""
    config = config if config is not None else ServerConfig()
    app = Flask(__name__)
    app.debug = config.debug
    app.config["SERVER_CONFIG"] = config
    register_routes(app, config)
    return app


def parse_args(argv: list[str] | None = None) -> ServerConfig:
    """Read the listening address, key and debug switch from the command line."""
    parser = argparse.ArgumentParser(description="Run the HTTP server.")
    parser.add_argument("-ip", "--ip", default=DEFAULT_IP, help="IP address to listen on")
    parser.add_argument("-port", "--port", default=DEFAULT_PORT, help="port to listen on")
    parser.add_argument("-key", "--key", default=DEFAULT_SEC_KEY, help="security key")
    parser.add_argument("-debug", "--debug", action="store_true", help="enable debug mode")
    args = parser.parse_args(argv)
    return ServerConfig(ip=args.ip, port=args.port, sec_key=args.key, debug=args.debug)


def startup_info(config: ServerConfig) -> str:
    """Return the banner describing the server's configuration."""
    rule = "=" * 40
    return "\n".join(
        [
            rule,
            "Server startup configuration:",
            f"Listen address: {config.ip}:{config.port}",
            f"Security key: {config.sec_key}",
            f"Debug mode: {str(config.debug).lower()}",
            rule,
        ]
    )


class _TimedRequestHandler(WSGIRequestHandler):
    timeout = REQUEST_TIMEOUT


def main(argv: list[str] | None = None) -> int:
    """Start the server and run until interrupted or terminated."""
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(message)s")
    config = parse_args(argv)
    app = create_app(config)

    try:
        port = int(config.port)
        httpd = make_server(config.ip, port, app, WSGIServer, _TimedRequestHandler)
    except (OSError, ValueError, OverflowError) as exc:
        _log.error("listen: %s", exc)
        return 1

    print(startup_info(config))

    stop = threading.Event()

    def _request_stop(signum, frame):
        stop.set()

    previous = {sig: signal.signal(sig, _request_stop) for sig in (signal.SIGINT, signal.SIGTERM)}
    worker = threading.Thread(target=httpd.serve_forever, daemon=True)
    worker.start()
    try:
        while not stop.wait(0.5):
            if not worker.is_alive():
                break
    finally:
        for sig, handler in previous.items():
            signal.signal(sig, handler)
        _log.info("Shutting down server...")
        httpd.shutdown()
        httpd.server_close()
        _log.info("Server stopped")
    return 0


if __name__ == "__main__":
    sys.exit(main())