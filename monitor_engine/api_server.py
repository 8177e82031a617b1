# monitor_engine/api_server.py

from __future__ import annotations

import argparse
import logging
import sys
from http import HTTPStatus
from typing import Any, Dict, Optional

from flask import Flask, jsonify, request
from werkzeug.exceptions import HTTPException

from monitor_engine.config_loader import load_server_config
from monitor_engine.event_store import EventStore
from monitor_engine.logging_utils import component_logger
from monitor_engine.models import SettingsError, parse_analyze_request
from monitor_engine.runtime import build_runtime
from threat_ai.classifier import ThreatClassifier

DEFAULT_HOST = "0.0.0.0"
DEFAULT_PORT = 5000


def parse_level(level_name: str) -> int:
    try:
        return getattr(logging, level_name.upper())
    except AttributeError:
        raise argparse.ArgumentTypeError(f"Invalid log level '{level_name}'")


def _error(status: int, message: str):
    return jsonify({"error": message}), status


def create_app(store: EventStore, classifier: ThreatClassifier, logger: Optional[logging.Logger] = None) -> Flask:
    logger = logger or logging.getLogger("genzex.server")
    app = Flask("genzex_monitor")

    @app.get("/healthz")
    def healthz():
        return jsonify({"status": "ok"})

    @app.get("/api/connections")
    def list_connections():
        return jsonify([conn.to_dict() for conn in store.get_connections()])

    @app.get("/api/stats")
    def stats():
        return jsonify(store.get_stats().to_dict())

    @app.get("/api/logs")
    def logs():
        log_filter = request.args.get("filter")
        return jsonify([conn.to_dict() for conn in store.get_logs(log_filter)])

    @app.post("/api/connections/generate")
    def generate():
        conn = store.add_connection()
        if conn is None:
            return jsonify({"skipped": True, "reason": "monitoring disabled"})
        return jsonify(conn.to_dict())

    @app.get("/api/settings")
    def get_settings():
        return jsonify(store.get_settings().to_dict())

    @app.put("/api/settings")
    def put_settings():
        payload = request.get_json(silent=True)
        if not isinstance(payload, dict):
            return _error(HTTPStatus.BAD_REQUEST, "Settings body must be a JSON object")
        try:
            updated = store.update_settings(payload)
        except SettingsError as exc:
            return _error(HTTPStatus.BAD_REQUEST, str(exc))
        return jsonify(updated.to_dict())

    @app.get("/api/model/status")
    def model_status():
        return jsonify(classifier.get_status().to_dict())

    @app.post("/api/model/analyze")
    def analyze():
        payload = request.get_json(silent=True) or {}
        if not isinstance(payload, dict):
            return _error(HTTPStatus.BAD_REQUEST, "IP address required")
        try:
            ip, port, protocol = parse_analyze_request(payload)
        except ValueError as exc:
            return _error(HTTPStatus.BAD_REQUEST, str(exc))
        result = classifier.classify(ip, port, protocol)
        logger.info("Ad hoc analysis %s:%s/%s -> %s (%.2f)", ip, port, protocol, result.threat_level, result.confidence)
        return jsonify(result.to_dict())

    @app.errorhandler(HTTPException)
    def http_error(exc: HTTPException):
        if exc.code == HTTPStatus.NOT_FOUND:
            return _error(HTTPStatus.NOT_FOUND, "Not found")
        return _error(exc.code or HTTPStatus.INTERNAL_SERVER_ERROR, exc.description or exc.name)

    @app.errorhandler(Exception)
    def unexpected_error(exc: Exception):
        logger.exception("Unhandled error while serving %s %s", request.method, request.path)
        return _error(HTTPStatus.INTERNAL_SERVER_ERROR, "Internal server error")

    return app


def run_server(
    config_path: Optional[str],
    log_level: int,
    host: Optional[str] = None,
    port: Optional[int] = None,
    simulate: bool = True,
) -> None:
    try:
        config, settings = load_server_config(
            config_path,
            defaults={"bind_ip": DEFAULT_HOST, "port": DEFAULT_PORT},
        )
    except RuntimeError as exc:
        print(f"❌ Failed to load server config '{config_path}': {exc}")
        sys.exit(1)

    logger = component_logger("server", log_level, settings)
    classifier, store, driver = build_runtime(config, settings, log_level)
    app = create_app(store, classifier, logger)

    bind_ip = host or config.get("bind_ip", DEFAULT_HOST)
    bind_port = int(port or config.get("port", DEFAULT_PORT))

    if simulate:
        driver.start()

    logger.info("🛰️  Genzex API listening on %s:%s (model loaded=%s)", bind_ip, bind_port, classifier.loaded)
    try:
        app.run(host=bind_ip, port=bind_port, threaded=True, use_reloader=False)
    except KeyboardInterrupt:
        logger.info("🛑 Genzex API shutting down...")
    finally:
        if simulate:
            driver.stop()


def main(argv=None):
    parser = argparse.ArgumentParser(description="Genzex Monitor API Server")
    parser.add_argument("--config", default=None, help="Path to server config JSON")
    parser.add_argument("--log-level", type=parse_level, default=logging.INFO, help="Logging verbosity")
    parser.add_argument("--host", default=None, help="Bind address (overrides config)")
    parser.add_argument("--port", type=int, default=None, help="Bind port (overrides config)")
    parser.add_argument(
        "--no-simulation",
        action="store_true",
        help="Do not run the periodic traffic generator; connections are only admitted via the API",
    )
    args = parser.parse_args(argv)
    run_server(args.config, args.log_level, host=args.host, port=args.port, simulate=not args.no_simulation)


if __name__ == "__main__":
    main()
