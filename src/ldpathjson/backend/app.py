"""Flask application factory for the ldpathjson HTTP backend."""

from __future__ import annotations

import logging

from flask import Flask, jsonify

from ldpathjson.cache import GraphCache
from ldpathjson.config import Config
from ldpathjson.errors import (
    LdpathJsonError,
    MalformedIdentifier,
    MissingHeaderError,
    QueryExecutionError,
    QueryParseError,
    RetrievalFailure,
    SerializationError,
)
from ldpathjson.proxy_map import ProxyRewriteMap

logger = logging.getLogger(__name__)


def register_error_handlers(app: Flask) -> None:
    """Register consistent JSON error handlers."""

    @app.errorhandler(400)
    def bad_request(exc):
        return jsonify({"error": str(exc.description)}), 400

    @app.errorhandler(404)
    def not_found(exc):
        return jsonify({"error": "Resource not found"}), 404

    @app.errorhandler(MissingHeaderError)
    @app.errorhandler(MalformedIdentifier)
    def invalid_request(exc):
        return jsonify({"error": str(exc)}), 400

    @app.errorhandler(QueryParseError)
    @app.errorhandler(QueryExecutionError)
    @app.errorhandler(SerializationError)
    def query_error(exc):
        app.logger.error("LDPath error: %s", exc)
        return jsonify({"error": "LDPath query error", "details": str(exc)}), 422

    @app.errorhandler(RetrievalFailure)
    def bad_gateway(exc):
        return jsonify({
            "error": "Upstream repository error",
            "details": str(exc),
        }), 502

    @app.errorhandler(LdpathJsonError)
    def processing_error(exc):
        app.logger.error("Processing error: %s", exc)
        return jsonify({"error": str(exc)}), 500

    @app.errorhandler(Exception)
    def unhandled(exc):
        app.logger.exception("Unhandled exception")
        return jsonify({"error": "Internal server error"}), 500


def create_app(config_class: type[Config] = Config) -> Flask:
    """Create and configure the Flask application.

    Parameters
    ----------
    config_class:
        Configuration class (default :class:`Config`).

    Returns
    -------
    Flask
        Configured Flask application.
    """
    app = Flask(__name__)
    app.config.from_object(config_class)
    app.config["CONFIG_CLASS"] = config_class

    # ── Shared state ──────────────────────────────────────────────────
    # One cache and one proxy map per process, shared by all workers.
    app.config["GRAPH_CACHE"] = GraphCache()
    app.config["PROXY_MAP"] = ProxyRewriteMap(
        config_class.repo_internal_url(), config_class.repo_external_url(),
    )

    # ── Blueprints ────────────────────────────────────────────────────
    from ldpathjson.backend.routes.ldpath import ldpath_bp
    from ldpathjson.backend.routes.sparql import sparql_bp

    app.register_blueprint(ldpath_bp, url_prefix="/api/ldpath")
    app.register_blueprint(sparql_bp, url_prefix="/api/sparql")

    # ── Error handlers ────────────────────────────────────────────────
    register_error_handlers(app)

    # ── Health check ──────────────────────────────────────────────────
    @app.route("/api/health")
    def health():
        return jsonify({"status": "ok"})

    return app


if __name__ == "__main__":
    create_app().run(host="0.0.0.0", port=5000, debug=Config.DEBUG, threaded=True)
