"""LDPath routes: /api/ldpath/*."""

from __future__ import annotations

from flask import Blueprint, Response, current_app, jsonify, request

from ldpathjson.processors import (
    CONTAINER_URI_HEADER,
    RESOURCE_URI_HEADER,
    USERNAME_HEADER,
    LdpathProcessor,
    Message,
)

ldpath_bp = Blueprint("ldpath", __name__)


def _processor(program: str | None) -> LdpathProcessor | None:
    config_class = current_app.config["CONFIG_CLASS"]
    query = program or config_class.load_program()
    if not query:
        return None
    return LdpathProcessor.from_config(
        config_class,
        query=query,
        cache=current_app.config["GRAPH_CACHE"],
        proxy_map=current_app.config["PROXY_MAP"],
    )


@ldpath_bp.route("/process", methods=["POST"])
def process():
    """Project one repository resource to JSON.

    Request body: ``{"issuer", "uri", "internal_uri"?, "program"?}``; the
    configured program is used when ``program`` is omitted.
    """
    data = request.get_json(force=True, silent=True) or {}
    processor = _processor(data.get("program"))
    if processor is None:
        return jsonify({"error": "No LDPath program configured or given"}), 400

    headers = {
        USERNAME_HEADER: data.get("issuer", ""),
        RESOURCE_URI_HEADER: data.get("uri", ""),
    }
    if data.get("internal_uri"):
        headers[CONTAINER_URI_HEADER] = data["internal_uri"]

    message = processor.process(Message(headers=headers))
    charset = message.properties.get("CamelCharsetName", "UTF-8")
    return Response(
        message.body.encode(charset),
        status=200,
        content_type=f"{message.headers['Content-Type']}; charset={charset.lower()}",
    )


@ldpath_bp.route("/cache", methods=["DELETE"])
def invalidate():
    """Drop the cached document of ``?uri=``."""
    uri = request.args.get("uri", "")
    if not uri:
        return jsonify({"error": "Missing 'uri'"}), 400
    current_app.config["GRAPH_CACHE"].invalidate(uri)
    return jsonify({"invalidated": uri})
