"""SPARQL routes: /api/sparql/*."""

from __future__ import annotations

from xml.sax import SAXParseException

from flask import Blueprint, Response, current_app, jsonify, request

from ldpathjson.processors import RESOURCE_URI_HEADER, Message
from ldpathjson.sparql import SparqlQueryProcessor

sparql_bp = Blueprint("sparql", __name__)

CONTENT_TYPES = {
    "json": "application/sparql-results+json",
    "xml": "application/sparql-results+xml",
    "csv": "text/csv",
    "csvwithoutheader": "text/csv",
    "txt": "text/plain",
    "turtle": "text/turtle",
}


@sparql_bp.route("/query", methods=["POST"])
def run_query():
    """Run a SPARQL query over the RDF/XML request body.

    Query parameters: ``query`` (falls back to the configured query),
    ``format``, ``uri`` (base URI), and ``bind-literal-<name>`` /
    ``bind-uri-<name>`` bindings.
    """
    config_class = current_app.config["CONFIG_CLASS"]
    query = request.args.get("query") or config_class.SPARQL_QUERY
    results_format = request.args.get("format") or config_class.SPARQL_RESULTS_FORMAT
    if not query:
        return jsonify({"error": "Missing 'query'"}), 400

    headers: dict[str, str] = {}
    if request.args.get("uri"):
        headers[RESOURCE_URI_HEADER] = request.args["uri"]
    for key, value in request.args.items():
        if key.startswith("bind-literal-"):
            headers[f"CamelSparqlQueryBinding-Literal-{key[len('bind-literal-'):]}"] = value
        elif key.startswith("bind-uri-"):
            headers[f"CamelSparqlQueryBinding-URI-{key[len('bind-uri-'):]}"] = value

    processor = SparqlQueryProcessor(query, results_format)
    try:
        message = processor.process(
            Message(headers=headers, body=request.get_data(as_text=True)),
        )
    except (ValueError, SAXParseException) as exc:
        return jsonify({"error": str(exc)}), 400

    content_type = CONTENT_TYPES.get(results_format.lower(), "text/plain")
    return Response(message.body, status=200, content_type=f"{content_type}; charset=utf-8")
