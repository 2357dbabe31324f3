#!/usr/bin/env python3
"""
htmlgloss REST API Server
Provides HTTP endpoints for glossary processing of rendered HTML
"""

import logging
import os

from flask import Flask, request, jsonify
from flask_cors import CORS

from htmlgloss.core.config import HtmlGlossConfig, default_config
from htmlgloss.core.models import Document, PageContext
from htmlgloss.core.processor import GlossaryProcessor
from htmlgloss.core.store import YamlTermStore

logger = logging.getLogger(__name__)

TRUE_VALUES = ("1", "true", "yes", "on")


def _flag(value) -> bool:
    if isinstance(value, bool):
        return value
    return str(value or "").strip().lower() in TRUE_VALUES


def initialize_components(terms_path=None, config_path=None):
    """Load the glossary store and build the processor"""
    terms_path = terms_path or os.getenv("HTMLGLOSS_TERMS")
    config = HtmlGlossConfig.load_from_file(config_path) if config_path else default_config

    if terms_path:
        store = YamlTermStore.from_file(terms_path)
        logger.info(f"Glossary loaded from {terms_path}")
    else:
        store = YamlTermStore.sample()
        logger.warning("HTMLGLOSS_TERMS not set, serving the sample glossary")

    return GlossaryProcessor(store, config=config)


def context_from_request(processor: GlossaryProcessor, data: dict) -> PageContext:
    """
    Build the page context of an API call

    Body fields win over query parameters; edit mode may also be switched
    on with ?editmode=1 as used by editing front ends.
    """
    def value(name, default=None):
        if name in data:
            return data[name]
        return request.args.get(name, default)

    document = None
    document_id = value("document_id")
    path = value("path", "") or ""
    documents = processor.documents

    if document_id not in (None, ""):
        document_id = int(document_id)
        document = documents.get_by_id(document_id) if documents is not None else None
        if document is None:
            document = Document(id=document_id, full_path=value("document_path", "") or "")
    elif path and hasattr(documents, "get_by_path"):
        document = documents.get_by_path(path)

    locale = value("locale") or request.accept_languages.best

    return PageContext(
        locale=locale,
        request_path=path,
        editmode=_flag(value("editmode")),
        document=document,
        site_id=value("site_id") or None,
    )


def create_app(processor: GlossaryProcessor = None) -> Flask:
    app = Flask(__name__)
    CORS(app)

    app.config["PROCESSOR"] = processor or initialize_components()

    @app.route('/health', methods=['GET'])
    def health_check():
        """Health check endpoint"""
        return jsonify({"status": "healthy", "message": "htmlgloss API is running"})

    @app.route('/api/process', methods=['POST'])
    def process():
        """Apply the glossary to posted HTML"""
        processor = app.config["PROCESSOR"]
        data = request.get_json(silent=True) or {}
        if not isinstance(data, dict):
            return jsonify({"error": "Invalid request: body must be a JSON object"}), 400

        content = data.get('content')

        if content is None:
            return jsonify({"error": "No content provided"}), 400

        try:
            context = context_from_request(processor, data)
            limit = int(data.get('limit', processor.config.processing.default_limit))
        except (TypeError, ValueError) as e:
            return jsonify({"error": f"Invalid request: {e}"}), 400

        result = processor.process(content, {"limit": limit}, context=context)
        return jsonify({
            "content": result,
            "changed": result != content,
            "locale": context.locale,
        })

    @app.route('/api/terms', methods=['GET'])
    def terms():
        """List compiled glossary rules for a locale/site"""
        processor = app.config["PROCESSOR"]
        try:
            context = context_from_request(processor, {})
        except ValueError as e:
            return jsonify({"error": f"Invalid request: {e}"}), 400
        rules = processor.get_registry(context)

        return jsonify({
            "locale": context.locale,
            "site_id": context.site_id,
            "terms": [
                {
                    "text": rule.text,
                    "link_kind": rule.link_kind.value,
                    "link_target": rule.link_target,
                    "href": rule.href,
                    "replacement": rule.replacement,
                }
                for rule in rules
            ],
        })

    @app.route('/api/cache/clear', methods=['POST'])
    def clear_cache():
        """Drop cached registries after glossary edits"""
        removed = app.config["PROCESSOR"].clear_cache()
        return jsonify({"status": "cleared", "removed": removed})

    return app


if __name__ == '__main__':
    logging.basicConfig(level=default_config.log_level)
    app = create_app()
    port = int(os.getenv("PORT", "5000"))
    logger.info(f"Starting htmlgloss API server on port {port}")
    app.run(host='0.0.0.0', port=port, debug=False)
