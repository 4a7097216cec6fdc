"""Metadata definition REST API endpoints."""

import logging

from flask import Blueprint, jsonify

from nodemeta.model.definitions import DefinitionRegistry
from nodemeta.web.auth import READ, require_permission

logger = logging.getLogger(__name__)

bp = Blueprint("api_definitions", __name__, url_prefix="/api/v1/definitions")


def _get_definition_store():
    from nodemeta.web.app import get_services

    return get_services()["definition_store"]


@bp.route("/", methods=["GET"])
@require_permission(READ)
def list_definitions():
    """List the preset metadata definitions in configured order."""
    store = _get_definition_store()
    return jsonify([d.to_dict() for d in store.get_definitions()])


@bp.route("/descriptors", methods=["GET"])
@require_permission(READ)
def list_descriptors():
    """List the definition kinds a configuration submit may use."""
    return jsonify(DefinitionRegistry.list_descriptors())


@bp.route("/<name>", methods=["GET"])
@require_permission(READ)
def get_definition(name):
    """Get one definition by name."""
    definition = _get_definition_store().get_definition(name)
    if definition is None:
        return jsonify({"error": "Definition not found"}), 404
    return jsonify(definition.to_dict())
