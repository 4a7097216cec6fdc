"""Node and node metadata REST API endpoints."""

import logging
from datetime import datetime
from typing import Any

from flask import Blueprint, jsonify, request

from nodemeta.model.errors import MetadataPathError, MetadataTypeError
from nodemeta.model.property import MetadataNodeProperty
from nodemeta.model.tree import add_value, get_path, split_path
from nodemeta.model.values import MetadataParent
from nodemeta.web.auth import CONFIGURE_NODES, READ, require_permission

logger = logging.getLogger(__name__)

bp = Blueprint("api_nodes", __name__, url_prefix="/api/v1/nodes")


def _get_node_store():
    from nodemeta.web.app import get_services

    return get_services()["node_store"]


def _save(store, node):
    """Save ``node``; returns an error response if the write failed."""
    try:
        store.save_node(node)
    except OSError as e:
        return jsonify({"error": f"Failed to save node '{node.name}': {e}"}), 500
    return None


def _coerce_value(raw: Any, kind: str | None) -> Any:
    """Turn a JSON value into the Python type for the requested kind.

    Raises:
        ValueError: If the value does not fit the kind.
    """
    if kind is None:
        return raw
    if kind == "string":
        return str(raw)
    if kind == "number":
        if isinstance(raw, str):
            try:
                return int(raw)
            except ValueError:
                return float(raw)
        return raw
    if kind == "date":
        return datetime.fromisoformat(str(raw))
    raise ValueError(f"Unknown value type '{kind}'")


@bp.route("/", methods=["GET"])
@require_permission(READ)
def list_nodes():
    """List all nodes."""
    return jsonify([n.summary() for n in _get_node_store().list_nodes()])


@bp.route("/", methods=["POST"])
@require_permission(CONFIGURE_NODES)
def create_node():
    """Create a node."""
    data = request.get_json(silent=True)
    if not data or not isinstance(data, dict):
        return jsonify({"error": "Invalid JSON body"}), 400
    try:
        node = _get_node_store().create_node(
            name=data.get("name", ""),
            description=data.get("description", ""),
            labels=data.get("labels") or [],
            num_executors=int(data.get("num_executors", 1)),
        )
    except (TypeError, ValueError) as e:
        return jsonify({"error": str(e)}), 400
    except OSError as e:
        return jsonify({"error": f"Failed to save node: {e}"}), 500
    return jsonify(node.summary()), 201


@bp.route("/<name>", methods=["GET"])
@require_permission(READ)
def get_node(name):
    """Get a node's full configuration."""
    node = _get_node_store().get_node(name)
    if node is None:
        return jsonify({"error": "Node not found"}), 404
    return jsonify(node.to_dict())


@bp.route("/<name>", methods=["DELETE"])
@require_permission(CONFIGURE_NODES)
def delete_node(name):
    """Remove a node together with its metadata."""
    try:
        deleted = _get_node_store().delete_node(name)
    except ValueError as e:
        return jsonify({"error": str(e)}), 400
    if deleted:
        return jsonify({"deleted": True})
    return jsonify({"error": "Node not found"}), 404


@bp.route("/<name>/metadata", methods=["GET"])
@require_permission(READ)
def get_metadata(name):
    """Get the node's whole metadata tree."""
    node = _get_node_store().get_node(name)
    if node is None:
        return jsonify({"error": "Node not found"}), 404
    metadata = node.metadata or MetadataNodeProperty()
    return jsonify(metadata.to_dict())


@bp.route("/<name>/metadata/<path:path>", methods=["GET"])
@require_permission(READ)
def get_metadata_path(name, path):
    """Look up one value by slash-separated path."""
    node = _get_node_store().get_node(name)
    if node is None:
        return jsonify({"error": "Node not found"}), 404
    value = get_path(node.metadata, *split_path(path, "/")) if node.metadata else None
    if value is None or value is node.metadata:
        return jsonify({"error": f"No metadata at '{path}'"}), 404
    return jsonify(value.to_dict())


@bp.route("/<name>/metadata/<path:path>", methods=["PUT"])
@require_permission(CONFIGURE_NODES)
def put_metadata_path(name, path):
    """Set a value at a path and save the node.

    Body: ``{"value": ..., "description": "...", "type": "string|number|date"}``
    (``type`` optional; inferred from the JSON value when omitted).
    """
    store = _get_node_store()
    node = store.get_node(name)
    if node is None:
        return jsonify({"error": "Node not found"}), 404

    data = request.get_json(silent=True)
    if not isinstance(data, dict) or "value" not in data:
        return jsonify({"error": "Body must be an object with a 'value'"}), 400

    try:
        value = _coerce_value(data["value"], data.get("type"))
    except ValueError as e:
        return jsonify({"error": str(e)}), 400

    metadata = node.metadata or MetadataNodeProperty()
    try:
        leaf = add_value(metadata, value, data.get("description", ""), *split_path(path, "/"))
    except MetadataPathError as e:
        return jsonify({"error": str(e)}), 409
    except MetadataTypeError as e:
        return jsonify({"error": str(e)}), 400
    if node.metadata is None:
        node.properties.add(metadata)

    error = _save(store, node)
    if error:
        return error
    logger.info(f"Metadata '{leaf.full_name}' set on node '{name}'")
    return jsonify(leaf.to_dict())


@bp.route("/<name>/metadata/<path:path>", methods=["DELETE"])
@require_permission(CONFIGURE_NODES)
def delete_metadata_path(name, path):
    """Remove the value (or subtree) at a path and save the node."""
    store = _get_node_store()
    node = store.get_node(name)
    if node is None:
        return jsonify({"error": "Node not found"}), 404

    parts = split_path(path, "/")
    parent = get_path(node.metadata, *parts[:-1]) if node.metadata and parts else None
    if not isinstance(parent, MetadataParent) or parent.remove_child(parts[-1]) is None:
        return jsonify({"error": f"No metadata at '{path}'"}), 404

    error = _save(store, node)
    if error:
        return error
    return jsonify({"deleted": True})


@bp.route("/<name>/environment", methods=["GET"])
@require_permission(READ)
def get_environment(name):
    """Environment variables contributed by the node's exposed metadata."""
    node = _get_node_store().get_node(name)
    if node is None:
        return jsonify({"error": "Node not found"}), 404
    return jsonify(node.metadata.to_environment() if node.metadata else {})
