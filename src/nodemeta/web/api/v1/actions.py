"""Root action listing, used by the host UI to build its side panel."""

from flask import Blueprint, jsonify

from nodemeta.web.blueprints.configuration import ROOT_ACTIONS

bp = Blueprint("api_actions", __name__, url_prefix="/api/v1/actions")


@bp.route("/", methods=["GET"])
def list_actions():
    """Root actions; icon and display name are null when hidden from the caller."""
    return jsonify([action.to_dict() for action in ROOT_ACTIONS])
