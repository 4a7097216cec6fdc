"""Metadata configuration page.

A root action where administrators replace the list of preset metadata
definitions. The submitted form carries a hetero-list of definitions, each
tagged with its kind.
"""

import json
import logging
from typing import Any

from flask import Blueprint, redirect, render_template_string, request

from nodemeta.model.definitions import DefinitionRegistry, decode_definitions
from nodemeta.model.errors import FormError
from nodemeta.web.auth import (
    CONFIGURE_DEFINITIONS,
    csrf_protect,
    has_permission,
    require_permission,
)

logger = logging.getLogger(__name__)

URL_NAME = "MetaDataConfiguration"
ICON_FILE_NAME = "clock.png"
DISPLAY_NAME = "Metadata Configuration"

bp = Blueprint("configuration", __name__, url_prefix=f"/{URL_NAME}")

_PAGE_TEMPLATE = """\
<!DOCTYPE html>
<html lang="en">
<head><meta charset="UTF-8"><title>{{ display_name }}</title></head>
<body>
<h1>{{ display_name }}</h1>
<table>
    <thead><tr><th>Name</th><th>Type</th><th>Description</th><th>Default</th></tr></thead>
    <tbody>
    {% for d in definitions %}
    <tr>
        <td>{{ d.name }}</td>
        <td>{{ d.type }}</td>
        <td>{{ d.description }}</td>
        <td>{{ d.default_value if d.default_value is defined else '' }}</td>
    </tr>
    {% else %}
    <tr><td colspan="4">No metadata definitions configured</td></tr>
    {% endfor %}
    </tbody>
</table>
<form method="post" action="configSubmit">
    <label for="json">Definitions (JSON)</label>
    <textarea id="json" name="json" rows="20" cols="80">{{ form_json }}</textarea>
    <p>Available types:
    {% for desc in descriptors %}<code>{{ desc.type }}</code> ({{ desc.display_name }}){{ ", " if not loop.last }}{% endfor %}
    </p>
    <button type="submit">Save</button>
</form>
</body>
</html>
"""


class MetadataConfigurationPage:
    """Root action entry for the configuration page.

    Icon and display name are hidden from callers without the
    configure permission; the URL is always reachable (and guarded).
    """

    url_name = URL_NAME
    required_permission = CONFIGURE_DEFINITIONS

    def icon_file_name(self) -> str | None:
        return ICON_FILE_NAME if has_permission(self.required_permission) else None

    def display_name(self) -> str | None:
        return DISPLAY_NAME if has_permission(self.required_permission) else None

    def definition_descriptors(self) -> list[dict[str, str]]:
        return DefinitionRegistry.list_descriptors()

    def to_dict(self) -> dict[str, Any]:
        return {
            "icon_file_name": self.icon_file_name(),
            "display_name": self.display_name(),
            "url_name": self.url_name,
        }


CONFIGURATION_PAGE = MetadataConfigurationPage()
ROOT_ACTIONS = [CONFIGURATION_PAGE]


def _definition_store():
    from nodemeta.web.app import get_services

    return get_services()["definition_store"]


def _submitted_form() -> Any:
    """The submitted form as a generic payload.

    Accepts a JSON body or a ``json`` form field holding the whole form.
    """
    if request.is_json:
        data = request.get_json(silent=True)
        if data is None:
            raise FormError("Invalid JSON body")
        return data
    raw = request.form.get("json")
    if raw is None:
        raise FormError("This page expects a form submission")
    try:
        return json.loads(raw)
    except json.JSONDecodeError as e:
        raise FormError(f"Invalid JSON in submitted form: {e}", "json") from e


@bp.route("/")
@require_permission(CONFIGURE_DEFINITIONS)
def index():
    """Configuration page."""
    definitions = _definition_store().get_definitions()
    form_json = json.dumps(
        {"definitions": [d.to_dict() for d in definitions]}, indent=2
    )
    return render_template_string(
        _PAGE_TEMPLATE,
        display_name=DISPLAY_NAME,
        definitions=definitions,
        descriptors=CONFIGURATION_PAGE.definition_descriptors(),
        form_json=form_json,
    )


@bp.route("/configSubmit", methods=["POST"])
@require_permission(CONFIGURE_DEFINITIONS)
@csrf_protect
def config_submit():
    """Replace the metadata definitions with the submitted ones and save."""
    store = _definition_store()
    try:
        definitions = decode_definitions(_submitted_form())
    except FormError as e:
        logger.warning(f"Rejected metadata configuration: {e}")
        return f"Invalid configuration: {e}", 400

    store.set_definitions(definitions)
    try:
        store.save()
    except OSError as e:
        return f"Failed to save metadata definitions: {e}", 500

    return redirect("..")
