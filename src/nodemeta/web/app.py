"""Flask application factory for nodemeta.

``create_app`` is the composition root: it builds the definition store and
node store once and keeps them in ``app.extensions`` where request handlers
find them through ``get_services()``.
"""

import logging
import os
import secrets
from pathlib import Path
from typing import Any

from flask import Flask, current_app

from nodemeta.config.loader import load_plugin_config
from nodemeta.config.models import PluginConfig
from nodemeta.storage.definition_store import DefinitionStore
from nodemeta.storage.node_store import NodeStore

logger = logging.getLogger(__name__)

EXTENSION_KEY = "nodemeta"


def get_services() -> dict[str, Any]:
    """Services of the current application. Called by blueprints."""
    return current_app.extensions[EXTENSION_KEY]


def create_app(
    config: PluginConfig | None = None,
    data_dir: Path | None = None,
    definition_store: DefinitionStore | None = None,
    node_store: NodeStore | None = None,
) -> Flask:
    """Create the nodemeta Flask application.

    Args:
        config: Plugin configuration. Loaded from disk/env when omitted.
        data_dir: Overrides ``config.data_dir``.
        definition_store: Pre-built store (tests). Opened from data_dir otherwise.
        node_store: Pre-built node store (tests).
    """
    config = config or load_plugin_config()
    if data_dir is not None:
        config = config.model_copy(update={"data_dir": Path(data_dir)})
    config.data_dir.mkdir(parents=True, exist_ok=True)

    app = Flask(__name__)
    app.secret_key = config.secret_key or os.environ.get(
        "NODEMETA_SECRET_KEY", secrets.token_hex(32)
    )
    app.config["AUTH_TOKEN"] = config.auth_token
    app.config["READ_TOKEN"] = config.read_token
    app.config["DATA_DIR"] = str(config.data_dir)

    app.extensions[EXTENSION_KEY] = {
        "config": config,
        "definition_store": definition_store or DefinitionStore.open(config.data_dir),
        "node_store": node_store or NodeStore(config.data_dir),
    }

    from nodemeta.web.blueprints.configuration import bp as configuration_bp

    app.register_blueprint(configuration_bp)

    from nodemeta.web.api.v1.actions import bp as api_actions_bp
    from nodemeta.web.api.v1.definitions import bp as api_definitions_bp
    from nodemeta.web.api.v1.health import bp as health_bp
    from nodemeta.web.api.v1.nodes import bp as api_nodes_bp

    app.register_blueprint(health_bp)
    app.register_blueprint(api_actions_bp)
    app.register_blueprint(api_definitions_bp)
    app.register_blueprint(api_nodes_bp)

    logger.info(f"nodemeta web app created (data_dir={config.data_dir})")
    return app
