"""Flask application factory and bootstrap.

This module provides the create_app() factory function that wires the
connector command endpoint, health probes and error handlers.
"""
from __future__ import annotations
from typing import Optional

from flask import Flask

from orphan_connector.config import ConnectorConfig, load_settings
from orphan_connector.core.dispatcher import OrphanAccountConnector
from orphan_connector.logging_config import configure_logging


# ─────────────────────────────────────────────────────────────────────────────
# Application Factory
# ─────────────────────────────────────────────────────────────────────────────
def create_app(
    cfg: Optional[ConnectorConfig] = None,
    connector: Optional[OrphanAccountConnector] = None,
) -> Flask:
    """Create and configure Flask application.

    Args:
        cfg: Connector settings (loaded from environment when omitted)
        connector: Pre-built dispatcher (built from cfg when omitted)
    """
    configure_logging()

    if connector is None:
        cfg = cfg or load_settings()
        connector = OrphanAccountConnector(cfg)
    else:
        cfg = cfg or connector.config

    app = Flask(__name__)
    app.config["APP_CONFIG"] = cfg
    app.config["CONNECTOR"] = connector
    app.config["CONNECTOR_API_TOKEN"] = cfg.api_token

    # Register blueprints
    from orphan_connector.api import commands, errors, health

    app.register_blueprint(health.bp)
    app.register_blueprint(commands.bp)

    # Register error handlers
    errors.register_error_handlers(app)

    app.logger.info("Connector command API registered at /commands (sources=%s)", cfg.sources)
    if not cfg.api_token:
        app.logger.warning("CONNECTOR_API_TOKEN not set: /commands accepts unauthenticated requests")

    return app
