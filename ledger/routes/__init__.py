"""
Routes module for Autoledger Flask blueprints.

This module contains Flask blueprints that handle different areas of the API.
"""

from routes.history import history_bp

__all__ = [
    "history_bp",
    "register_blueprints",
]


def register_blueprints(app):
    """Mount every API blueprint under /api."""
    app.register_blueprint(history_bp, url_prefix='/api')
