"""
Flask route blueprints for the print shop agent.

This module contains all route handlers organized by functionality:
- api: Print queue, orders, downloads and health
- settings: Printers and printer assignment

Each blueprint is registered with the Flask app in create_app().
"""

from .api import api_bp
from .settings import settings_bp

__all__ = [
    "api_bp",
    "settings_bp",
]


def register_blueprints(app):
    """
    Register all blueprints with the Flask app.

    Args:
        app: Flask application instance
    """
    app.register_blueprint(api_bp)
    app.register_blueprint(settings_bp)
