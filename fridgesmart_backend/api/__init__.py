"""API package wiring for FridgeSmart backend."""

from flask import Flask

from .assistant import bp as assistant_bp
from .insights import bp as insights_bp
from .inventory import bp as inventory_bp
from .navigation import bp as navigation_bp
from .recipes import bp as recipes_bp
from .scan import bp as scan_bp


def init_app(app: Flask) -> None:
    """Register all API blueprints on the given application."""

    app.register_blueprint(navigation_bp)
    app.register_blueprint(inventory_bp)
    app.register_blueprint(scan_bp)
    app.register_blueprint(recipes_bp)
    app.register_blueprint(assistant_bp)
    app.register_blueprint(insights_bp)
