"""
Speakeasy API Routes
====================

All API route blueprints for the Speakeasy application.

Usage:
    from speakeasy.routes import register_routes
    register_routes(app, coordinator)
"""
from .submission_routes import submission_bp
from .webhook_routes import webhook_bp


def register_routes(app, coordinator):
    """Register all route blueprints with the Flask app."""

    # Blueprints look the coordinator up per request
    app.extensions['speakeasy_coordinator'] = coordinator

    app.register_blueprint(submission_bp)
    app.register_blueprint(webhook_bp)


__all__ = [
    'register_routes',
    'submission_bp',
    'webhook_bp',
]
