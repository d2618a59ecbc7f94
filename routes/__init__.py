"""
Flask route blueprints for PrintVend.

This module contains all route handlers organized by functionality:
- machine: Machine registration, user connection, QR codes
- upload: PDF upload handling
- job: Job creation, queue queries, status transitions
- payment: Gateway orders and payment verification
- events: Server-Sent Events stream per machine
- api: Health check

Each blueprint is registered with the Flask app in create_app().
"""

from .machine import machine_bp
from .upload import upload_bp
from .job import job_bp
from .payment import payment_bp
from .events import events_bp
from .api import api_bp

__all__ = [
    "machine_bp",
    "upload_bp",
    "job_bp",
    "payment_bp",
    "events_bp",
    "api_bp",
]


def register_blueprints(app):
    """
    Register all blueprints with the Flask app.

    Args:
        app: Flask application instance
    """
    app.register_blueprint(machine_bp)
    app.register_blueprint(upload_bp)
    app.register_blueprint(job_bp)
    app.register_blueprint(payment_bp)
    app.register_blueprint(events_bp)
    app.register_blueprint(api_bp)
