"""
Operational endpoints.

Handles:
- /health - Health check with store and gateway configuration status
"""

from flask import Blueprint, current_app

from logging_config import get_logger


# Module logger
logger = get_logger(__name__)

api_bp = Blueprint("api", __name__)


@api_bp.route("/health", methods=["GET"])
def health():
    """Health check endpoint with service status."""
    health_status = {
        "status": "ok",
        "environment": current_app.config.get("ENVIRONMENT", "unknown"),
        "pollIntervalSeconds": current_app.config.get("POLL_INTERVAL_SECONDS", 10),
        "checks": {}
    }

    health_status["checks"]["store"] = current_app.config.get("STORE_BACKEND", "unknown")

    for name, key in (("job_service", "JOB_SERVICE"), ("payment_service", "PAYMENT_SERVICE")):
        if current_app.config.get(key):
            health_status["checks"][name] = "ok"
        else:
            health_status["checks"][name] = "not_available"
            health_status["status"] = "degraded"

    gateway = current_app.config.get("PAYMENT_GATEWAY")
    if gateway and gateway.is_configured:
        health_status["checks"]["payment_gateway"] = "configured"
    else:
        health_status["checks"]["payment_gateway"] = "not_configured"
        health_status["status"] = "degraded"

    status_code = 200 if health_status["status"] == "ok" else 503
    return health_status, status_code
