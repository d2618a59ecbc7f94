"""
Machine routes.

Handles:
- POST /api/machine/register            - register / refresh a machine, get its QR code
- POST /api/machine/connect             - a user connects after scanning the QR code
- GET  /api/machine/status/<machine_id> - machine projection (polling)
- GET  /api/machine/<machine_id>/qr     - QR code PNG for printing on the machine
"""

import io

from flask import Blueprint, current_app, send_file

from core.exceptions import PrintVendError, ValidationError
from .helpers import error_response, json_body, sanitize_text, server_error, service
from logging_config import get_logger


# Module logger
logger = get_logger(__name__)

machine_bp = Blueprint("machine", __name__, url_prefix="/api/machine")


def _optional_rate(value):
    if value is None or value == "":
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        raise ValidationError("ratePerPage must be a number")


@machine_bp.route("/register", methods=["POST"])
def register_machine():
    try:
        data = json_body()
        machine, qr_code = service("MACHINE_SERVICE").register(
            machine_id=sanitize_text(data.get("machineId"), max_length=64),
            name=sanitize_text(data.get("name")),
            location=sanitize_text(data.get("location")),
            rate_per_page=_optional_rate(data.get("ratePerPage")),
        )
        return {"machine": machine.to_dict(), "qrCode": qr_code}

    except PrintVendError as e:
        return error_response(e)
    except Exception as e:
        return server_error("register machine", e)


@machine_bp.route("/connect", methods=["POST"])
def connect_machine():
    try:
        data = json_body()
        machine_key = data.get("machineKey") or data.get("machineId")
        return service("MACHINE_SERVICE").connect(
            sanitize_text(machine_key, max_length=64),
            sanitize_text(data.get("userName")),
        )

    except PrintVendError as e:
        return error_response(e)
    except Exception as e:
        return server_error("connect to machine", e)


@machine_bp.route("/status/<machine_id>", methods=["GET"])
def machine_status(machine_id: str):
    try:
        machine = service("MACHINE_SERVICE").get(machine_id)
        return {
            "machine": machine.to_dict(),
            "pollIntervalSeconds": current_app.config.get("POLL_INTERVAL_SECONDS", 10),
        }

    except PrintVendError as e:
        return error_response(e)
    except Exception as e:
        return server_error("get machine status", e)


@machine_bp.route("/<machine_id>/qr", methods=["GET"])
def machine_qr(machine_id: str):
    try:
        png = service("MACHINE_SERVICE").qr_png(machine_id)
        return send_file(io.BytesIO(png), mimetype="image/png", download_name=f"{machine_id}.png")

    except PrintVendError as e:
        return error_response(e)
    except Exception as e:
        return server_error("render machine QR code", e)
