"""
Payment routes.

Handles:
- POST /api/payment/create-order/<job_id> - open a gateway order for the job's cost
- POST /api/payment/verify/<job_id>       - confirm a payment by signature
"""

from flask import Blueprint

from core.exceptions import PrintVendError
from .helpers import error_response, json_body, server_error, service
from logging_config import get_logger


# Module logger
logger = get_logger(__name__)

payment_bp = Blueprint("payment", __name__, url_prefix="/api/payment")


@payment_bp.route("/create-order/<job_id>", methods=["POST"])
def create_order(job_id: str):
    try:
        return service("PAYMENT_SERVICE").create_order(job_id)

    except PrintVendError as e:
        return error_response(e)
    except Exception as e:
        return server_error("create payment order", e)


@payment_bp.route("/verify/<job_id>", methods=["POST"])
def verify_payment(job_id: str):
    """
    Accepts the gateway checkout callback fields, either the gateway's own
    names (razorpay_order_id, ...) or camelCase (orderId, paymentId, signature).
    """
    try:
        data = json_body()
        job = service("PAYMENT_SERVICE").verify(
            job_id,
            order_id=data.get("razorpay_order_id") or data.get("orderId"),
            payment_id=data.get("razorpay_payment_id") or data.get("paymentId"),
            signature=data.get("razorpay_signature") or data.get("signature"),
        )
        return {"success": True, "job": job.to_dict()}

    except PrintVendError as e:
        return error_response(e)
    except Exception as e:
        return server_error("verify payment", e)
