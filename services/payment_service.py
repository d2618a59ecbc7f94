"""
Payment order creation and signature-gated confirmation.

Verification is idempotent: confirming the same payment twice returns the
stored job untouched (no new timestamp, no second event). A signature
mismatch changes nothing.
"""

from __future__ import annotations

from typing import Dict, Any

from core.exceptions import AlreadyPaidError, PaymentVerificationError, ValidationError
from core.payment_gateway import RazorpayClient
from models.job import Job, PaymentStatus, utcnow
from .job_service import JobService
from .notifier import Notifier
from logging_config import get_logger, get_job_logger


# Module logger
logger = get_logger(__name__)


class PaymentService:

    def __init__(
        self,
        job_service: JobService,
        gateway: RazorpayClient,
        notifier: Notifier,
        currency: str = "INR",
    ):
        self._jobs = job_service
        self._gateway = gateway
        self._notifier = notifier
        self._currency = currency

    def create_order(self, job_id: str) -> Dict[str, Any]:
        """
        Open a gateway order for the job's cost.

        Raises:
            JobNotFoundError: Unknown job
            AlreadyPaidError: Job is already paid
            PaymentGatewayError: Gateway call failed
        """
        job = self._jobs.get(job_id)
        if job.is_paid:
            raise AlreadyPaidError(job.id)

        amount = int(round(job.cost * 100))
        order = self._gateway.create_order(
            amount=amount,
            currency=self._currency,
            receipt=f"job_{job.id}",
            notes={
                "jobId": job.id,
                "machineId": job.machine_id,
                "userName": job.user_name,
            },
        )

        job.gateway_order_id = order["id"]
        self._jobs.save(job)
        get_job_logger(job.id).info(f"Payment order {order['id']} opened for {amount} {self._currency}")

        return {
            "orderId": order["id"],
            "amount": order.get("amount", amount),
            "currency": order.get("currency", self._currency),
            "jobId": job.id,
            "keyId": self._gateway.key_id,
        }

    def verify(self, job_id: str, order_id: str, payment_id: str, signature: str) -> Job:
        """
        Confirm a payment and mark the job paid.

        Raises:
            ValidationError: Missing payment details
            JobNotFoundError: Unknown job
            PaymentVerificationError: Bad signature, no order for the job,
                or an order created for another job
            AlreadyPaidError: Job already paid with a different payment
        """
        if not order_id or not payment_id or not signature:
            raise ValidationError("Missing payment details")

        job = self._jobs.get(job_id)
        job_logger = get_job_logger(job.id)

        if not self._gateway.verify_signature(order_id, payment_id, signature):
            job_logger.warning(f"Invalid payment signature for payment {payment_id}")
            raise PaymentVerificationError(job_id=job.id)

        if not job.gateway_order_id:
            job_logger.warning(f"Payment {payment_id} arrived before any order was created")
            raise PaymentVerificationError("No payment order was created for this job", job_id=job.id)

        if job.gateway_order_id != order_id:
            job_logger.warning(f"Payment order {order_id} does not match job order {job.gateway_order_id}")
            raise PaymentVerificationError("Payment order does not match job", job_id=job.id)

        if job.is_paid:
            if job.payment_id == payment_id:
                job_logger.info(f"Payment {payment_id} already recorded")
                return job
            raise AlreadyPaidError(job.id)

        job.payment_status = PaymentStatus.PAID
        job.payment_id = payment_id
        job.paid_at = utcnow()
        self._jobs.save(job)

        job_logger.info(f"Payment {payment_id} verified")
        self._notifier.publish(job.machine_id, "payment:paid", {"job": job.to_summary()})
        return job
