"""
Unit tests for payment order creation and signature verification.

The gateway's HTTP side is mocked; signatures are computed locally with the
same secret the gateway client holds.
"""

import hashlib
import hmac

import pytest
from unittest.mock import MagicMock

from core.exceptions import (
    AlreadyPaidError,
    JobNotFoundError,
    PaymentGatewayError,
    PaymentVerificationError,
    ValidationError,
)
from core.payment_gateway import RazorpayClient
from core.security import payment_signature, verify_payment_signature
from models.job import PaymentStatus
from services.payment_service import PaymentService

from conftest import GATEWAY_SECRET, make_job, sign


# Fixtures

@pytest.fixture
def mock_http():
    """requests.Session stand-in returning a created order."""
    session = MagicMock()
    response = MagicMock()
    response.ok = True
    response.status_code = 200
    response.json.return_value = {"id": "order_ABC123", "amount": 800, "currency": "INR"}
    session.post.return_value = response
    return session


@pytest.fixture
def gateway(mock_http):
    return RazorpayClient("rzp_test_key", GATEWAY_SECRET, session=mock_http)


@pytest.fixture
def payment_service(job_service, gateway, notifier):
    return PaymentService(job_service, gateway, notifier, currency="INR")


@pytest.fixture
def job(job_service, online_machine):
    return make_job(job_service)


# Tests for signatures

class TestSignature:

    def test_digest_is_hex_sha256_and_deterministic(self):
        digest = payment_signature("secret", "order_1", "pay_1")
        assert len(digest) == 64
        assert digest == payment_signature("secret", "order_1", "pay_1")
        assert digest != payment_signature("secret", "order_1", "pay_2")
        expected = hmac.new(b"secret", b"order_1|pay_1", hashlib.sha256).hexdigest()
        assert digest == expected

    def test_valid_signature_accepted(self):
        signature = payment_signature("secret", "order_1", "pay_1")
        assert verify_payment_signature("secret", "order_1", "pay_1", signature)

    def test_every_single_character_mutation_rejected(self):
        signature = payment_signature("secret", "order_1", "pay_1")
        for index, char in enumerate(signature):
            replacement = "0" if char != "0" else "1"
            mutated = signature[:index] + replacement + signature[index + 1:]
            assert not verify_payment_signature("secret", "order_1", "pay_1", mutated)

    def test_truncated_and_empty_rejected(self):
        signature = payment_signature("secret", "order_1", "pay_1")
        assert not verify_payment_signature("secret", "order_1", "pay_1", signature[:-1])
        assert not verify_payment_signature("secret", "order_1", "pay_1", "")

    def test_empty_secret_never_verifies(self):
        signature = payment_signature("", "order_1", "pay_1")
        assert not verify_payment_signature("", "order_1", "pay_1", signature)


# Tests for create_order

class TestCreateOrder:

    def test_amount_in_minor_units(self, payment_service, job, mock_http, job_service):
        order = payment_service.create_order(job.id)

        assert order["orderId"] == "order_ABC123"
        assert order["keyId"] == "rzp_test_key"
        assert order["jobId"] == job.id

        _, kwargs = mock_http.post.call_args
        assert kwargs["json"]["amount"] == 800
        assert kwargs["json"]["currency"] == "INR"
        assert kwargs["json"]["receipt"] == f"job_{job.id}"
        assert kwargs["auth"] == ("rzp_test_key", GATEWAY_SECRET)

        assert job_service.get(job.id).gateway_order_id == "order_ABC123"

    def test_gateway_error_propagates(self, payment_service, job, mock_http):
        mock_http.post.return_value.ok = False
        mock_http.post.return_value.status_code = 401
        mock_http.post.return_value.text = "unauthorized"

        with pytest.raises(PaymentGatewayError):
            payment_service.create_order(job.id)

    def test_paid_job_rejected(self, payment_service, job, mock_http):
        payment_service.create_order(job.id)
        payment_service.verify(job.id, "order_ABC123", "pay_1", sign("order_ABC123", "pay_1"))

        with pytest.raises(AlreadyPaidError):
            payment_service.create_order(job.id)

    def test_unknown_job(self, payment_service):
        with pytest.raises(JobNotFoundError):
            payment_service.create_order("missing")


# Tests for verify

ORDER_ID = "order_ABC123"


@pytest.fixture
def ordered_job(payment_service, job):
    """A job whose gateway order (``order_ABC123``) has been created."""
    payment_service.create_order(job.id)
    return job


class TestVerify:

    def test_marks_job_paid(self, payment_service, ordered_job):
        paid = payment_service.verify(ordered_job.id, ORDER_ID, "pay_1", sign(ORDER_ID, "pay_1"))

        assert paid.payment_status is PaymentStatus.PAID
        assert paid.payment_id == "pay_1"
        assert paid.gateway_order_id == ORDER_ID
        assert paid.paid_at is not None

    def test_second_verify_is_idempotent(self, payment_service, ordered_job, job_service, notifier):
        signature = sign(ORDER_ID, "pay_1")
        first = payment_service.verify(ordered_job.id, ORDER_ID, "pay_1", signature)

        subscription = notifier.subscribe("M1", "watcher")
        second = payment_service.verify(ordered_job.id, ORDER_ID, "pay_1", signature)

        assert second.payment_status is PaymentStatus.PAID
        assert second.payment_id == first.payment_id
        assert second.paid_at == first.paid_at
        assert job_service.get(ordered_job.id).paid_at == first.paid_at
        assert subscription.get(timeout=0.05) is None

    def test_bad_signature_changes_nothing(self, payment_service, ordered_job, job_service):
        signature = sign(ORDER_ID, "pay_1")
        tampered = signature[:-1] + ("0" if signature[-1] != "0" else "1")

        with pytest.raises(PaymentVerificationError):
            payment_service.verify(ordered_job.id, ORDER_ID, "pay_1", tampered)

        stored = job_service.get(ordered_job.id)
        assert stored.payment_status is PaymentStatus.PENDING
        assert stored.payment_id is None

    def test_signature_for_other_payment_rejected(self, payment_service, ordered_job):
        with pytest.raises(PaymentVerificationError):
            payment_service.verify(ordered_job.id, ORDER_ID, "pay_2", sign(ORDER_ID, "pay_1"))

    def test_order_must_match_job(self, payment_service, ordered_job):
        with pytest.raises(PaymentVerificationError, match="does not match"):
            payment_service.verify(ordered_job.id, "order_OTHER", "pay_1", sign("order_OTHER", "pay_1"))

    def test_job_without_order_rejected(self, payment_service, job, job_service):
        with pytest.raises(PaymentVerificationError, match="No payment order"):
            payment_service.verify(job.id, "order_1", "pay_1", sign("order_1", "pay_1"))

        assert job_service.get(job.id).payment_status is PaymentStatus.PENDING

    def test_payment_cannot_be_reused_for_another_job(self, payment_service, ordered_job, job_service):
        """A cheap job's payment must not also pay an expensive one."""
        payment_service.verify(ordered_job.id, ORDER_ID, "pay_1", sign(ORDER_ID, "pay_1"))
        pricey = make_job(job_service, pages_to_print="1-10", priority=1, user_name="Ravi")

        with pytest.raises(PaymentVerificationError):
            payment_service.verify(pricey.id, ORDER_ID, "pay_1", sign(ORDER_ID, "pay_1"))

        stored = job_service.get(pricey.id)
        assert stored.payment_status is PaymentStatus.PENDING
        assert stored.payment_id is None

    def test_different_payment_after_paid_rejected(self, payment_service, ordered_job):
        payment_service.verify(ordered_job.id, ORDER_ID, "pay_1", sign(ORDER_ID, "pay_1"))

        with pytest.raises(AlreadyPaidError):
            payment_service.verify(ordered_job.id, ORDER_ID, "pay_2", sign(ORDER_ID, "pay_2"))

    def test_missing_details(self, payment_service, job):
        with pytest.raises(ValidationError):
            payment_service.verify(job.id, "order_1", "", "sig")

    def test_publishes_payment_paid(self, payment_service, ordered_job, notifier):
        subscription = notifier.subscribe("M1", "watcher")
        payment_service.verify(ordered_job.id, ORDER_ID, "pay_1", sign(ORDER_ID, "pay_1"))

        event = subscription.get(timeout=0.1)
        assert event.name == "payment:paid"
        assert event.payload["job"]["paymentStatus"] == "paid"
