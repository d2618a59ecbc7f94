"""Shared fixtures: a Flask app on TestingConfig plus service-level builders."""

import pytest

from app import create_app
from config import TestingConfig
from core.security import payment_signature
from modules.pricing import JobPricer
from services.job_service import JobService
from services.machine_service import MachineService
from services.notifier import Notifier, SessionRegistry
from services.store import InMemoryJobStore, InMemoryMachineStore


GATEWAY_SECRET = TestingConfig.RAZORPAY_KEY_SECRET


def sign(order_id, payment_id, secret=GATEWAY_SECRET):
    """Signature the gateway would send back for this order/payment pair."""
    return payment_signature(secret, order_id, payment_id)


# Fixtures

@pytest.fixture
def app(tmp_path):
    """Flask app with in-memory stores and uploads under a temp dir."""

    class _Config(TestingConfig):
        UPLOAD_FOLDER = str(tmp_path / "uploads")
        PUBLIC_BASE_URL = "http://testserver"
        CLIENT_URL = "http://kiosk.test"

    return create_app(_Config)


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def notifier():
    return Notifier(max_queue=10)


@pytest.fixture
def machine_service(notifier):
    return MachineService(
        InMemoryMachineStore(),
        notifier,
        SessionRegistry(),
        client_url="http://kiosk.test",
        default_rate_per_page=2.0,
    )


@pytest.fixture
def job_service(machine_service, notifier):
    return JobService(
        InMemoryJobStore(),
        machine_service,
        JobPricer(2.0),
        notifier,
        require_payment_before_print=True,
    )


@pytest.fixture
def online_machine(machine_service):
    """Machine M1, online, 2.00 per page."""
    machine, _ = machine_service.register("M1", "Library Printer", "Ground floor", 2.0)
    return machine


def make_job(job_service, pages_to_print="1-3,5", priority=2, machine_id="M1", user_name="Asha"):
    job, _, _ = job_service.create_job(
        machine_id=machine_id,
        user_name=user_name,
        file_url="http://testserver/uploads/notes.pdf",
        file_name="notes.pdf",
        page_count=10,
        pages_to_print=pages_to_print,
        priority=priority,
    )
    return job
