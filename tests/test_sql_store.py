"""
Tests for the SQLAlchemy stores against in-memory SQLite.

The same service flows as the in-memory store tests, to show the two stores
are interchangeable behind the store interface.
"""

from datetime import timedelta

import pytest

from models.job import Job, JobStatus, PaymentStatus, Priority, utcnow
from models.machine import Machine, MachineStatus
from modules.pricing import JobPricer
from services.job_service import JobService
from services.machine_service import MachineService
from services.notifier import Notifier, SessionRegistry
from services.sql_store import build_sql_stores


# Fixtures

@pytest.fixture
def stores():
    return build_sql_stores("sqlite:///:memory:")


@pytest.fixture
def sql_services(stores):
    job_store, machine_store = stores
    notifier = Notifier()
    machines = MachineService(machine_store, notifier, SessionRegistry(), "http://kiosk.test")
    jobs = JobService(job_store, machines, JobPricer(2.0), notifier, require_payment_before_print=False)
    return jobs, machines


def _job(job_id, minutes=0, status=JobStatus.QUEUED, priority=Priority.NORMAL):
    created = utcnow() + timedelta(minutes=minutes)
    return Job(
        id=job_id,
        machine_id="M1",
        user_name="Asha",
        file_url="http://x/f.pdf",
        file_name="f.pdf",
        page_count=3,
        pages_to_print="1-3",
        pages_requested=3,
        cost=6.0,
        priority=priority,
        status=status,
        created_at=created,
        updated_at=created,
    )


class TestSqlJobStore:

    def test_round_trip_preserves_fields(self, stores):
        job_store, _ = stores
        job = _job("j1", priority=Priority.URGENT)
        job.payment_status = PaymentStatus.PAID
        job.payment_id = "pay_1"
        job.paid_at = utcnow()
        job_store.add(job)

        loaded = job_store.get("j1")

        assert loaded.priority is Priority.URGENT
        assert loaded.status is JobStatus.QUEUED
        assert loaded.payment_status is PaymentStatus.PAID
        assert loaded.payment_id == "pay_1"
        assert loaded.created_at.tzinfo is not None
        assert loaded.created_at == job.created_at

    def test_missing_job_is_none(self, stores):
        job_store, _ = stores
        assert job_store.get("nope") is None

    def test_save_updates(self, stores):
        job_store, _ = stores
        job_store.add(_job("j1"))
        job = job_store.get("j1")
        job.status = JobStatus.FAILED
        job.error = "Paper jam"
        job_store.save(job)

        assert job_store.get("j1").error == "Paper jam"

    def test_save_unknown_raises(self, stores):
        job_store, _ = stores
        with pytest.raises(KeyError):
            job_store.save(_job("ghost"))

    def test_list_active_filters_and_orders(self, stores):
        job_store, _ = stores
        job_store.add(_job("late", minutes=2))
        job_store.add(_job("early", minutes=1))
        job_store.add(_job("done", minutes=0, status=JobStatus.COMPLETED))

        assert [job.id for job in job_store.list_active("M1")] == ["early", "late"]
        assert job_store.list_active("M2") == []


class TestSqlMachineStore:

    def test_upsert(self, stores):
        _, machine_store = stores
        machine_store.save(Machine("M1", "Lib", "Floor 1", 2.0))
        machine = machine_store.get("M1")
        machine.status = MachineStatus.PRINTING
        machine_store.save(machine)

        assert machine_store.get("M1").status is MachineStatus.PRINTING
        assert machine_store.get("M2") is None


class TestServicesOnSql:

    def test_lifecycle(self, sql_services):
        jobs, machines = sql_services
        machines.register("M1", "Lib", "Floor 1", 2.0)
        job, position, _ = jobs.create_job(
            "M1", "Asha", "http://x/f.pdf", "f.pdf", 10, "1-3,5", priority=1
        )
        assert position == 1
        assert job.cost == 12.0

        jobs.update_status(job.id, "printing")
        assert machines.get("M1").status is MachineStatus.PRINTING

        jobs.update_status(job.id, "completed")
        assert machines.get("M1").status is MachineStatus.ONLINE
        assert jobs.get_queue("M1") == []
