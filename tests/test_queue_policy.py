"""
Unit tests for queue ordering.
"""

from datetime import datetime, timedelta, timezone

import pytest

from models.job import Job, JobStatus, PaymentStatus, Priority
from modules.queue_policy import order_queue, queue_head, queue_position


BASE_TIME = datetime(2025, 1, 1, 9, 0, tzinfo=timezone.utc)


def _job(job_id, priority=Priority.NORMAL, minutes=0, status=JobStatus.QUEUED, paid=False):
    return Job(
        id=job_id,
        machine_id="M1",
        user_name="user",
        file_url="http://x/f.pdf",
        file_name="f.pdf",
        page_count=1,
        pages_to_print="1",
        pages_requested=1,
        cost=2.0,
        priority=priority,
        status=status,
        payment_status=PaymentStatus.PAID if paid else PaymentStatus.PENDING,
        created_at=BASE_TIME + timedelta(minutes=minutes),
    )


# Tests for order_queue

class TestOrderQueue:

    def test_urgent_before_normal(self):
        jobs = [
            _job("n1", Priority.NORMAL, minutes=0),
            _job("u1", Priority.URGENT, minutes=5),
            _job("n2", Priority.NORMAL, minutes=1),
            _job("u2", Priority.URGENT, minutes=6),
        ]
        ordered = [job.id for job in order_queue(jobs)]
        assert ordered == ["u1", "u2", "n1", "n2"]

    def test_fifo_within_tier(self):
        jobs = [_job("c", minutes=3), _job("a", minutes=1), _job("b", minutes=2)]
        assert [job.id for job in order_queue(jobs)] == ["a", "b", "c"]

    def test_equal_timestamps_keep_input_order(self):
        jobs = [_job("first"), _job("second"), _job("third")]
        assert [job.id for job in order_queue(jobs)] == ["first", "second", "third"]

    def test_terminal_jobs_dropped(self):
        jobs = [
            _job("done", status=JobStatus.COMPLETED),
            _job("broken", status=JobStatus.FAILED),
            _job("live", status=JobStatus.PRINTING),
        ]
        assert [job.id for job in order_queue(jobs)] == ["live"]

    def test_empty(self):
        assert order_queue([]) == []


# Tests for queue_position / queue_head

class TestQueuePosition:

    def test_one_based(self):
        ordered = order_queue([_job("a", minutes=0), _job("b", minutes=1)])
        assert queue_position(ordered, "a") == 1
        assert queue_position(ordered, "b") == 2

    def test_absent_is_zero(self):
        assert queue_position(order_queue([_job("a")]), "zzz") == 0


class TestQueueHead:

    def test_printing_job_wins(self):
        ordered = order_queue([
            _job("urgent", Priority.URGENT, paid=True),
            _job("busy", Priority.NORMAL, status=JobStatus.PRINTING, paid=True),
        ])
        assert queue_head(ordered).id == "busy"

    def test_skips_unpaid_when_required(self):
        ordered = order_queue([
            _job("unpaid", Priority.URGENT, minutes=0),
            _job("paid", Priority.NORMAL, minutes=1, paid=True),
        ])
        assert queue_head(ordered, require_paid=True).id == "paid"
        assert queue_head(ordered, require_paid=False).id == "unpaid"

    @pytest.mark.parametrize("require_paid", [True, False])
    def test_empty_queue_has_no_head(self, require_paid):
        assert queue_head([], require_paid=require_paid) is None
