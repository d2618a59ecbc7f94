"""
Queue ordering for a machine's active jobs.

Urgent jobs go before normal ones; within a tier, oldest first. The order is
recomputed from the store on every query and never cached, so a position is
only as fresh as the read it came from.
"""

from __future__ import annotations

from typing import Iterable, List, Optional

from models.job import Job, JobStatus


def _queue_key(job: Job):
    return (int(job.priority), job.created_at)


def order_queue(jobs: Iterable[Job]) -> List[Job]:
    """
    Order a machine's jobs for printing.

    Jobs that are not queued or printing are dropped. ``sorted`` is stable,
    so jobs with equal priority and timestamp keep the order the store
    returned them in.
    """
    return sorted((job for job in jobs if job.status.is_active), key=_queue_key)


def queue_position(ordered: List[Job], job_id: str) -> int:
    """1-based rank of ``job_id`` in an ordered queue, 0 if it is not there."""
    for index, job in enumerate(ordered, start=1):
        if job.id == job_id:
            return index
    return 0


def queue_head(ordered: List[Job], require_paid: bool = False) -> Optional[Job]:
    """
    The job the machine should work on now.

    A job already printing wins. Otherwise the first queued job, skipping
    unpaid ones when ``require_paid`` is set.
    """
    for job in ordered:
        if job.status is JobStatus.PRINTING:
            return job

    for job in ordered:
        if job.status is JobStatus.QUEUED and (job.is_paid or not require_paid):
            return job

    return None
