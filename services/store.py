"""
Job and machine stores.

JobStore / MachineStore are the persistence seam. The services only use the
methods declared here, so the in-memory stores below and the SQLAlchemy
stores in sql_store.py are interchangeable.

Thread Safety (in-memory):
    - One threading.Lock per store guards its dict
    - Records are copied on the way in and on the way out, so a caller
      mutating a job it fetched changes nothing until it calls save()
"""

from __future__ import annotations

import threading
from abc import ABC, abstractmethod
from dataclasses import replace
from typing import Dict, List, Optional

from models.job import Job, ACTIVE_STATUSES
from models.machine import Machine
from logging_config import get_logger


# Module logger
logger = get_logger(__name__)


class JobStore(ABC):

    @abstractmethod
    def add(self, job: Job) -> None:
        """Insert a new job."""

    @abstractmethod
    def get(self, job_id: str) -> Optional[Job]:
        """Return the job or None."""

    @abstractmethod
    def save(self, job: Job) -> None:
        """Overwrite an existing job."""

    @abstractmethod
    def list_active(self, machine_id: str) -> List[Job]:
        """Queued and printing jobs of a machine, in store order (oldest first)."""


class MachineStore(ABC):

    @abstractmethod
    def get(self, machine_id: str) -> Optional[Machine]:
        """Return the machine or None."""

    @abstractmethod
    def save(self, machine: Machine) -> None:
        """Insert or overwrite a machine."""


class InMemoryJobStore(JobStore):
    """Dict-backed job store; iteration order is insertion order."""

    def __init__(self):
        self._jobs: Dict[str, Job] = {}
        self._lock = threading.Lock()

    def add(self, job: Job) -> None:
        with self._lock:
            if job.id in self._jobs:
                raise ValueError(f"Job {job.id} already exists")
            self._jobs[job.id] = replace(job)
            logger.debug(f"Stored job {job.id[:8]} for machine {job.machine_id}")

    def get(self, job_id: str) -> Optional[Job]:
        with self._lock:
            job = self._jobs.get(job_id)
            return replace(job) if job else None

    def save(self, job: Job) -> None:
        with self._lock:
            if job.id not in self._jobs:
                raise KeyError(job.id)
            self._jobs[job.id] = replace(job)

    def list_active(self, machine_id: str) -> List[Job]:
        with self._lock:
            return [
                replace(job)
                for job in self._jobs.values()
                if job.machine_id == machine_id and job.status in ACTIVE_STATUSES
            ]


class InMemoryMachineStore(MachineStore):

    def __init__(self):
        self._machines: Dict[str, Machine] = {}
        self._lock = threading.Lock()

    def get(self, machine_id: str) -> Optional[Machine]:
        with self._lock:
            machine = self._machines.get(machine_id)
            return replace(machine) if machine else None

    def save(self, machine: Machine) -> None:
        with self._lock:
            self._machines[machine.machine_id] = replace(machine)
