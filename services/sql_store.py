"""
SQLAlchemy-backed job and machine stores.

Selected when DATABASE_URL is set. Tables are created on startup with
``init_db``; there are no migrations.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy import DateTime, Float, Integer, String, Text, create_engine, select
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, sessionmaker
from sqlalchemy.pool import StaticPool

from models.job import Job, JobStatus, PaymentStatus, Priority, ACTIVE_STATUSES
from models.machine import Machine, MachineStatus
from .store import JobStore, MachineStore
from logging_config import get_logger


# Module logger
logger = get_logger(__name__)


def _as_utc(value: Optional[datetime]) -> Optional[datetime]:
    # SQLite drops tzinfo on the way back
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class Base(DeclarativeBase):
    pass


class PrintJobRow(Base):
    __tablename__ = "print_jobs"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    machine_id: Mapped[str] = mapped_column(String(64), index=True)
    user_name: Mapped[str] = mapped_column(String(200))
    file_url: Mapped[str] = mapped_column(Text)
    file_name: Mapped[str] = mapped_column(String(255))
    storage_id: Mapped[str] = mapped_column(String(255), default="")
    page_count: Mapped[int] = mapped_column(Integer)
    pages_to_print: Mapped[str] = mapped_column(String(255))
    pages_requested: Mapped[int] = mapped_column(Integer)
    priority: Mapped[int] = mapped_column(Integer, default=int(Priority.NORMAL))
    status: Mapped[str] = mapped_column(String(16), index=True, default=JobStatus.QUEUED.value)
    cost: Mapped[float] = mapped_column(Float)
    payment_status: Mapped[str] = mapped_column(String(16), default=PaymentStatus.PENDING.value)
    payment_id: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    gateway_order_id: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    paid_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    error: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True))
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True))

    @classmethod
    def from_model(cls, job: Job) -> "PrintJobRow":
        row = cls(id=job.id)
        row.update_from(job)
        return row

    def update_from(self, job: Job) -> None:
        self.machine_id = job.machine_id
        self.user_name = job.user_name
        self.file_url = job.file_url
        self.file_name = job.file_name
        self.storage_id = job.storage_id
        self.page_count = job.page_count
        self.pages_to_print = job.pages_to_print
        self.pages_requested = job.pages_requested
        self.priority = int(job.priority)
        self.status = job.status.value
        self.cost = job.cost
        self.payment_status = job.payment_status.value
        self.payment_id = job.payment_id
        self.gateway_order_id = job.gateway_order_id
        self.paid_at = job.paid_at
        self.error = job.error
        self.created_at = job.created_at
        self.updated_at = job.updated_at

    def to_model(self) -> Job:
        return Job(
            id=self.id,
            machine_id=self.machine_id,
            user_name=self.user_name,
            file_url=self.file_url,
            file_name=self.file_name,
            storage_id=self.storage_id or "",
            page_count=self.page_count,
            pages_to_print=self.pages_to_print,
            pages_requested=self.pages_requested,
            priority=Priority(self.priority),
            status=JobStatus(self.status),
            cost=self.cost,
            payment_status=PaymentStatus(self.payment_status),
            payment_id=self.payment_id,
            gateway_order_id=self.gateway_order_id,
            paid_at=_as_utc(self.paid_at),
            error=self.error,
            created_at=_as_utc(self.created_at),
            updated_at=_as_utc(self.updated_at),
        )


class MachineRow(Base):
    __tablename__ = "machines"

    machine_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    name: Mapped[str] = mapped_column(String(120))
    location: Mapped[str] = mapped_column(String(255))
    status: Mapped[str] = mapped_column(String(16), default=MachineStatus.OFFLINE.value)
    rate_per_page: Mapped[float] = mapped_column(Float)
    last_seen: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True))

    def update_from(self, machine: Machine) -> None:
        self.name = machine.name
        self.location = machine.location
        self.status = machine.status.value
        self.rate_per_page = machine.rate_per_page
        self.last_seen = machine.last_seen
        self.created_at = machine.created_at

    def to_model(self) -> Machine:
        return Machine(
            machine_id=self.machine_id,
            name=self.name,
            location=self.location,
            status=MachineStatus(self.status),
            rate_per_page=self.rate_per_page,
            last_seen=_as_utc(self.last_seen),
            created_at=_as_utc(self.created_at),
        )


def create_db_engine(database_url: str) -> Engine:
    if database_url.startswith("sqlite") and ":memory:" in database_url:
        # One shared connection, or every session would see its own empty DB
        return create_engine(
            database_url,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    return create_engine(database_url, pool_pre_ping=True)


def init_db(engine: Engine) -> None:
    Base.metadata.create_all(bind=engine)
    logger.info(f"Database tables ready on {engine.url.render_as_string(hide_password=True)}")


class SqlJobStore(JobStore):

    def __init__(self, session_factory: sessionmaker):
        self._sessions = session_factory

    def add(self, job: Job) -> None:
        with self._sessions.begin() as db:
            db.add(PrintJobRow.from_model(job))

    def get(self, job_id: str) -> Optional[Job]:
        with self._sessions() as db:
            row = db.get(PrintJobRow, job_id)
            return row.to_model() if row else None

    def save(self, job: Job) -> None:
        with self._sessions.begin() as db:
            row = db.get(PrintJobRow, job.id)
            if row is None:
                raise KeyError(job.id)
            row.update_from(job)

    def list_active(self, machine_id: str) -> List[Job]:
        statuses = [status.value for status in ACTIVE_STATUSES]
        query = (
            select(PrintJobRow)
            .where(PrintJobRow.machine_id == machine_id)
            .where(PrintJobRow.status.in_(statuses))
            .order_by(PrintJobRow.created_at)
        )
        with self._sessions() as db:
            return [row.to_model() for row in db.scalars(query)]


class SqlMachineStore(MachineStore):

    def __init__(self, session_factory: sessionmaker):
        self._sessions = session_factory

    def get(self, machine_id: str) -> Optional[Machine]:
        with self._sessions() as db:
            row = db.get(MachineRow, machine_id)
            return row.to_model() if row else None

    def save(self, machine: Machine) -> None:
        with self._sessions.begin() as db:
            row = db.get(MachineRow, machine.machine_id)
            if row is None:
                row = MachineRow(machine_id=machine.machine_id)
                db.add(row)
            row.update_from(machine)


def build_sql_stores(database_url: str):
    """Create engine and tables; return (job_store, machine_store)."""
    engine = create_db_engine(database_url)
    init_db(engine)
    session_factory = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)
    return SqlJobStore(session_factory), SqlMachineStore(session_factory)
