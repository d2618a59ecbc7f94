"""
Machine registration, user connection and realtime session lifecycle.

A machine becomes ``online`` when it registers or opens its event stream,
and ``offline`` when that stream's session ends. Session ids are held in the
SessionRegistry, never on the machine record.
"""

from __future__ import annotations

import uuid
from typing import Dict, Any, Optional, Tuple

from core.exceptions import MachineNotFoundError, MachineOfflineError, ValidationError
from models.job import utcnow
from models.machine import Machine, MachineStatus
from modules.qr_code import connect_url, make_qr_data_url, make_qr_png
from .notifier import Notifier, SessionRegistry
from .store import MachineStore
from logging_config import get_logger


# Module logger
logger = get_logger(__name__)


class MachineService:
    """
    Operations on print machines.

    Attributes:
        sessions: Registry of realtime sessions bound to machines and users
    """

    def __init__(
        self,
        machine_store: MachineStore,
        notifier: Notifier,
        sessions: SessionRegistry,
        client_url: str,
        default_rate_per_page: float = 2.0,
    ):
        self._machines = machine_store
        self._notifier = notifier
        self._sessions = sessions
        self._client_url = client_url
        self._default_rate = default_rate_per_page

    @property
    def sessions(self) -> SessionRegistry:
        return self._sessions

    def get(self, machine_id: str) -> Machine:
        """
        Raises:
            MachineNotFoundError: If no machine has this key
        """
        machine = self._machines.get(machine_id)
        if machine is None:
            raise MachineNotFoundError(machine_id)
        return machine

    def register(
        self,
        machine_id: str,
        name: str,
        location: str,
        rate_per_page: Optional[float] = None,
    ) -> Tuple[Machine, str]:
        """
        Register a machine, or refresh an existing one, and bring it online.

        Re-registering keeps the machine's rate unless a new one is given.

        Returns:
            (machine, qr_code) where qr_code is a PNG data URL of the
            machine's connect link
        """
        if not machine_id or not name or not location:
            raise ValidationError("Machine ID, name, and location are required")
        if rate_per_page is not None and rate_per_page <= 0:
            raise ValidationError("Rate per page must be positive")

        now = utcnow()
        machine = self._machines.get(machine_id)

        if machine:
            machine.name = name
            machine.location = location
            if rate_per_page is not None:
                machine.rate_per_page = rate_per_page
            logger.info(f"Re-registering machine {machine_id}")
        else:
            machine = Machine(
                machine_id=machine_id,
                name=name,
                location=location,
                rate_per_page=rate_per_page if rate_per_page is not None else self._default_rate,
                created_at=now,
            )
            logger.info(f"Registering new machine {machine_id} at '{location}'")

        machine.status = MachineStatus.ONLINE
        machine.last_seen = now
        self._machines.save(machine)
        self._publish_status(machine)

        return machine, make_qr_data_url(self.connect_link(machine_id))

    def connect_link(self, machine_id: str) -> str:
        return connect_url(self._client_url, machine_id)

    def qr_png(self, machine_id: str) -> bytes:
        self.get(machine_id)
        return make_qr_png(self.connect_link(machine_id))

    def connect(self, machine_key: str, user_name: str) -> Dict[str, Any]:
        """
        A user connects to a machine after scanning its QR code.

        Raises:
            ValidationError: Missing key or user name
            MachineNotFoundError: Unknown machine
            MachineOfflineError: Machine is not online
        """
        if not machine_key or not user_name:
            raise ValidationError("Machine ID and user name are required")

        machine = self.get(machine_key)
        if not machine.is_online:
            raise MachineOfflineError(machine.machine_id, machine.status.value)

        logger.info(f"User '{user_name}' connected to machine {machine.machine_id}")
        return {
            "success": True,
            "machine": machine.to_dict(),
            "user": {"id": str(uuid.uuid4()), "name": user_name},
        }

    def set_status(self, machine_id: str, status: MachineStatus) -> Optional[Machine]:
        """
        Mirror a job transition onto the machine.

        Returns None without raising if the machine record is gone; the job
        write has already happened and there is nothing to roll back.
        """
        machine = self._machines.get(machine_id)
        if machine is None:
            logger.warning(f"Cannot set status of unknown machine {machine_id} to {status.value}")
            return None

        if machine.status is not status:
            machine.status = status
            self._machines.save(machine)
            logger.info(f"Machine {machine_id} is now {status.value}")
            self._publish_status(machine)
        return machine

    # =========================================================================
    # REALTIME SESSIONS
    # =========================================================================

    def attach_session(self, session_id: str, machine_id: str) -> Machine:
        """
        Bind a machine's event-stream session and mark the machine online.

        A machine that is mid-print keeps its ``printing`` status.
        """
        machine = self.get(machine_id)
        self._sessions.bind_machine(session_id, machine_id)

        machine.last_seen = utcnow()
        if machine.status is MachineStatus.OFFLINE:
            machine.status = MachineStatus.ONLINE
        self._machines.save(machine)

        logger.info(f"Machine {machine_id} attached session {session_id[:8]}")
        self._publish_status(machine)
        return machine

    def join_user(self, session_id: str, machine_id: str, user_name: str) -> None:
        self.get(machine_id)
        self._sessions.bind_user(session_id, machine_id, user_name)
        logger.info(f"User '{user_name}' joined machine {machine_id} (session {session_id[:8]})")

    def detach_session(self, session_id: str) -> Optional[Machine]:
        """
        Drop a session. If it was a machine's current session, the machine
        goes offline.

        Returns:
            The machine that went offline, if any
        """
        binding = self._sessions.unbind(session_id)
        if binding is None or binding.kind != SessionRegistry.MACHINE:
            return None

        machine = self._machines.get(binding.machine_id)
        if machine is None:
            return None

        machine.status = MachineStatus.OFFLINE
        machine.last_seen = utcnow()
        self._machines.save(machine)

        logger.info(f"Machine {machine.machine_id} disconnected")
        self._publish_status(machine)
        return machine

    def _publish_status(self, machine: Machine) -> None:
        self._notifier.publish(machine.machine_id, "machine:status", {"machine": machine.to_dict()})
