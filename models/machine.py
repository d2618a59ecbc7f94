"""Print machine data model."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Dict, Any, Optional

from .job import utcnow


class MachineStatus(Enum):
    """
    Status of a physical print station.

    ONLINE is the only status in which a machine accepts new jobs and user
    connections. PRINTING mirrors a job in the printing state.
    """

    ONLINE = "online"
    OFFLINE = "offline"
    PRINTING = "printing"


@dataclass
class Machine:
    """A print station identified by its human-entered key."""

    machine_id: str
    name: str
    location: str
    rate_per_page: float
    status: MachineStatus = MachineStatus.OFFLINE
    last_seen: Optional[datetime] = None
    created_at: datetime = field(default_factory=utcnow)

    @property
    def is_online(self) -> bool:
        return self.status is MachineStatus.ONLINE

    def to_dict(self) -> Dict[str, Any]:
        return {
            "machineId": self.machine_id,
            "name": self.name,
            "location": self.location,
            "status": self.status.value,
            "ratePerPage": self.rate_per_page,
            "lastSeen": self.last_seen.isoformat() if self.last_seen else None,
        }
