"""
Realtime fan-out of job and machine changes.

Notifier:
    Room-based publish/subscribe keyed by machine id. Each subscriber owns a
    bounded queue.Queue; publish() does put_nowait() and drops the event for
    any subscriber whose queue is full. Delivery is at-most-once, there is no
    replay, and publishing never blocks the write that triggered it. Clients
    poll the REST endpoints as the source of truth.

SessionRegistry:
    Maps transport session ids to the machine or user they belong to. Kept
    in memory only; the stores never see session ids. A machine has at most
    one current session, and binding a new one supersedes the old.

Usage:
    subscription = notifier.subscribe("M1", session_id)
    notifier.publish("M1", "job:queued", {"job": job.to_summary()})
    event = subscription.get(timeout=15)   # None on timeout
    notifier.unsubscribe(session_id)
"""

from __future__ import annotations

import json
import queue
import threading
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, Any, List, Optional

from models.job import utcnow
from logging_config import get_logger


# Module logger
logger = get_logger(__name__)


@dataclass(frozen=True)
class Event:
    name: str
    machine_id: str
    payload: Dict[str, Any]
    sent_at: datetime = field(default_factory=utcnow)

    def to_sse(self) -> str:
        """Serialize as one Server-Sent Events message."""
        data = dict(self.payload, machineId=self.machine_id, sentAt=self.sent_at.isoformat())
        return f"event: {self.name}\ndata: {json.dumps(data)}\n\n"


class Subscription:
    """One listener on one machine channel."""

    def __init__(self, session_id: str, machine_id: str, max_queue: int):
        self.session_id = session_id
        self.machine_id = machine_id
        self._queue: "queue.Queue[Event]" = queue.Queue(maxsize=max_queue)
        self.dropped = 0

    def offer(self, event: Event) -> bool:
        try:
            self._queue.put_nowait(event)
            return True
        except queue.Full:
            self.dropped += 1
            return False

    def get(self, timeout: Optional[float] = None) -> Optional[Event]:
        try:
            return self._queue.get(timeout=timeout)
        except queue.Empty:
            return None


class Notifier:
    """In-process pub/sub keyed by machine id."""

    def __init__(self, max_queue: int = 100):
        self._max_queue = max_queue
        self._rooms: Dict[str, Dict[str, Subscription]] = {}
        self._by_session: Dict[str, Subscription] = {}
        self._lock = threading.Lock()

    def subscribe(self, machine_id: str, session_id: str) -> Subscription:
        subscription = Subscription(session_id, machine_id, self._max_queue)
        with self._lock:
            previous = self._by_session.pop(session_id, None)
            if previous:
                self._rooms.get(previous.machine_id, {}).pop(session_id, None)
            self._rooms.setdefault(machine_id, {})[session_id] = subscription
            self._by_session[session_id] = subscription
        logger.debug(f"Session {session_id[:8]} subscribed to machine {machine_id}")
        return subscription

    def unsubscribe(self, session_id: str) -> None:
        with self._lock:
            subscription = self._by_session.pop(session_id, None)
            if subscription is None:
                return
            room = self._rooms.get(subscription.machine_id, {})
            room.pop(session_id, None)
            if not room:
                self._rooms.pop(subscription.machine_id, None)
        logger.debug(f"Session {session_id[:8]} unsubscribed from machine {subscription.machine_id}")

    def publish(self, machine_id: str, name: str, payload: Dict[str, Any]) -> int:
        """
        Broadcast an event to a machine's room.

        Returns:
            Number of subscribers the event was queued for
        """
        event = Event(name=name, machine_id=machine_id, payload=payload)
        with self._lock:
            subscribers: List[Subscription] = list(self._rooms.get(machine_id, {}).values())

        delivered = 0
        for subscription in subscribers:
            if subscription.offer(event):
                delivered += 1
            else:
                logger.warning(
                    f"Dropped '{name}' for session {subscription.session_id[:8]} "
                    f"on machine {machine_id} (queue full)"
                )
        return delivered

    def subscriber_count(self, machine_id: str) -> int:
        with self._lock:
            return len(self._rooms.get(machine_id, {}))


@dataclass(frozen=True)
class SessionBinding:
    session_id: str
    kind: str
    """Either "machine" or "user"."""
    machine_id: str
    user_name: Optional[str] = None
    bound_at: datetime = field(default_factory=utcnow)


class SessionRegistry:
    """
    Session id -> entity bindings.

    Thread Safety:
        All lookups and updates happen under one lock.
    """

    MACHINE = "machine"
    USER = "user"

    def __init__(self):
        self._bindings: Dict[str, SessionBinding] = {}
        self._machine_sessions: Dict[str, str] = {}
        self._lock = threading.Lock()

    def bind_machine(self, session_id: str, machine_id: str) -> Optional[str]:
        """
        Make ``session_id`` the machine's current session.

        Returns:
            The superseded session id, if there was one
        """
        binding = SessionBinding(session_id=session_id, kind=self.MACHINE, machine_id=machine_id)
        with self._lock:
            previous = self._machine_sessions.get(machine_id)
            if previous and previous != session_id:
                self._bindings.pop(previous, None)
            self._bindings[session_id] = binding
            self._machine_sessions[machine_id] = session_id
        if previous and previous != session_id:
            logger.info(f"Machine {machine_id} session {previous[:8]} superseded by {session_id[:8]}")
            return previous
        return None

    def bind_user(self, session_id: str, machine_id: str, user_name: str) -> None:
        binding = SessionBinding(
            session_id=session_id,
            kind=self.USER,
            machine_id=machine_id,
            user_name=user_name,
        )
        with self._lock:
            self._bindings[session_id] = binding

    def unbind(self, session_id: str) -> Optional[SessionBinding]:
        """
        Remove a session.

        Returns:
            The binding that was removed, or None if the session was unknown
            or had already been superseded
        """
        with self._lock:
            binding = self._bindings.pop(session_id, None)
            if binding and binding.kind == self.MACHINE:
                if self._machine_sessions.get(binding.machine_id) == session_id:
                    del self._machine_sessions[binding.machine_id]
        return binding

    def get(self, session_id: str) -> Optional[SessionBinding]:
        with self._lock:
            return self._bindings.get(session_id)

    def session_for_machine(self, machine_id: str) -> Optional[str]:
        with self._lock:
            return self._machine_sessions.get(machine_id)
