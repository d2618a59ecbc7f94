"""
Unit tests for the realtime notifier, session registry and machine session
lifecycle.
"""

import json

import pytest

from core.exceptions import MachineOfflineError
from models.machine import MachineStatus
from services.notifier import Event, Notifier, SessionRegistry


# Tests for Notifier

class TestNotifier:

    def test_publish_reaches_room_only(self):
        notifier = Notifier(max_queue=5)
        m1 = notifier.subscribe("M1", "s1")
        m2 = notifier.subscribe("M2", "s2")

        delivered = notifier.publish("M1", "job:queued", {"job": {"id": "j1"}})

        assert delivered == 1
        assert m1.get(timeout=0.1).payload["job"]["id"] == "j1"
        assert m2.get(timeout=0.01) is None

    def test_full_queue_drops_events(self):
        notifier = Notifier(max_queue=2)
        subscription = notifier.subscribe("M1", "s1")

        results = [notifier.publish("M1", "job:queued", {"n": n}) for n in range(4)]

        assert results == [1, 1, 0, 0]
        assert subscription.dropped == 2
        assert subscription.get(timeout=0.01).payload["n"] == 0
        assert subscription.get(timeout=0.01).payload["n"] == 1
        assert subscription.get(timeout=0.01) is None

    def test_slow_subscriber_does_not_starve_others(self):
        notifier = Notifier(max_queue=1)
        slow = notifier.subscribe("M1", "slow")
        fast = notifier.subscribe("M1", "fast")

        notifier.publish("M1", "a", {})
        fast.get(timeout=0.01)
        assert notifier.publish("M1", "b", {}) == 1
        assert fast.get(timeout=0.01).name == "b"
        assert slow.dropped == 1

    def test_unsubscribe(self):
        notifier = Notifier()
        notifier.subscribe("M1", "s1")
        notifier.unsubscribe("s1")
        notifier.unsubscribe("s1")

        assert notifier.subscriber_count("M1") == 0
        assert notifier.publish("M1", "job:queued", {}) == 0

    def test_resubscribe_moves_session(self):
        notifier = Notifier()
        notifier.subscribe("M1", "s1")
        notifier.subscribe("M2", "s1")

        assert notifier.subscriber_count("M1") == 0
        assert notifier.subscriber_count("M2") == 1

    def test_event_sse_format(self):
        event = Event(name="job:printing", machine_id="M1", payload={"job": {"id": "j1"}})
        text = event.to_sse()

        assert text.startswith("event: job:printing\ndata: ")
        assert text.endswith("\n\n")
        data = json.loads(text.split("data: ", 1)[1])
        assert data["machineId"] == "M1"
        assert data["job"]["id"] == "j1"
        assert "sentAt" in data


# Tests for SessionRegistry

class TestSessionRegistry:

    def test_new_machine_session_supersedes_old(self):
        registry = SessionRegistry()
        assert registry.bind_machine("old", "M1") is None
        assert registry.bind_machine("new", "M1") == "old"

        assert registry.session_for_machine("M1") == "new"
        assert registry.get("old") is None

    def test_unbind_user(self):
        registry = SessionRegistry()
        registry.bind_user("u1", "M1", "Asha")

        binding = registry.unbind("u1")
        assert binding.kind == SessionRegistry.USER
        assert binding.user_name == "Asha"
        assert registry.unbind("u1") is None

    def test_unbind_current_machine_session_clears_machine(self):
        registry = SessionRegistry()
        registry.bind_machine("s1", "M1")
        registry.unbind("s1")
        assert registry.session_for_machine("M1") is None


# Tests for MachineService session lifecycle

class TestMachineSessions:

    def test_attach_brings_offline_machine_online(self, machine_service, online_machine):
        machine_service.set_status("M1", MachineStatus.OFFLINE)
        machine = machine_service.attach_session("s1", "M1")
        assert machine.status is MachineStatus.ONLINE

    def test_attach_keeps_printing_status(self, machine_service, online_machine):
        machine_service.set_status("M1", MachineStatus.PRINTING)
        assert machine_service.attach_session("s1", "M1").status is MachineStatus.PRINTING

    def test_disconnect_marks_offline(self, machine_service, online_machine):
        machine_service.attach_session("s1", "M1")
        offline = machine_service.detach_session("s1")

        assert offline.machine_id == "M1"
        assert machine_service.get("M1").status is MachineStatus.OFFLINE

    def test_superseded_session_disconnect_keeps_machine_online(self, machine_service, online_machine):
        machine_service.attach_session("old", "M1")
        machine_service.attach_session("new", "M1")

        assert machine_service.detach_session("old") is None
        assert machine_service.get("M1").status is MachineStatus.ONLINE

    def test_user_disconnect_leaves_machine_alone(self, machine_service, online_machine):
        machine_service.join_user("u1", "M1", "Asha")
        assert machine_service.detach_session("u1") is None
        assert machine_service.get("M1").status is MachineStatus.ONLINE

    def test_status_change_published(self, machine_service, notifier, online_machine):
        subscription = notifier.subscribe("M1", "watcher")
        machine_service.attach_session("s1", "M1")
        machine_service.detach_session("s1")

        statuses = []
        while True:
            event = subscription.get(timeout=0.05)
            if event is None:
                break
            statuses.append(event.payload["machine"]["status"])
        assert statuses[-1] == "offline"


# Tests for registration / connection

class TestMachineRegistry:

    def test_register_returns_qr_data_url(self, machine_service):
        machine, qr_code = machine_service.register("K7", "Hostel", "Block B")

        assert machine.status is MachineStatus.ONLINE
        assert machine.rate_per_page == 2.0
        assert qr_code.startswith("data:image/png;base64,")

    def test_reregister_keeps_rate(self, machine_service):
        machine_service.register("K7", "Hostel", "Block B", rate_per_page=3.0)
        machine, _ = machine_service.register("K7", "Hostel", "Block C")

        assert machine.rate_per_page == 3.0
        assert machine.location == "Block C"

    def test_connect_link(self, machine_service):
        assert machine_service.connect_link("K 7") == "http://kiosk.test/connect?machineId=K+7"

    def test_connect(self, machine_service, online_machine):
        result = machine_service.connect("M1", "Asha")

        assert result["success"] is True
        assert result["machine"]["ratePerPage"] == 2.0
        assert result["user"]["name"] == "Asha"
        assert result["user"]["id"]

    def test_connect_offline_machine(self, machine_service, online_machine):
        machine_service.set_status("M1", MachineStatus.OFFLINE)
        with pytest.raises(MachineOfflineError):
            machine_service.connect("M1", "Asha")
