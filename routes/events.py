"""
Realtime event stream (Server-Sent Events).

Handles:
- GET /api/events/<machine_id>?role=machine
      The machine's own stream. Opening it binds the session and marks the
      machine online; closing it marks the machine offline, unless a newer
      stream for the same machine has taken over.
- GET /api/events/<machine_id>?role=user&name=<user name>
      A user's view of the machine's queue.

Events are best-effort. A client that drops misses whatever was published
while it was away and must re-read state from the REST endpoints, which it
polls every POLL_INTERVAL_SECONDS anyway.
"""

import json
import threading
import uuid

from flask import Blueprint, Response, current_app, request

from core.exceptions import PrintVendError, ValidationError
from .helpers import error_response, sanitize_text, server_error
from logging_config import get_logger, set_thread_name


# Module logger
logger = get_logger(__name__)

events_bp = Blueprint("events", __name__, url_prefix="/api/events")


def stream_events(subscription, notifier, machine_service, session_id, keepalive_seconds, retry_ms):
    """
    Yield SSE messages until the client goes away.

    The generator's ``finally`` runs when the WSGI server closes it after a
    disconnect; that is where the session is released and the worker
    thread gets its own name back.
    """
    previous_thread_name = threading.current_thread().name
    set_thread_name(f"Events-{session_id[:8]}")
    try:
        yield f"retry: {retry_ms}\n"
        yield f"event: session\ndata: {json.dumps({'sessionId': session_id})}\n\n"
        while True:
            event = subscription.get(timeout=keepalive_seconds)
            if event is None:
                yield ": keep-alive\n\n"
                continue
            yield event.to_sse()
    finally:
        notifier.unsubscribe(session_id)
        machine_service.detach_session(session_id)
        logger.info(f"Stream {session_id[:8]} closed for machine {subscription.machine_id}")
        set_thread_name(previous_thread_name)


@events_bp.route("/<machine_id>", methods=["GET"])
def machine_events(machine_id: str):
    try:
        config = current_app.config
        machine_service = config["MACHINE_SERVICE"]
        notifier = config["NOTIFIER"]

        role = request.args.get("role", "user")
        session_id = str(uuid.uuid4())

        if role == "machine":
            machine_service.attach_session(session_id, machine_id)
        elif role == "user":
            user_name = sanitize_text(request.args.get("name")) or "guest"
            machine_service.join_user(session_id, machine_id, user_name)
        else:
            raise ValidationError("role must be 'machine' or 'user'")

        subscription = notifier.subscribe(machine_id, session_id)
        logger.info(f"Stream {session_id[:8]} opened for machine {machine_id} as {role}")

        generator = stream_events(
            subscription,
            notifier,
            machine_service,
            session_id,
            keepalive_seconds=config.get("EVENT_KEEPALIVE_SECONDS", 15),
            retry_ms=config.get("POLL_INTERVAL_SECONDS", 10) * 1000,
        )
        return Response(
            generator,
            mimetype="text/event-stream",
            headers={"Cache-Control": "no-cache", "X-Accel-Buffering": "no"},
        )

    except PrintVendError as e:
        return error_response(e)
    except Exception as e:
        return server_error("open event stream", e)
