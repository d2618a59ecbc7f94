"""
Job routes.

Handles:
- POST  /api/job                    - create a job
- POST  /api/job/quote              - price preview, nothing stored
- GET   /api/job/status/<job_id>    - job + queue position (polling)
- GET   /api/job/queue/<machine_id> - ordered queue (polling)
- GET   /api/job/next/<machine_id>  - job the machine should print now
- PATCH /api/job/<job_id>           - status / error update
"""

from flask import Blueprint, current_app

from core.exceptions import PrintVendError
from services.job_service import parse_priority
from .helpers import error_response, json_body, sanitize_text, server_error, service
from logging_config import get_logger


# Module logger
logger = get_logger(__name__)

job_bp = Blueprint("job", __name__, url_prefix="/api/job")


def _poll_interval() -> int:
    return current_app.config.get("POLL_INTERVAL_SECONDS", 10)


@job_bp.route("", methods=["POST"])
@job_bp.route("/create", methods=["POST"])
def create_job():
    """Create a print job and report where it landed in the queue."""
    try:
        data = json_body()
        job_service = service("JOB_SERVICE")

        job, position, length = job_service.create_job(
            machine_id=sanitize_text(data.get("machineId")),
            user_name=sanitize_text(data.get("userName")),
            file_url=str(data.get("fileUrl") or "").strip(),
            file_name=sanitize_text(data.get("fileName"), max_length=255),
            storage_id=sanitize_text(data.get("storageId") or data.get("publicId"), max_length=255),
            page_count=data.get("pageCount"),
            pages_to_print=sanitize_text(data.get("pagesToPrint")),
            priority=data.get("priority"),
        )

        return {
            "job": job.to_dict(),
            "queuePosition": position,
            "queueLength": length,
        }, 201

    except PrintVendError as e:
        return error_response(e)
    except Exception as e:
        return server_error("create job", e)


@job_bp.route("/quote", methods=["POST"])
def quote_job():
    """Price a page selection on a machine without creating anything."""
    try:
        data = json_body()
        machine = service("MACHINE_SERVICE").get(sanitize_text(data.get("machineId")))
        pricer = service("PRICER")

        return pricer.quote(
            sanitize_text(data.get("pagesToPrint")),
            parse_priority(data.get("priority")),
            machine.rate_per_page,
        )

    except PrintVendError as e:
        return error_response(e)
    except Exception as e:
        return server_error("quote job", e)


@job_bp.route("/status/<job_id>", methods=["GET"])
def job_status(job_id: str):
    try:
        job_service = service("JOB_SERVICE")
        job = job_service.get(job_id)
        position, length = job_service.get_position(job)

        return {
            "job": job.to_dict(),
            "queuePosition": position,
            "queueLength": length,
            "pollIntervalSeconds": _poll_interval(),
        }

    except PrintVendError as e:
        return error_response(e)
    except Exception as e:
        return server_error("get job status", e)


@job_bp.route("/queue/<machine_id>", methods=["GET"])
def machine_queue(machine_id: str):
    """Ordered summaries of a machine's queued and printing jobs."""
    try:
        service("MACHINE_SERVICE").get(machine_id)
        queue = service("JOB_SERVICE").get_queue(machine_id)

        return {
            "machineId": machine_id,
            "queue": [
                dict(job.to_summary(), position=index)
                for index, job in enumerate(queue, start=1)
            ],
            "queueLength": len(queue),
            "pollIntervalSeconds": _poll_interval(),
        }

    except PrintVendError as e:
        return error_response(e)
    except Exception as e:
        return server_error("get machine queue", e)


@job_bp.route("/next/<machine_id>", methods=["GET"])
def next_job(machine_id: str):
    try:
        job = service("JOB_SERVICE").next_job(machine_id)
        return {"job": job.to_dict() if job else None}

    except PrintVendError as e:
        return error_response(e)
    except Exception as e:
        return server_error("get next job", e)


@job_bp.route("/<job_id>", methods=["PATCH"])
def update_job(job_id: str):
    """Apply a status transition, optionally recording an error message."""
    try:
        data = json_body()
        error_message = sanitize_text(data.get("error"), max_length=500) or None

        job = service("JOB_SERVICE").update_status(job_id, data.get("status"), error_message)

        return {"job": job.to_dict()}

    except PrintVendError as e:
        return error_response(e)
    except Exception as e:
        return server_error("update job status", e)
