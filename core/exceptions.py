"""
Custom exceptions for PrintVend.

Exception Hierarchy:
    PrintVendError (base, 500)
    ├── ValidationError            - missing or malformed input (400)
    ├── NotFoundError              - unknown record (404)
    │   ├── JobNotFoundError
    │   └── MachineNotFoundError
    ├── PreconditionError          - record state forbids the request (400)
    │   ├── MachineOfflineError
    │   ├── AlreadyPaidError
    │   └── InvalidTransitionError
    ├── PaymentVerificationError   - payment signature mismatch (400)
    └── UpstreamError              - external service failed (500)
        ├── PaymentGatewayError
        └── StorageError

Usage:
    Services raise these; routes turn them into ``{"error": message}`` with
    ``status_code``. Anything else reaching a route is logged and becomes a
    generic 500.
"""

from typing import Optional, Dict, Any


class PrintVendError(Exception):
    """
    Base exception for all PrintVend errors.

    All custom exceptions inherit from this class, allowing callers to catch
    all application-specific errors with a single except clause if needed.
    """

    status_code = 500

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        """
        Initialize the exception.

        Args:
            message: Human-readable error message (shown to clients as-is)
            details: Optional dictionary with additional context for logging
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


# =============================================================================
# CLIENT ERRORS - the request cannot be served as sent
# =============================================================================

class ValidationError(PrintVendError):
    """Missing or malformed input."""

    status_code = 400


class NotFoundError(PrintVendError):
    """A referenced job or machine does not exist."""

    status_code = 404


class JobNotFoundError(NotFoundError):

    def __init__(self, job_id: str):
        super().__init__("Job not found", {"job_id": job_id})
        self.job_id = job_id


class MachineNotFoundError(NotFoundError):

    def __init__(self, machine_id: str):
        super().__init__("Machine not found", {"machine_id": machine_id})
        self.machine_id = machine_id


class PreconditionError(PrintVendError):
    """The record exists but its current state does not allow the request."""

    status_code = 400


class MachineOfflineError(PreconditionError):
    """
    The machine is not ``online``.

    Machines only accept new jobs and user connections while online; a
    machine that is printing or disconnected is rejected.
    """

    def __init__(self, machine_id: str, status: str):
        super().__init__(
            "Machine is offline",
            {"machine_id": machine_id, "status": status},
        )
        self.machine_id = machine_id
        self.status = status


class AlreadyPaidError(PreconditionError):

    def __init__(self, job_id: str):
        super().__init__("Job already paid", {"job_id": job_id})
        self.job_id = job_id


class InvalidTransitionError(PreconditionError):
    """
    Requested job status change is not in the transition table.

    Raised before anything is written, so the job and its machine are left
    exactly as they were.
    """

    def __init__(self, job_id: str, current: str, requested: str):
        message = f"Cannot change job status from '{current}' to '{requested}'"
        details = {
            "job_id": job_id,
            "current": current,
            "requested": requested,
        }
        super().__init__(message, details)
        self.job_id = job_id
        self.current = current
        self.requested = requested


class PaymentVerificationError(PrintVendError):
    """Supplied payment signature does not match the expected HMAC."""

    status_code = 400

    def __init__(self, message: str = "Invalid payment signature", job_id: Optional[str] = None):
        details = {"job_id": job_id} if job_id else {}
        super().__init__(message, details)
        self.job_id = job_id


# =============================================================================
# UPSTREAM ERRORS - an external collaborator failed; terminal for the request
# =============================================================================

class UpstreamError(PrintVendError):
    """
    Base class for failures of external services.

    There is no retry: the request fails and the client may try again.
    """

    status_code = 500

    def __init__(
        self,
        message: str,
        service: str,
        details: Optional[Dict[str, Any]] = None
    ):
        error_details = details or {}
        error_details["service"] = service
        super().__init__(message, error_details)
        self.service = service


class PaymentGatewayError(UpstreamError):

    def __init__(self, message: str = "Failed to create payment order", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, "payment_gateway", details)


class StorageError(UpstreamError):

    def __init__(self, message: str = "Failed to store file", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, "file_storage", details)
