"""
Core module for PrintVend.

Contains infrastructure shared by the services:
- exceptions: Custom exception hierarchy
- security: Payment signature HMAC
- payment_gateway: Razorpay orders client
- file_storage: Local and Cloudinary upload backends
"""

from .exceptions import (
    PrintVendError,
    ValidationError,
    NotFoundError,
    JobNotFoundError,
    MachineNotFoundError,
    PreconditionError,
    MachineOfflineError,
    AlreadyPaidError,
    InvalidTransitionError,
    PaymentVerificationError,
    UpstreamError,
    PaymentGatewayError,
    StorageError,
)
from .payment_gateway import RazorpayClient
from .file_storage import FileStorage, LocalFileStorage, CloudinaryFileStorage, StoredFile

__all__ = [
    "PrintVendError",
    "ValidationError",
    "NotFoundError",
    "JobNotFoundError",
    "MachineNotFoundError",
    "PreconditionError",
    "MachineOfflineError",
    "AlreadyPaidError",
    "InvalidTransitionError",
    "PaymentVerificationError",
    "UpstreamError",
    "PaymentGatewayError",
    "StorageError",
    "RazorpayClient",
    "FileStorage",
    "LocalFileStorage",
    "CloudinaryFileStorage",
    "StoredFile",
]
