"""Helper modules for the PrintVend application."""

__all__ = [
    "pdf_analyzer",
    "pricing",
    "qr_code",
    "queue_policy",
]
