"""Request parsing and error responses shared by the blueprints."""

from typing import Any, Dict, Optional

import bleach
from flask import current_app, request

from core.exceptions import PrintVendError, ValidationError
from logging_config import get_logger


# Module logger
logger = get_logger(__name__)

MAX_TEXT_LENGTH = 200


def sanitize_text(text: Any, max_length: Optional[int] = MAX_TEXT_LENGTH) -> str:
    """
    Strip markup and surrounding whitespace from user-supplied text.

    Names typed on a phone end up on the machine's screen, so no HTML gets
    through.
    """
    if text is None:
        return ""

    text = str(text).strip()
    text = bleach.clean(text, tags=[], strip=True)

    if max_length and len(text) > max_length:
        text = text[:max_length]

    return text


def json_body() -> Dict[str, Any]:
    """The request's JSON object body; an empty dict when there is none."""
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    return data


def service(name: str):
    return current_app.config[name]


def error_response(error: PrintVendError):
    """Flat ``{"error": message}`` with the exception's status code."""
    if error.status_code >= 500:
        logger.error(f"{type(error).__name__}: {error}")
    else:
        logger.info(f"{request.method} {request.path} -> {error.status_code}: {error}")
    return {"error": error.message}, error.status_code


def server_error(action: str, error: Exception):
    """Log an unexpected failure with traceback and hide it from the client."""
    logger.error(f"{action} failed: {error}", exc_info=True)
    return {"error": f"Failed to {action}"}, 500
