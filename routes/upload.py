"""
PDF upload route.

Handles file upload, validation and page counting, then hands the bytes to
the configured storage backend. The response carries everything the client
needs to create a job.
"""

from flask import Blueprint, current_app, request, send_from_directory

from core.exceptions import PrintVendError, ValidationError
from .helpers import error_response, sanitize_text, server_error, service
from logging_config import get_logger


# Module logger
logger = get_logger(__name__)

upload_bp = Blueprint("upload", __name__)

# Constants
ALLOWED_EXTENSIONS = {"pdf"}
MAX_FILENAME_LENGTH = 255


def _allowed_file(filename: str) -> bool:
    """Check if file extension is allowed."""
    return "." in filename and filename.rsplit(".", 1)[1].lower() in ALLOWED_EXTENSIONS


def _validate_file_size(size: int) -> None:
    max_size = current_app.config.get("MAX_CONTENT_LENGTH") or 16 * 1024 * 1024

    if size > max_size:
        max_mb = max_size / (1024 * 1024)
        actual_mb = size / (1024 * 1024)
        raise ValidationError(f"File too large ({actual_mb:.1f} MB). Maximum size is {max_mb:.0f} MB.")


@upload_bp.route("/api/upload", methods=["POST"])
@upload_bp.route("/api/upload/pdf", methods=["POST"])
def upload_pdf():
    """
    Accept a PDF in the multipart field ``pdf``.

    Returns:
        {url, publicId, pageCount, fileName, sizeKb, encrypted, pageSize}
    """
    try:
        pdf_file = request.files.get("pdf")

        # Validation: File required
        if not pdf_file or pdf_file.filename == "":
            raise ValidationError("No file uploaded")

        # Validation: Filename length
        if len(pdf_file.filename) > MAX_FILENAME_LENGTH:
            raise ValidationError(f"Filename too long. Maximum {MAX_FILENAME_LENGTH} characters.")

        # Validation: File type
        if not _allowed_file(pdf_file.filename):
            raise ValidationError("Unsupported file type. Please upload a PDF document.")

        data = pdf_file.read()
        _validate_file_size(len(data))

        analysis = service("PDF_ANALYZER").analyze(data)
        if analysis["pages"] <= 0:
            logger.warning(f"Rejected unreadable PDF '{pdf_file.filename}': {analysis.get('error')}")
            raise ValidationError("Could not read PDF")

        stored = service("FILE_STORAGE").upload(data, pdf_file.filename)
        logger.info(f"Upload complete: {stored.public_id} ({analysis['pages']} pages)")

        return {
            "url": stored.url,
            "publicId": stored.public_id,
            "pageCount": analysis["pages"],
            "fileName": sanitize_text(pdf_file.filename, max_length=MAX_FILENAME_LENGTH),
            "sizeKb": analysis["size_kb"],
            "encrypted": analysis["encrypted"],
            "pageSize": analysis["page_size"],
        }

    except PrintVendError as e:
        return error_response(e)
    except Exception as e:
        return server_error("process PDF", e)


@upload_bp.route("/uploads/<path:filename>", methods=["GET"])
def uploaded_file(filename: str):
    """Serve files stored by the local storage backend."""
    return send_from_directory(current_app.config["UPLOAD_FOLDER"], filename, mimetype="application/pdf")
