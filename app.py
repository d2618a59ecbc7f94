"""
PrintVend - Flask Application Entry Point.

This is a slim app factory that:
1. Picks the persistence backend (in-memory or SQLAlchemy)
2. Creates the notifier and session registry
3. Creates machine, job and payment services
4. Registers route blueprints
5. Sets up JSON error handlers

ARCHITECTURE:
    Request threads
    ├── REST handlers (stateless, read services from app.config)
    └── Event streams (one thread per open stream, blocking on its queue)

    Notifier
    └── Fan-out from services to event-stream queues, never blocks publishers
"""

from __future__ import annotations

import logging
from pathlib import Path

from dotenv import load_dotenv
from flask import Flask
from werkzeug.exceptions import HTTPException, RequestEntityTooLarge

from logging_config import setup_logging, get_logger
from core.file_storage import CloudinaryFileStorage, FileStorage, LocalFileStorage
from core.payment_gateway import RazorpayClient
from modules.pdf_analyzer import PDFAnalyzer
from modules.pricing import JobPricer
from services.store import InMemoryJobStore, InMemoryMachineStore
from services.notifier import Notifier, SessionRegistry
from services.machine_service import MachineService
from services.job_service import JobService
from services.payment_service import PaymentService
from routes import register_blueprints


# Module logger (configured after setup_logging)
logger = get_logger(__name__)

BASE_DIR = Path(__file__).resolve().parent


def _build_stores(database_url: str):
    if not database_url:
        return InMemoryJobStore(), InMemoryMachineStore(), "memory"

    from services.sql_store import build_sql_stores

    job_store, machine_store = build_sql_stores(database_url)
    return job_store, machine_store, "sql"


def _build_file_storage(config) -> FileStorage:
    backend = config.get("STORAGE_BACKEND", "local")
    if backend == "cloudinary":
        return CloudinaryFileStorage(
            cloud_name=config["CLOUDINARY_CLOUD_NAME"],
            api_key=config["CLOUDINARY_API_KEY"],
            api_secret=config["CLOUDINARY_API_SECRET"],
            folder=config.get("CLOUDINARY_FOLDER", "vending-print"),
            timeout_seconds=config.get("UPSTREAM_TIMEOUT_SECONDS", 15.0),
        )
    if backend != "local":
        raise ValueError(f"Unknown STORAGE_BACKEND: {backend}")

    return LocalFileStorage(config["UPLOAD_FOLDER"], config["PUBLIC_BASE_URL"])


def create_app(config_object: str | type = "config.Config") -> Flask:
    """
    Application factory - creates and configures Flask app.

    Args:
        config_object: Import path or class passed to ``config.from_object``

    Returns:
        Configured Flask application

    Raises:
        ValueError: If the storage backend is unknown or misconfigured
    """
    # .env next to this file wins over the working directory's
    env_file = BASE_DIR / ".env"
    load_dotenv(env_file if env_file.exists() else None, override=True)

    # Create Flask app
    app = Flask(__name__)
    app.config.from_object(config_object)

    # Configure logging
    default_level = logging.DEBUG if app.config.get("DEBUG") else logging.INFO
    log_level = logging.getLevelName(app.config.get("LOG_LEVEL") or "")
    if not isinstance(log_level, int):
        log_level = default_level
    enable_file_logging = app.config.get("ENVIRONMENT") == "production"

    root_logger = setup_logging(
        app_name="print_vend",
        log_level=log_level,
        enable_file_logging=enable_file_logging
    )

    # Set Flask's logger to use our configured logger
    app.logger.handlers = root_logger.handlers
    app.logger.setLevel(log_level)

    logger.info(f"Starting PrintVend in {app.config.get('ENVIRONMENT')} mode")

    # Ensure upload folder exists
    upload_folder = Path(app.config["UPLOAD_FOLDER"])
    upload_folder.mkdir(parents=True, exist_ok=True)

    # =========================================================================
    # PERSISTENCE AND REALTIME
    # =========================================================================

    job_store, machine_store, store_backend = _build_stores(app.config.get("DATABASE_URL", ""))
    app.config["STORE_BACKEND"] = store_backend
    logger.info(f"Using {store_backend} stores")

    notifier = Notifier(max_queue=app.config.get("EVENT_QUEUE_SIZE", 100))
    sessions = SessionRegistry()
    app.config["NOTIFIER"] = notifier

    # =========================================================================
    # SERVICES INITIALIZATION
    # =========================================================================

    pricer = JobPricer(app.config.get("DEFAULT_RATE_PER_PAGE", 2.0))
    app.config["PRICER"] = pricer

    machine_service = MachineService(
        machine_store,
        notifier,
        sessions,
        client_url=app.config["CLIENT_URL"],
        default_rate_per_page=pricer.default_rate_per_page,
    )
    app.config["MACHINE_SERVICE"] = machine_service

    job_service = JobService(
        job_store,
        machine_service,
        pricer,
        notifier,
        require_payment_before_print=app.config.get("REQUIRE_PAYMENT_BEFORE_PRINT", True),
    )
    app.config["JOB_SERVICE"] = job_service

    gateway = RazorpayClient(
        key_id=app.config.get("RAZORPAY_KEY_ID", ""),
        key_secret=app.config.get("RAZORPAY_KEY_SECRET", ""),
        base_url=app.config.get("RAZORPAY_API_URL", "https://api.razorpay.com/v1"),
        timeout_seconds=app.config.get("UPSTREAM_TIMEOUT_SECONDS", 15.0),
    )
    if not gateway.is_configured:
        logger.warning("Razorpay keys not set - payment orders and verification will fail")
    app.config["PAYMENT_GATEWAY"] = gateway

    app.config["PAYMENT_SERVICE"] = PaymentService(
        job_service,
        gateway,
        notifier,
        currency=app.config.get("PAYMENT_CURRENCY", "INR"),
    )
    logger.info("Services initialized")

    # =========================================================================
    # HELPER MODULES
    # =========================================================================

    app.config["PDF_ANALYZER"] = PDFAnalyzer()
    app.config["FILE_STORAGE"] = _build_file_storage(app.config)

    # =========================================================================
    # REGISTER BLUEPRINTS
    # =========================================================================

    register_blueprints(app)

    # =========================================================================
    # ERROR HANDLERS
    # =========================================================================

    @app.errorhandler(RequestEntityTooLarge)
    def handle_file_too_large(e):
        max_mb = app.config.get("MAX_CONTENT_LENGTH", 16 * 1024 * 1024) / (1024 * 1024)
        return {"error": f"File too large. Maximum upload size is {max_mb:.0f} MB."}, 413

    @app.errorhandler(404)
    def handle_not_found(e):
        return {"error": "Not found"}, 404

    @app.errorhandler(405)
    def handle_method_not_allowed(e):
        return {"error": "Method not allowed"}, 405

    @app.errorhandler(500)
    def handle_server_error(e):
        logger.error(f"500 error: {e}", exc_info=True)
        return {"error": "Internal server error"}, 500

    @app.errorhandler(HTTPException)
    def handle_http_exception(e):
        return {"error": e.description}, e.code

    logger.info("Application initialized successfully")
    return app


if __name__ == "__main__":
    app = create_app()
    app.run(debug=app.config["DEBUG"], threaded=True)
