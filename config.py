"""
Configuration for PrintVend.

Values come from the environment (optionally a .env file next to this
module). Empty DATABASE_URL keeps everything in memory, which is what the
test suite and a single-kiosk demo use.
"""

import os
from pathlib import Path

from dotenv import load_dotenv

# Load .env file early so environment variables are available for Config class
# This must happen before the Config class is defined
load_dotenv(override=True)

# Base directory (where this file lives)
BASE_DIR = Path(__file__).resolve().parent


def _env_bool(name: str, default: str) -> bool:
    return os.environ.get(name, default).strip().lower() in ("1", "true", "yes", "on")


class Config:
    """Default configuration for the Flask application."""

    # Flask settings
    SECRET_KEY = os.environ.get("FLASK_SECRET_KEY", "dev-secret-key")
    UPLOAD_FOLDER = os.environ.get(
        "UPLOAD_FOLDER", str(BASE_DIR / "static" / "uploads")
    )
    MAX_CONTENT_LENGTH = 16 * 1024 * 1024  # 16 MB uploads
    ENVIRONMENT = os.environ.get("FLASK_ENV", "development")

    # Debug mode
    DEBUG = os.environ.get("FLASK_DEBUG", "1") == "1"
    TESTING = False

    # Logging: empty LOG_LEVEL -> DEBUG when DEBUG is on, INFO otherwise
    LOG_LEVEL = os.environ.get("LOG_LEVEL", "").upper()

    # Public URLs
    # CLIENT_URL is what the machine QR code points users at.
    # PUBLIC_BASE_URL prefixes locally stored upload URLs.
    CLIENT_URL = os.environ.get("CLIENT_URL", "http://localhost:5173")
    PUBLIC_BASE_URL = os.environ.get("PUBLIC_BASE_URL", "http://localhost:5000")

    # ==========================================================================
    # Persistence
    # ==========================================================================
    # Empty -> in-memory stores. Any SQLAlchemy URL -> SQL stores,
    # e.g. sqlite:///printvend.db or postgresql+psycopg://user:pw@host/db
    DATABASE_URL = os.environ.get("DATABASE_URL", "")

    # ==========================================================================
    # File storage
    # ==========================================================================
    # "local" writes into UPLOAD_FOLDER, "cloudinary" uploads raw files.
    STORAGE_BACKEND = os.environ.get("STORAGE_BACKEND", "local")
    CLOUDINARY_CLOUD_NAME = os.environ.get("CLOUDINARY_CLOUD_NAME", "")
    CLOUDINARY_API_KEY = os.environ.get("CLOUDINARY_API_KEY", "")
    CLOUDINARY_API_SECRET = os.environ.get("CLOUDINARY_API_SECRET", "")
    CLOUDINARY_FOLDER = os.environ.get("CLOUDINARY_FOLDER", "vending-print")

    # ==========================================================================
    # Payment gateway (Razorpay)
    # ==========================================================================
    RAZORPAY_KEY_ID = os.environ.get("RAZORPAY_KEY_ID", "")
    RAZORPAY_KEY_SECRET = os.environ.get("RAZORPAY_KEY_SECRET", "")
    RAZORPAY_API_URL = os.environ.get("RAZORPAY_API_URL", "https://api.razorpay.com/v1")
    PAYMENT_CURRENCY = os.environ.get("PAYMENT_CURRENCY", "INR")

    # Timeout for every outbound HTTP call (gateway, storage)
    UPSTREAM_TIMEOUT_SECONDS = float(os.environ.get("UPSTREAM_TIMEOUT_SECONDS", "15"))

    # ==========================================================================
    # Pricing and queue policy
    # ==========================================================================
    # Used when a machine is registered without its own rate
    DEFAULT_RATE_PER_PAGE = float(os.environ.get("DEFAULT_RATE_PER_PAGE", "2.0"))

    # When on, a job cannot enter "printing" until its payment is verified
    REQUIRE_PAYMENT_BEFORE_PRINT = _env_bool("REQUIRE_PAYMENT_BEFORE_PRINT", "1")

    # ==========================================================================
    # Realtime
    # ==========================================================================
    # Clients poll at this interval regardless of the event stream
    POLL_INTERVAL_SECONDS = int(os.environ.get("POLL_INTERVAL_SECONDS", "10"))
    # Per-subscriber buffer; events beyond this are dropped for that subscriber
    EVENT_QUEUE_SIZE = int(os.environ.get("EVENT_QUEUE_SIZE", "100"))
    EVENT_KEEPALIVE_SECONDS = float(os.environ.get("EVENT_KEEPALIVE_SECONDS", "15"))


class ProductionConfig(Config):
    """Production configuration."""
    DEBUG = False
    TESTING = False
    ENVIRONMENT = "production"


class DevelopmentConfig(Config):
    """Development configuration."""
    DEBUG = True
    TESTING = False


class TestingConfig(Config):
    """Testing configuration."""
    DEBUG = False
    TESTING = True
    ENVIRONMENT = "testing"
    DATABASE_URL = ""
    STORAGE_BACKEND = "local"
    RAZORPAY_KEY_ID = "rzp_test_key"
    RAZORPAY_KEY_SECRET = "test-secret"
    DEFAULT_RATE_PER_PAGE = 2.0
    REQUIRE_PAYMENT_BEFORE_PRINT = True
    EVENT_QUEUE_SIZE = 10
    EVENT_KEEPALIVE_SECONDS = 0.05
