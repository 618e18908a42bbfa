import os

from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()


def _env_bool(name, default="False"):
    return os.getenv(name, default).lower() in {"1", "true", "yes", "on"}


class Config:
    SECRET_KEY = os.getenv("SECRET_KEY", "change-me-in-prod")

    # Database connection
    SQLALCHEMY_DATABASE_URI = os.getenv("DATABASE_URL", "sqlite:///nestpay.db")
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # JWT Configuration - tokens are issued by the identity provider,
    # this service only verifies them.
    JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY", SECRET_KEY)

    # SPA origins allowed to call /api/*
    CORS_ORIGINS = [
        o.strip()
        for o in os.getenv("CORS_ORIGINS", "http://localhost:5173,http://localhost:8080").split(",")
        if o.strip()
    ]

    # Flask-Mail
    MAIL_SERVER = os.getenv("MAIL_SERVER", "localhost")
    MAIL_PORT = int(os.getenv("MAIL_PORT", "25"))
    MAIL_USE_TLS = _env_bool("MAIL_USE_TLS")
    MAIL_USERNAME = os.getenv("MAIL_USERNAME")
    MAIL_PASSWORD = os.getenv("MAIL_PASSWORD")
    MAIL_DEFAULT_SENDER = os.getenv("MAIL_DEFAULT_SENDER", "Nest Pay <onboarding@nestpay.app>")
    MAIL_SUPPRESS_SEND = _env_bool("MAIL_SUPPRESS_SEND")
    NOTIFY_EMAIL = _env_bool("NOTIFY_EMAIL", "True")

    # Rent / payments
    DEFAULT_CURRENCY = os.getenv("DEFAULT_CURRENCY", "UGX")
    PAYMENT_EXPIRY_WARNING_DAYS = int(os.getenv("PAYMENT_EXPIRY_WARNING_DAYS", "7"))

    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")


class TestConfig(Config):
    TESTING = True
    SECRET_KEY = "test-secret"
    JWT_SECRET_KEY = "test-jwt-secret-with-enough-length-for-hs256"
    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
    MAIL_SUPPRESS_SEND = True
    LOG_LEVEL = "DEBUG"
