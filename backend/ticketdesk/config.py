# backend/ticketdesk/config.py
from __future__ import annotations
import os
from datetime import timedelta


def _env_flag(name: str, default: bool = False) -> bool:
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL",
        "sqlite:///ticketdesk.sqlite3",
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Signing key pair for session tokens. PEM text or base64-encoded DER
    # (PKCS#8 private key, X.509 SubjectPublicKeyInfo public key).
    JWT_PRIVATE_KEY = os.environ.get("JWT_PRIVATE_KEY")
    JWT_PUBLIC_KEY = os.environ.get("JWT_PUBLIC_KEY")
    JWT_ALGORITHM = "RS512"
    JWT_LIFETIME = timedelta(hours=int(os.environ.get("JWT_LIFETIME_HOURS", "8")))

    PASSWORD_RESET_TTL = timedelta(minutes=int(os.environ.get("PASSWORD_RESET_TTL_MINUTES", "10")))
    PASSWORD_RESET_CODE_LENGTH = 8
    # Development delivery channel: write the compound reset code to the log
    PASSWORD_RESET_LOG_CODES = _env_flag("PASSWORD_RESET_LOG_CODES")

    BCRYPT_ROUNDS = int(os.environ.get("BCRYPT_ROUNDS", "12"))

    # Role granted to self-registered accounts
    REGISTRATION_ROLE = os.environ.get("REGISTRATION_ROLE", "USER")

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

    # Browser origins allowed to call the API (comma separated)
    CORS_ORIGINS = tuple(
        origin.strip()
        for origin in os.environ.get(
            "CORS_ORIGINS", "http://localhost:5173,http://127.0.0.1:5173"
        ).split(",")
        if origin.strip()
    )


class TestConfig(Config):
    TESTING = True
    SECRET_KEY = "test"
    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
    BCRYPT_ROUNDS = 4
    PASSWORD_RESET_LOG_CODES = False
    LOG_LEVEL = "DEBUG"
