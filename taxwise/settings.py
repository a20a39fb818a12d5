import logging
import os

DEFAULT_ORIGINS = [
    "https://taxwise.app",
    "http://localhost:8000",
    "http://127.0.0.1:8000",
    "http://localhost:5173",
]


def allowed_origins():
    env_origins = os.getenv("ALLOWED_ORIGIN")
    if env_origins:
        return [o.strip() for o in env_origins.split(",") if o.strip()]
    return list(DEFAULT_ORIGINS)


def configure_logging():
    level = os.getenv("LOG_LEVEL", "INFO").upper()
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


ALLOWED_ORIGINS = allowed_origins()


def get_cors_headers():
    """Standard CORS headers for all responses"""
    origin = ALLOWED_ORIGINS[0] if ALLOWED_ORIGINS else "*"
    return {
        "Access-Control-Allow-Origin": origin,
        "Access-Control-Allow-Credentials": "true",
        "Access-Control-Allow-Methods": "GET, POST, OPTIONS",
        "Access-Control-Allow-Headers": "*",
    }
