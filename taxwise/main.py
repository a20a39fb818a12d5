import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

# ---------------------------------------------------------------------
# INTERNAL IMPORTS
# ---------------------------------------------------------------------
from .settings import ALLOWED_ORIGINS, configure_logging, get_cors_headers
from .tax.base import BracketTableError, InvalidInputError
from .tax.nigeria_2025 import default_engine
from .routers import tax

configure_logging()
logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------
# FASTAPI APP
# ---------------------------------------------------------------------
app = FastAPI(title="TaxWise API", version="0.3.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["*"],
    max_age=3600
)


# =====================================================
# STARTUP
# =====================================================
@app.on_event("startup")
def load_rates():
    """Fail fast on a broken rates file instead of on the first request"""
    try:
        engine = default_engine()
    except BracketTableError:
        logger.exception("Invalid tax rates configuration")
        raise
    logger.info("Tax engine ready with %d brackets", len(engine.table))


# =====================================================
# GLOBAL OPTIONS HANDLER
# =====================================================
@app.options("/{full_path:path}")
async def options_handler(full_path: str):
    """Handle all OPTIONS requests globally"""
    return JSONResponse(
        content={"message": "OK"},
        status_code=200,
        headers=get_cors_headers()
    )


# ---------------------------------------------------------------------
# HEALTH ROUTES
# ---------------------------------------------------------------------
@app.get("/")
def root():
    return JSONResponse(
        content={"ok": True, "service": "taxwise-api"},
        headers=get_cors_headers()
    )


@app.get("/health")
def health():
    return JSONResponse(
        content={"status": "ok"},
        headers=get_cors_headers()
    )


# ---------------------------------------------------------------------
# ROUTERS
# ---------------------------------------------------------------------
app.include_router(tax.router)


# =====================================================
# EXCEPTION HANDLERS
# =====================================================
@app.exception_handler(InvalidInputError)
async def invalid_input_handler(request: Request, exc: InvalidInputError):
    return JSONResponse(
        status_code=400,
        content={"error": exc.message, "field": exc.field},
        headers=get_cors_headers()
    )


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    field = ".".join(str(p) for p in errors[0]["loc"][1:]) if errors else None
    message = errors[0]["msg"] if errors else "Invalid request"
    return JSONResponse(
        status_code=400,
        content={"error": message, "field": field},
        headers=get_cors_headers()
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s", request.url.path)
    return JSONResponse(
        status_code=500,
        content={"detail": str(exc)},
        headers=get_cors_headers()
    )
