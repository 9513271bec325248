"""
Main FastAPI application for the Recos Manager backend.
Handles CORS, request logging middleware, lifespan events, and router registration.
"""
import logging
import time
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from recos_manager.config import settings
from recos_manager.database import check_data_service
from recos_manager.routers import admin, ai, auth, clients, health, recommendations
from recos_manager.services.ai_assistant import AIAssistantService
from recos_manager.services.store import DataServiceError

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Startup helpers
# ---------------------------------------------------------------------------

async def _check_data_service() -> bool:
    """Verify credentials are present and the data service answers."""
    missing = settings.missing_data_service_settings()
    if missing:
        logger.error("✗ Data service not configured, missing: %s", ", ".join(missing))
        raise RuntimeError(
            f"Missing data service settings: {', '.join(missing)}. Set them in .env."
        )

    if await check_data_service():
        logger.info("✓ Data service reachable at %s", settings.SUPABASE_URL)
        return True
    logger.warning("⚠ Data service at %s did not answer; requests may fail",
                   settings.SUPABASE_URL)
    return False


async def _check_ai_service() -> bool:
    """Log whether the AI provider is usable. Never raises."""
    service = AIAssistantService()
    if not service.is_configured:
        logger.warning(
            "⚠ OPENAI_API_KEY not set: AI assist is disabled and exports use the "
            "deterministic chapter splitter"
        )
        return False

    if await service.check_health():
        logger.info("✓ AI provider reachable, model '%s'", service.model)
        return True
    logger.warning("⚠ AI provider at %s did not accept the key", service.base_url)
    return False


# ---------------------------------------------------------------------------
# Lifespan
# ---------------------------------------------------------------------------

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown event handler."""
    logger.info("=" * 60)
    logger.info("  Starting Recos Manager backend …")
    logger.info("=" * 60)

    # 1: Data service (credentials required; raises when missing)
    await _check_data_service()

    # 2: AI provider (optional; logs warnings but continues)
    await _check_ai_service()

    logger.info("=" * 60)
    logger.info("  Recos Manager ready on http://%s:%d", settings.HOST, settings.PORT)
    logger.info("  Swagger UI : http://%s:%d/docs", settings.HOST, settings.PORT)
    logger.info("  Health     : http://%s:%d/api/health", settings.HOST, settings.PORT)
    logger.info("=" * 60)

    yield

    logger.info("✓ Shutdown complete.")


# ---------------------------------------------------------------------------
# Application
# ---------------------------------------------------------------------------

app = FastAPI(
    title="Recos Manager API",
    description=(
        "**Recos Manager**: write, organise and export client recommendations "
        "for a digital marketing agency.\n\n"
        "Key endpoints:\n"
        "- `GET  /api/recommendations`: list with search and filters\n"
        "- `POST /api/recommendations/import`: draft from a PDF / PowerPoint file\n"
        "- `GET  /api/recommendations/{id}/export/{format}`: pptx, pdf, txt or ora\n"
        "- `POST /api/ai/assist`: generate, improve or expand with AI\n"
        "- `GET  /api/admin/team-members`: team administration\n"
    ),
    version="1.0.0",
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
)


# ---------------------------------------------------------------------------
# CORS
# ---------------------------------------------------------------------------

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.get_allowed_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["Content-Disposition", "X-Chapter-Source"],
)


# ---------------------------------------------------------------------------
# Request / response logging middleware
# ---------------------------------------------------------------------------

@app.middleware("http")
async def log_requests(request: Request, call_next):
    """
    Log every request with method, path, status code, and elapsed time.
    Attaches an ``X-Process-Time`` header (milliseconds) to every response.
    """
    t0 = time.monotonic()
    response = await call_next(request)
    elapsed_ms = round((time.monotonic() - t0) * 1000, 2)

    # Skip noisy health-check polling from the frontend
    if request.url.path not in ("/api/health", "/api/health/", "/"):
        logger.info(
            "%s %s → %d  (%.2f ms)",
            request.method,
            request.url.path,
            response.status_code,
            elapsed_ms,
        )

    response.headers["X-Process-Time"] = f"{elapsed_ms}ms"
    return response


# ---------------------------------------------------------------------------
# Exception handlers
# ---------------------------------------------------------------------------

@app.exception_handler(DataServiceError)
async def data_service_exception_handler(request: Request, exc: DataServiceError):
    """A data-service failure that no router translated: report it as a bad gateway."""
    logger.error("Data service error on %s %s: %s", request.method, request.url.path, exc)
    return JSONResponse(
        status_code=status.HTTP_502_BAD_GATEWAY,
        content={
            "detail": str(exc),
            "path": str(request.url.path),
            "timestamp": datetime.now(timezone.utc).isoformat(),
        },
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Return a structured JSON error for any unhandled exception."""
    logger.error(
        "Unhandled exception on %s %s: %s",
        request.method,
        request.url.path,
        exc,
        exc_info=True,
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "detail": "Internal server error",
            "error": str(exc),
            "path": str(request.url.path),
            "timestamp": datetime.now(timezone.utc).isoformat(),
        },
    )


# ---------------------------------------------------------------------------
# Routers
# ---------------------------------------------------------------------------

app.include_router(health.router,          prefix="/api/health",          tags=["Health"])
app.include_router(auth.router,            prefix="/api/auth",            tags=["Auth"])
app.include_router(clients.router,         prefix="/api/clients",         tags=["Clients"])
app.include_router(recommendations.router, prefix="/api/recommendations", tags=["Recommendations"])
app.include_router(ai.router,              prefix="/api/ai",              tags=["AI"])
app.include_router(admin.router,           prefix="/api/admin",           tags=["Admin"])


# ---------------------------------------------------------------------------
# Root
# ---------------------------------------------------------------------------

@app.get("/", tags=["Root"], include_in_schema=False)
async def root():
    """API root: returns basic service info."""
    return {
        "name": "Recos Manager API",
        "version": "1.0.0",
        "description": "Recommendations Manager Backend",
        "docs": "/docs",
        "health": "/api/health",
        "endpoints": {
            "auth": "/api/auth",
            "clients": "/api/clients",
            "recommendations": "/api/recommendations",
            "ai": "/api/ai",
            "admin": "/api/admin",
        },
    }


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "recos_manager.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=True,
        log_level="info",
    )
