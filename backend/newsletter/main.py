import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from sqlalchemy.exc import OperationalError

from newsletter.core.config import settings
from newsletter.routers import newsletters

logging.basicConfig(level=logging.DEBUG if settings.DEBUG else settings.LOG_LEVEL)
logger = logging.getLogger(__name__)

OPENAPI_TAGS = [
    {"name": "Newsletters", "description": "Publish newsletter issues and track their delivery."},
]


app = FastAPI(
    title=settings.APP_NAME,
    version=settings.version,
    description=(
        "Newsletter dispatch API. Publishing is idempotent per Idempotency-Key; "
        "delivery to subscribers runs asynchronously in background dispatchers."
    ),
    openapi_tags=OPENAPI_TAGS,
)


@app.exception_handler(OperationalError)
async def database_unavailable_handler(request: Request, exc: OperationalError) -> JSONResponse:
    logger.error("Database unavailable while handling %s %s: %s", request.method, request.url.path, exc)
    return JSONResponse(
        status_code=503,
        content={"detail": "Database unavailable, please retry"},
        headers={"Retry-After": "5"},
    )


app.include_router(newsletters.router, prefix="/v1/newsletters", tags=["Newsletters"])


@app.get("/health")
async def health() -> dict[str, str]:
    return {"status": "ok", "service": settings.APP_NAME}


@app.get("/")
async def root() -> dict[str, str]:
    return {
        "app": settings.APP_NAME,
        "version": settings.version,
        "status": "running",
    }
