from contextlib import asynccontextmanager
import logging

from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware
import uvicorn

from url_fetcher.config import get_settings
from url_fetcher.core.registry import JobRegistry, get_registry
from url_fetcher.routers.fetch import router as fetch_router
from url_fetcher.routers.health import router as health_router

from .middleware_logging import configure_logging, register_request_logging
from .error_handlers import register_error_handlers

# =========================
# ---- Config / Env ----
# =========================
settings = get_settings()
configure_logging()
logger = logging.getLogger("url_fetcher")

OVERVIEW_MESSAGE = "URL Fetcher Service - Overview of all submitted jobs"


@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    # queued fetches are abandoned unless asked to drain; nothing is persisted
    registry = get_registry()
    if settings.FETCH_DRAIN_ON_SHUTDOWN:
        registry.drain(timeout=settings.FETCH_TIMEOUT_S)
    registry.shutdown(wait_for_fetches=settings.FETCH_DRAIN_ON_SHUTDOWN)


# =========================
# ---- App Init ----
# =========================
app = FastAPI(
    title="URL Fetcher Service",
    description="An API to asynchronously fetch content from a list of URLs.",
    version=settings.VERSION,
    docs_url="/api",
    lifespan=lifespan,
)
register_request_logging(app)
register_error_handlers(app)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# =========================
# ---- Routes ----
# =========================

@app.get("/", tags=["overview"], summary="Get an overview of all submitted fetch jobs")
def root(registry: JobRegistry = Depends(get_registry)):
    jobs = [s.to_api() for s in registry.get_all_jobs()]
    return {
        "message": OVERVIEW_MESSAGE,
        "totalJobs": len(jobs),
        "jobs": jobs,
    }


app.include_router(fetch_router)
app.include_router(health_router)


def run() -> None:
    logger.info("Application is running on: http://localhost:%s", settings.PORT)
    logger.info("Swagger UI available at: http://localhost:%s/api", settings.PORT)
    uvicorn.run(app, host=settings.HOST, port=settings.PORT, log_level=settings.LOG_LEVEL.lower())


if __name__ == "__main__":
    run()
