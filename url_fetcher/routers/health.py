# url_fetcher/routers/health.py
from fastapi import APIRouter, Depends

from url_fetcher.config import get_settings
from url_fetcher.core.registry import JobRegistry, get_registry

router = APIRouter(tags=["health"])


@router.get("/health")
def health_check(registry: JobRegistry = Depends(get_registry)):
    settings = get_settings()
    return {
        "status": "ok",
        "version": settings.VERSION,
        "port": settings.PORT,
        "totalJobs": registry.job_count(),
        "fetch": {
            "timeoutS": settings.FETCH_TIMEOUT_S,
            "maxWorkers": settings.FETCH_MAX_WORKERS,
            "userAgent": settings.FETCH_USER_AGENT,
        },
    }
