import logging
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from campaign_stats.db.init import init_db
from campaign_stats.errors import CampaignStatsError
from campaign_stats.api.campaign import router as campaign_router
from campaign_stats.api.stats import router as stats_router
from campaign_stats.api.admin import router as admin_router

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

ERROR_STATUS_CODES = {
    "unauthenticated": 401,
    "permission-denied": 403,
    "not-found": 404,
    "invalid-argument": 422,
    "unavailable": 503,
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("=== APPLICATION STARTUP ===")
    logger.info("Initializing database...")
    try:
        await init_db()
        logger.info("Database initialized successfully")
    except Exception as e:
        logger.error(f"Database initialization failed: {e}", exc_info=True)
        raise
    logger.info("Counters worker and beat should be running in separate processes.")
    logger.info("API endpoints available:")
    logger.info("  - /api/campaigns: Campaign writes")
    logger.info("  - /api/stats/campaigns: Campaign counters")
    logger.info("  - /api/admin/stats/recompute: On-demand recompute (admin)")
    logger.info("=== APPLICATION STARTUP COMPLETE ===")

    yield

    logger.info("=== APPLICATION SHUTDOWN ===")


app = FastAPI(lifespan=lifespan)

# The admin dashboard is served from a different origin
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(CampaignStatsError)
async def campaign_stats_error_handler(request: Request, exc: CampaignStatsError):
    status_code = ERROR_STATUS_CODES.get(exc.code, 500)
    if status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc}")
    return JSONResponse(status_code=status_code, content={"error": exc.code, "detail": str(exc)})


@app.get("/")
async def root():
    return {"message": "Campaign Stats API"}


@app.get("/health")
async def health_check():
    """Database and worker reachability"""
    try:
        from campaign_stats.db.init import get_database
        db = get_database()
        await db.command("ping")
        db_status = "healthy"
    except Exception as e:
        db_status = f"unhealthy: {str(e)}"

    try:
        from campaign_stats.celery_config import celery_app
        active_workers = celery_app.control.inspect().active()
        celery_status = "healthy" if active_workers else "no_workers"
    except Exception as e:
        celery_status = f"unhealthy: {str(e)}"

    return {
        "status": "healthy" if db_status == "healthy" and celery_status == "healthy" else "degraded",
        "database": db_status,
        "celery": celery_status,
        "timestamp": datetime.now(timezone.utc).isoformat()
    }


# Include API routers
app.include_router(campaign_router, prefix="/api", tags=["campaigns"])
app.include_router(stats_router, prefix="/api", tags=["stats"])
app.include_router(admin_router, prefix="/api", tags=["admin"])
