from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app import models  # noqa: F401
from app.api.routes.approvals import router as approvals_router
from app.api.routes.chores import router as chores_router
from app.api.routes.leaderboard import router as leaderboard_router
from app.api.routes.recurrence import router as recurrence_router
from app.api.routes.time_estimates import router as time_estimates_router
from app.core.config import settings
from app.core.exceptions import register_exception_handlers
from app.core.logging import setup_json_logging
from app.core.request_logging import RequestLoggingMiddleware

setup_json_logging()

app = FastAPI(title="chorely api")
register_exception_handlers(app)
allowed_origins = [item.strip() for item in settings.cors_allowed_origins.split(",") if item.strip()]
app.add_middleware(RequestLoggingMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=allowed_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Authorization", "Content-Type", "X-Cron-Secret", "X-Request-Id"],
)
app.include_router(approvals_router)
app.include_router(time_estimates_router)
app.include_router(recurrence_router)
app.include_router(leaderboard_router)
app.include_router(chores_router)


@app.get("/health")
def health() -> dict[str, str]:
    return {
        "status": "ok",
        "env": settings.app_env,
        "commit": settings.git_sha or "unknown",
        "build": settings.build_id or "unknown",
    }
