import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

# ✅ Import All API Routes
from career_advisor.api.routes import (
    achievements,
    activity,
    auth,
    chat,
    colleges,
    dashboard,
    health,
    job_hunting,
    payments,
    quiz,
    recommendations,
    roadmap,
    saved_colleges,
    skills,
    subscription,
    usage,
    webhooks,
)
from career_advisor.core import config
from career_advisor.core.errors import AppError
from career_advisor.core.logging_config import sanitize_log_data, setup_logging
from career_advisor.db.init_db import init_db

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging(config.LOG_LEVEL)
    logger.info(f"Starting Career Advisor API (environment={config.ENVIRONMENT})")
    init_db()
    yield


# ============================================
# ✅ FASTAPI APP INIT
# ============================================

app = FastAPI(title="Career Advisor API", lifespan=lifespan)

# ✅ CORS: ONLY THE CONFIGURED FRONTEND ORIGINS
app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE"],
    allow_headers=["Authorization", "Content-Type"],
)


# ============================================
# ✅ ERROR HANDLERS
# ============================================

@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError):
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}", exc_info=exc.original_error)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    logger.warning(f"Invalid request data for {request.method} {request.url.path}: {len(exc.errors())} errors")
    return JSONResponse(
        status_code=400,
        content={"error": "Invalid request data", "details": jsonable_errors(exc)},
    )


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.error(
        f"Unhandled error on {request.method} {request.url.path}: {exc} "
        f"headers={sanitize_log_data(dict(request.headers))}",
        exc_info=exc,
    )
    return JSONResponse(
        status_code=500,
        content={"error": "Internal server error", "details": str(exc)},
    )


def jsonable_errors(exc: RequestValidationError) -> list:
    return [
        {"loc": list(error.get("loc", ())), "msg": error.get("msg"), "type": error.get("type")}
        for error in exc.errors()
    ]


# ============================================
# ✅ REGISTER ALL ROUTERS
# ============================================

app.include_router(auth.router)
app.include_router(colleges.router)
app.include_router(saved_colleges.router)
app.include_router(skills.router)
app.include_router(quiz.router)
app.include_router(roadmap.router)
app.include_router(dashboard.router)
app.include_router(achievements.router)
app.include_router(activity.router)
app.include_router(recommendations.router)
app.include_router(subscription.router)
app.include_router(usage.router)
app.include_router(payments.router)
app.include_router(webhooks.router)
app.include_router(job_hunting.router)
app.include_router(chat.router)
app.include_router(health.router)


# ============================================
# ✅ ROOT ENDPOINT
# ============================================

@app.get("/")
def root():
    return {"status": "Career Advisor API running"}
