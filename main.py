# main.py
"""
FastAPI entry point for the meal plan service.
Startup creates tables and wires the services onto app.state; request-id
middleware, consistent JSON error envelopes and health endpoints live here.
"""
import asyncio
import logging
import os
import uuid
from contextlib import asynccontextmanager
from typing import Dict

from fastapi import FastAPI, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.api.meal_plans import router as meal_plans_router
from app.config.settings import settings
from app.models.database import health_check as db_health_check
from app.models.database import init_db
from app.services.errors import NotFoundError, ValidationError
from app.services.llm_client import OpenAIOracle
from app.services.meal_plan_repository import MealPlanRepository
from app.services.meal_plan_service import MealPlanService
from app.services.menu_cache_service import MenuCacheService
from app.services.user_service import UserService

logger = logging.getLogger("uvicorn.error")

HEALTH_CHECK_TIMEOUT = float(os.getenv("HEALTH_CHECK_TIMEOUT", "5.0"))


async def _run_sync_in_executor(fn, *args, timeout: float = HEALTH_CHECK_TIMEOUT):
    """
    Helper to run blocking sync functions in the default threadpool with a timeout.
    Returns the function's result or raises TimeoutError.
    """
    loop = asyncio.get_running_loop()
    return await asyncio.wait_for(loop.run_in_executor(None, fn, *args), timeout=timeout)


def build_meal_plan_service() -> MealPlanService:
    return MealPlanService(
        user_service=UserService(),
        plan_repository=MealPlanRepository(),
        menu_cache=MenuCacheService(),
        oracle=OpenAIOracle(),
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Starting meal plan service...")
    try:
        await _run_sync_in_executor(init_db)
        if getattr(app.state, "meal_plan_service", None) is None:
            app.state.meal_plan_service = build_meal_plan_service()
    except Exception:
        # bubble up so uvicorn doesn't silently succeed when critical init fails
        logger.exception("Critical startup error")
        raise

    yield

    logger.info("Shutting down meal plan service...")


app = FastAPI(
    title="NutriPlan - Meal Plan Service",
    description="AI-assisted meal plans and recommended menus with fallback content",
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origin_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Simple request-id middleware + structured request logging
@app.middleware("http")
async def add_request_id_and_log(request: Request, call_next):
    request_id = request.headers.get("X-Request-Id") or str(uuid.uuid4())
    request.state.request_id = request_id
    logger.info("→ Incoming request %s %s id=%s", request.method, request.url.path, request_id)
    try:
        response: Response = await call_next(request)
    except Exception as exc:
        logger.exception("Handler error for request id=%s: %s", request_id, exc)
        return JSONResponse(
            {"success": False, "message": "Internal server error"},
            status_code=500,
            headers={"X-Request-Id": request_id},
        )
    logger.info("← Completed request id=%s status=%s", request_id, getattr(response, "status_code", None))
    response.headers["X-Request-Id"] = request_id
    return response


@app.exception_handler(NotFoundError)
async def not_found_handler(request: Request, exc: NotFoundError):
    return JSONResponse({"success": False, "message": str(exc)}, status_code=404)


@app.exception_handler(ValidationError)
async def validation_error_handler(request: Request, exc: ValidationError):
    return JSONResponse(
        {"success": False, "message": exc.message, "errors": exc.errors}, status_code=400
    )


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    errors = [
        {"loc": list(e.get("loc", ())), "msg": e.get("msg"), "type": e.get("type")}
        for e in exc.errors()
    ]
    return JSONResponse(
        {"success": False, "message": "Validation errors", "errors": errors}, status_code=400
    )


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        {"success": False, "message": str(exc.detail)},
        status_code=exc.status_code,
        headers=getattr(exc, "headers", None),
    )


app.include_router(meal_plans_router, prefix="/meal-plans", tags=["meal-plans"])


@app.get("/")
async def root() -> Dict[str, str]:
    return {"message": "Meal plan service is running!", "status": "healthy"}


@app.get("/health")
async def health_check():
    """
    Liveness style check with a bounded database ping; returns degraded
    (503) instead of failing hard when the database is unreachable.
    """
    try:
        db_ok = await _run_sync_in_executor(db_health_check)
    except asyncio.TimeoutError:
        logger.warning("Database health_check timed out on /health")
        db_ok = False
    return JSONResponse(
        {
            "status": "healthy" if db_ok else "degraded",
            "service": "nutriplan",
            "database": "connected" if db_ok else "disconnected",
        },
        status_code=200 if db_ok else 503,
    )


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("main:app", host=os.getenv("HOST", "0.0.0.0"), port=int(os.getenv("PORT", 5000)), reload=True)
