# vidtube/main.py
import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.encoders import jsonable_encoder
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from vidtube.config import settings
from vidtube.core.db import init_db, close_db
from vidtube.core.errors import ApiError
from vidtube.api.v1.routers import users

logger = logging.getLogger("uvicorn.error")


def _check_settings() -> None:
    """
    Refuse to start while any required setting is unset, whatever ENV says.
    """
    missing = settings.missing_required()
    if missing:
        raise RuntimeError(f"Missing required environment variables: {', '.join(missing)}")
    logger.info("[config] env=%s, all required settings present", settings.env)


app = FastAPI(title=settings.APP_NAME)

# CORS (with Cookie)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ===== Error envelope =====
@app.exception_handler(ApiError)
async def api_error_handler(request: Request, exc: ApiError):
    if exc.status_code >= 500:
        logger.error("[api] %s %s -> %s %s", request.method, request.url.path, exc.status_code, exc.message)
    return JSONResponse(status_code=exc.status_code, content=jsonable_encoder(exc.to_envelope()))


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=400,
        content=jsonable_encoder({
            "statusCode": 400,
            "data": None,
            "message": "Invalid request body",
            "success": False,
            "errors": exc.errors(),
        }),
    )


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "statusCode": exc.status_code,
            "data": None,
            "message": str(exc.detail),
            "success": False,
            "errors": [],
        },
        headers=getattr(exc, "headers", None),
    )


@app.on_event("startup")
async def on_startup():
    _check_settings()
    await init_db()


@app.on_event("shutdown")
async def on_shutdown():
    await close_db()


# REST
app.include_router(users.router, prefix="/api/v1")


@app.get("/healthz")
def healthz():
    return {"ok": True}
