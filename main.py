from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from sqlalchemy.exc import IntegrityError
import asyncio
import os
import httpx

from core.config import (
    logger,
    ALLOWED_ORIGINS,
    IS_PRODUCTION,
    KEEP_ALIVE_ENABLED,
    KEEP_ALIVE_URL,
    KEEP_ALIVE_INTERVAL_SEC,
    STATIC_DIR,
)
from core.database import is_unique_violation
from core.errors import AppError

# Routers
from routers import auth, items, analytics, qr, upload

app = FastAPI(title="WebAR Backend")

# ---- CORS setup ----
app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# --- Security headers ---
@app.middleware("http")
async def add_security_headers(request, call_next):
    response = await call_next(request)
    if IS_PRODUCTION:
        response.headers.setdefault("Strict-Transport-Security", "max-age=63072000; includeSubDomains")
    response.headers.setdefault("X-Content-Type-Options", "nosniff")
    response.headers.setdefault("Referrer-Policy", "strict-origin-when-cross-origin")
    response.headers.setdefault("X-Frame-Options", "DENY")
    response.headers.setdefault("Permissions-Policy", "geolocation=(), microphone=()")
    # models and thumbnails are fetched by the AR viewer on the frontend origin
    response.headers.setdefault("Cross-Origin-Resource-Policy", "cross-origin")
    return response


# ---- Error mapping ----
@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError):
    return JSONResponse(exc.to_dict(), status_code=exc.status_code)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    fields = {}
    for err in exc.errors():
        loc = [str(part) for part in err.get("loc", ()) if part not in ("body", "query", "path", "form")]
        fields[".".join(loc) or "body"] = err.get("msg", "Invalid value")
    return JSONResponse({"error": "Validation failed", "fields": fields}, status_code=400)


@app.exception_handler(IntegrityError)
async def integrity_error_handler(request: Request, exc: IntegrityError):
    if is_unique_violation(exc):
        logger.warning(f"Integrity error on {request.url.path}: {exc.orig}")
        return JSONResponse({"error": "Resource already exists"}, status_code=409)
    logger.exception(f"Unhandled error on {request.method} {request.url.path}: {exc}")
    return JSONResponse({"error": "Internal server error"}, status_code=500)


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception(f"Unhandled error on {request.method} {request.url.path}: {exc}")
    return JSONResponse({"error": "Internal server error"}, status_code=500)


# ---- Static mount (local fallback) ----
if os.path.isdir(STATIC_DIR):
    app.mount("/static", StaticFiles(directory=STATIC_DIR), name="static")

app.include_router(auth.router)
app.include_router(items.router)
app.include_router(analytics.router)
app.include_router(qr.router)
app.include_router(upload.router)


# ---- Keep-alive (free-tier hosts sleep idle services) ----
async def _keep_alive_once():
    async with httpx.AsyncClient(timeout=10.0) as client:
        r = await client.get(f"{KEEP_ALIVE_URL}/")
        logger.info(f"[keep-alive] Ping successful ({r.status_code})")


async def _keep_alive_loop():
    while True:
        await asyncio.sleep(KEEP_ALIVE_INTERVAL_SEC)
        try:
            await _keep_alive_once()
        except Exception as ex:
            logger.warning(f"[keep-alive] Ping failed: {ex}")


_background_tasks = set()


@app.on_event("startup")
async def _start_keep_alive():
    if KEEP_ALIVE_ENABLED:
        logger.info(f"[keep-alive] Pinging {KEEP_ALIVE_URL}/ every {KEEP_ALIVE_INTERVAL_SEC}s")
        task = asyncio.create_task(_keep_alive_loop())
        _background_tasks.add(task)
        task.add_done_callback(_background_tasks.discard)


@app.on_event("startup")
async def _init_schema():
    try:
        from core.database import init_db
        init_db()
    except Exception as _ex:
        logger.warning(f"init_db failed: {_ex}")


@app.get("/")
async def root():
    return {"ok": True}
