from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse, RedirectResponse
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.sessions import SessionMiddleware

from app.core.config import get_settings
from app.core.database import init_db
from app.core.errors import AppError
from app.core.logger import logger
from app.core.middleware import MethodOverrideMiddleware
from app.core.session import flash
from app.routers import accounts, listings, messages, reviews

# --- Load settings ---
settings = get_settings()

# --- Create DB tables ---
init_db()

# --- Create FastAPI app ---
app = FastAPI(title=settings.app_name)

# --- Session cookie (identity, pending redirect, flash notices) ---
app.add_middleware(
    SessionMiddleware,
    secret_key=settings.secret_key,
    session_cookie=settings.session_cookie,
    max_age=settings.session_max_age_seconds,
    same_site="lax",
    https_only=settings.app_env == "production",
)

# --- ?_method=PATCH|PUT|DELETE on POST forms ---
app.add_middleware(MethodOverrideMiddleware)


# --- Error handling ---
@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError):
    logger.info(f"{type(exc).__name__} on {request.method} {request.url.path}: {exc.message}")
    flash(request, "error", exc.message)
    return RedirectResponse(exc.redirect_to, status_code=status.HTTP_303_SEE_OTHER)


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    message = exc.detail
    if exc.status_code == status.HTTP_404_NOT_FOUND:
        message = "Page Not Found!"
    return JSONResponse(
        status_code=exc.status_code,
        content={"status": exc.status_code, "message": message},
    )


@app.exception_handler(Exception)
async def unexpected_error_handler(request: Request, exc: Exception):
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"status": 500, "message": "Some error occured"},
    )


# --- Routers ---
app.include_router(accounts.router)
app.include_router(listings.router)
app.include_router(reviews.router)
app.include_router(messages.router)

# --- Static media files (local blob backend) ---
settings.media_root.mkdir(parents=True, exist_ok=True)
app.mount(
    settings.media_url,
    StaticFiles(directory=settings.media_root),
    name="media",
)


# --- Root endpoint ---
@app.get("/")
def root():
    return RedirectResponse("/listings", status_code=status.HTTP_303_SEE_OTHER)
