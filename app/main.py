import asyncio
import logging
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from app.config import settings
from app.core.exceptions import register_exception_handlers
from app.core.rate_limit import limiter
from app.modules.auth import routes as auth_routes
from app.modules.profiles import routes as profiles_routes
from app.modules.groups import routes as groups_routes
from app.modules.rides import routes as rides_routes
from app.modules.participants import routes as participants_routes
from app.modules.notifications import routes as notifications_routes
from app.modules.weather import routes as weather_routes
from app.modules.geocoding import routes as geocoding_routes
from app.modules.notifications.reminder_email import register_reminder_emails
from app.modules.notifications.reminder_scheduler import reminder_scheduler_loop

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    datefmt="%Y-%m-%dT%H:%M:%SZ",
)
logger = logging.getLogger(__name__)

app = FastAPI(
    title=settings.app_name,
    debug=settings.debug,
    redirect_slashes=False,
)
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
register_exception_handlers(app)


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled exception: %s", exc)
    if settings.is_production:
        return JSONResponse(status_code=500, content={"detail": "Internal server error", "code": "internal_error"})
    return JSONResponse(status_code=500, content={"detail": str(exc), "code": "internal_error"})


class SecurityHeadersMiddleware:
    def __init__(self, app):
        self.app = app

    async def __call__(self, scope, receive, send):
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        async def send_with_headers(message):
            if message["type"] == "http.response.start":
                message.setdefault("headers", [])
                message["headers"].extend([
                    (b"X-Content-Type-Options", b"nosniff"),
                    (b"X-Frame-Options", b"DENY"),
                    (b"X-XSS-Protection", b"1; mode=block"),
                ])
            await send(message)

        await self.app(scope, receive, send_with_headers)


app.add_middleware(SecurityHeadersMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.get_cors_origins_list(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include module routes
app.include_router(auth_routes.router, prefix="/api")
app.include_router(profiles_routes.router, prefix="/api")
app.include_router(groups_routes.router, prefix="/api")
app.include_router(rides_routes.router, prefix="/api")
app.include_router(participants_routes.router, prefix="/api")
app.include_router(notifications_routes.router, prefix="/api")
app.include_router(weather_routes.router, prefix="/api")
app.include_router(geocoding_routes.router, prefix="/api")


@app.on_event("startup")
async def startup_event():
    logger.info("Application startup")

    register_reminder_emails()

    if settings.reminder_scheduler_enabled:
        app.state.reminder_task = asyncio.create_task(reminder_scheduler_loop())
        logger.info(
            f"Reminder scheduler started - will check for rides within "
            f"{settings.reminder_window_hours}h every {settings.reminder_interval_seconds}s"
        )


@app.on_event("shutdown")
async def shutdown_event():
    logger.info("Application shutdown")
    task = getattr(app.state, "reminder_task", None)
    if task is not None:
        task.cancel()
        app.state.reminder_task = None


@app.get("/")
async def root():
    return {"message": "Welcome to motobuddies-backend", "status": "healthy"}


@app.get("/health")
@limiter.exempt
async def health():
    return {"status": "healthy"}


@app.get("/ready")
@limiter.exempt
async def ready():
    """Readiness probe"""
    return {"status": "ready"}
