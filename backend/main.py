import logging
import time

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.sessions import SessionMiddleware

# Configure root logger to show INFO for our application modules
logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
# Suppress noisy third-party loggers
logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
logging.getLogger("httpcore").setLevel(logging.WARNING)
logging.getLogger("httpx").setLevel(logging.WARNING)

from app.core.config import settings
from app.core.database import init_db
from app.core.errors import register_exception_handlers
from app.api import auth, health
from app.api import newsletter as newsletter_api
from app.api import contact as contact_api
from app.api import blog as blog_api
from app.api import content as content_api

logger = logging.getLogger(__name__)

# Create all tables
init_db()

app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
)

register_exception_handlers(app)

# CORS: production uses FRONTEND_URL env var; dev adds localhost origins
_cors_origins = [settings.FRONTEND_URL]
if settings.DEBUG:
    _cors_origins += ["http://localhost:5000", "http://127.0.0.1:5000", "http://localhost:5173"]

app.add_middleware(
    CORSMiddleware,
    allow_origins=_cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Signed-cookie sessions carry the admin login flag
app.add_middleware(
    SessionMiddleware,
    secret_key=settings.SESSION_SECRET,
    max_age=settings.SESSION_MAX_AGE_SECONDS,
    same_site="lax",
    https_only=settings.SESSION_COOKIE_SECURE,
)


@app.middleware("http")
async def log_api_requests(request: Request, call_next):
    start = time.perf_counter()
    response = await call_next(request)
    if request.url.path.startswith("/api"):
        duration_ms = (time.perf_counter() - start) * 1000
        logger.info("%s %s %d in %.0fms", request.method, request.url.path, response.status_code, duration_ms)
    return response


# Routes
app.include_router(health.router)
app.include_router(auth.router)
app.include_router(newsletter_api.router)
app.include_router(contact_api.router)
app.include_router(blog_api.router)
app.include_router(content_api.router)


def _seed_admin_user():
    """Create the default admin user if the database is empty (fresh deployment)."""
    from app.core.database import SessionLocal
    from app.services.credentials import ensure_admin

    db = SessionLocal()
    try:
        if ensure_admin(db, settings.ADMIN_USERNAME, settings.ADMIN_PASSWORD, settings.ADMIN_EMAIL):
            logger.info("Default admin user '%s' created", settings.ADMIN_USERNAME)
    except Exception as e:
        db.rollback()
        logger.error("Failed to seed admin user: %s", e)
    finally:
        db.close()


@app.on_event("startup")
async def startup_event():
    _seed_admin_user()
    if settings.SESSION_SECRET == "dev-secret-change-in-production" and not settings.DEBUG:
        logger.warning("SESSION_SECRET is the development default, set it in production")


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=5000)
