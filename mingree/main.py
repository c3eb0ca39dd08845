"""
Mingree Backend API
Marketplace connecting Instagram creators with brand sponsors.
"""
from dotenv import load_dotenv
load_dotenv()

import logging
import os
import sys
from pathlib import Path

from alembic import command
from alembic.config import Config

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    handlers=[logging.StreamHandler(sys.stdout)],
    force=True
)

logger = logging.getLogger(__name__)


def run_migrations() -> None:
    """Run Alembic migrations on startup. Uses alembic.ini and DATABASE_URL.
    Fails startup if migrations fail, so the DB is never left out of sync."""
    project_root = Path(__file__).resolve().parent.parent
    alembic_ini = project_root / "alembic.ini"
    if not alembic_ini.exists():
        logger.warning("alembic.ini not found, skipping Alembic migrations")
        return
    db_url = os.getenv("DATABASE_URL")
    if not db_url:
        logger.error("DATABASE_URL is not set. Alembic migrations will not run.")
        return
    # Normalize postgres:// -> postgresql:// for SQLAlchemy
    if db_url.startswith("postgres://"):
        db_url = "postgresql://" + db_url[10:]
    try:
        alembic_cfg = Config(str(alembic_ini))
        alembic_cfg.set_main_option("sqlalchemy.url", db_url)
        command.upgrade(alembic_cfg, "head")
        logger.info("Alembic migrations completed successfully")
    except Exception as e:
        logger.exception("Alembic migration failed: %s", e)
        raise


from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from mingree.api.routes import (
    admin,
    auth,
    campaigns,
    categories,
    notifications,
    promo_codes,
    reservations,
    sponsors,
    subscription,
    users,
    wallet,
)
from mingree.core.errors import MingreeError
from mingree.db.base import Base
from mingree.db.session import engine, SessionLocal
from mingree.services.subscriptions import ensure_default_plans
# Import all models to ensure they're registered with Base
import mingree.models  # noqa: F401

app = FastAPI(title="Mingree")


@app.on_event("startup")
def startup_event():
    """Create tables, run Alembic migrations, then seed the default plans."""
    logger.info("Creating database tables...")
    Base.metadata.create_all(bind=engine)
    run_migrations()

    db = SessionLocal()
    try:
        ensure_default_plans(db)
    finally:
        db.close()


@app.exception_handler(MingreeError)
async def mingree_error_handler(request: Request, exc: MingreeError):
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message, **exc.extra})


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(status_code=exc.status_code, content={"error": exc.detail}, headers=exc.headers)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    first = errors[0] if errors else {}
    field = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    message = first.get("msg", "Invalid request")
    return JSONResponse(
        status_code=422,
        content={"error": f"{field}: {message}" if field else message},
    )


cors_origins = [o.strip() for o in os.getenv("CORS_ORIGINS", "http://localhost:5173,http://localhost:3000").split(",") if o.strip()]
app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Register routers
app.include_router(auth.router, prefix="/api/auth", tags=["Auth"])
app.include_router(users.router, prefix="/api/users", tags=["Users"])
app.include_router(campaigns.router, prefix="/api/campaigns", tags=["Campaigns"])
app.include_router(reservations.router, prefix="/api/reservations", tags=["Reservations"])
app.include_router(sponsors.router, prefix="/api/sponsors", tags=["Sponsors"])
app.include_router(wallet.router, prefix="/api/wallet", tags=["Wallet"])
app.include_router(notifications.router, prefix="/api/notifications", tags=["Notifications"])
app.include_router(categories.router, prefix="/api", tags=["Categories"])
app.include_router(promo_codes.router, prefix="/api/promo-codes", tags=["Promo Codes"])
app.include_router(subscription.router, prefix="/api/subscription", tags=["Subscription"])
app.include_router(admin.router, prefix="/api/admin", tags=["Admin"])


@app.get("/")
def root():
    return {"message": "Mingree API"}


@app.get("/health")
def health():
    return {"status": "ok"}
