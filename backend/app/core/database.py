from pathlib import Path

from sqlalchemy import create_engine
from sqlalchemy.engine import make_url
from sqlalchemy.orm import sessionmaker, DeclarativeBase

from app.core.config import settings

# SQLite requires check_same_thread=False (background email threads share the engine)
connect_args = {}
_url = make_url(settings.DATABASE_URL)
if _url.get_backend_name() == "sqlite":
    connect_args["check_same_thread"] = False
    if _url.database and _url.database != ":memory:":
        Path(_url.database).parent.mkdir(parents=True, exist_ok=True)

engine = create_engine(
    settings.DATABASE_URL,
    connect_args=connect_args,
    echo=False,
    pool_pre_ping=True,
)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


class Base(DeclarativeBase):
    pass


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def init_db():
    """Create all tables. Models must be imported so Base.metadata knows them."""
    from app.models import admin_user, password_reset, subscriber, contact_lead, blog, content  # noqa: F401

    Base.metadata.create_all(bind=engine)
