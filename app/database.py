from fastapi import Request
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker
from app.config import Settings
import logging

logger = logging.getLogger(__name__)

Base = declarative_base()


def build_engine(settings: Settings) -> Engine:
    database_url = settings.DATABASE_URL

    if database_url.startswith("sqlite"):
        # Sessions are handed across threads by the request executor
        return create_engine(database_url, connect_args={"check_same_thread": False})

    # For Neon.tech, ensure SSL is configured
    if "neon.tech" in database_url and "sslmode" not in database_url:
        database_url += "&sslmode=require" if "?" in database_url else "?sslmode=require"
        logger.info("Added sslmode=require to Neon database URL")

    return create_engine(
        database_url,
        pool_pre_ping=True,  # Auto-reconnect on broken connections
        pool_size=5,
        max_overflow=10,
        pool_timeout=30,
        pool_recycle=1800,   # Recycle connections after 30 minutes
    )


def build_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


def create_tables(engine: Engine) -> None:
    # Models must be imported so they register on Base.metadata
    from app import models  # noqa: F401

    Base.metadata.create_all(bind=engine)


def get_db(request: Request):
    db = request.app.state.session_factory()
    try:
        yield db
    finally:
        db.close()
