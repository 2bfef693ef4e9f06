# movie_catalog/database.py
import logging
from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from .config import get_settings

logging.basicConfig(level=logging.INFO)

DATABASE_URL = get_settings().database_url

if not DATABASE_URL:
    logging.error("DATABASE_URL environment variable not set or empty after attempting load.")
    raise ValueError("DATABASE_URL environment variable not set. Please check your .env file and its location.")

# Production runs on MySQL through PyMySQL; anything else is allowed but flagged
if "pymysql" not in DATABASE_URL and not DATABASE_URL.startswith("sqlite"):
    logging.warning(f"DATABASE_URL does not use the 'pymysql' driver. Current URL scheme: {DATABASE_URL.split(':', 1)[0]}")

engine_kwargs = {}
if DATABASE_URL.startswith("sqlite"):
    # Request handlers run in a threadpool; an in-memory database must share one connection
    engine_kwargs["connect_args"] = {"check_same_thread": False}
    if DATABASE_URL in ("sqlite://", "sqlite:///:memory:"):
        engine_kwargs["poolclass"] = StaticPool
else:
    engine_kwargs["pool_pre_ping"] = True

engine = create_engine(DATABASE_URL, **engine_kwargs)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base = declarative_base()

def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
