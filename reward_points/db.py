from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, declarative_base

from reward_points.config import DATABASE_URL


def build_engine(url: str):
    connect_args = {}
    if url.startswith("postgres"):
        connect_args = {"options": "-c timezone=utc"}
    elif url.startswith("sqlite"):
        # Request handlers and worker threads share the pool.
        connect_args = {"check_same_thread": False}
    return create_engine(url, connect_args=connect_args)


engine = build_engine(DATABASE_URL)
SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False)
Base = declarative_base()


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
