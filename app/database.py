from fastapi import Depends
from sqlmodel import SQLModel, create_engine, Session
from app.config import settings


def build_engine(url: str):
    connect_args = {}
    if url.startswith("sqlite"):
        # sync endpoints run in a thread pool
        connect_args["check_same_thread"] = False

    return create_engine(
        url,
        echo=False,
        pool_pre_ping=True,      # checks dead connections
        pool_recycle=1800,       # refresh every 30 min
        connect_args=connect_args,
    )


engine = build_engine(settings.database_url)


def create_db_and_tables(bind=None):
    from app.models import order, order_item  # noqa: F401
    SQLModel.metadata.create_all(bind or engine)


def get_engine():
    return engine


def get_session(bound_engine=Depends(get_engine)):
    with Session(bound_engine) as session:
        yield session
