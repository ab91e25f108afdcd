import logging
from typing import Iterator

from fastapi import Request
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

from src.models.database import Base

logger = logging.getLogger(__name__)


class Database:
    """
    Store handle owning the engine and session factory.

    Built once at application startup and disposed at shutdown; request
    handlers reach it through the ``get_db`` dependency.
    """

    def __init__(self, url: str):
        connect_args = {}
        if url.startswith("sqlite"):
            connect_args["check_same_thread"] = False
        self.url = url
        self.engine = create_engine(url, connect_args=connect_args)
        self.SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=self.engine)

    def create_all(self):
        Base.metadata.create_all(bind=self.engine)

    def drop_all(self):
        Base.metadata.drop_all(bind=self.engine)

    def session(self) -> Session:
        return self.SessionLocal()

    def dispose(self):
        logger.info("Disposing database engine")
        self.engine.dispose()


def get_db(request: Request) -> Iterator[Session]:
    """Database dependency for FastAPI"""
    db = request.app.state.database.session()
    try:
        yield db
    finally:
        db.close()
