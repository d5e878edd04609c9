from sqlalchemy import event
from sqlmodel import Session, SQLModel, create_engine

from mealcart.config import settings
from mealcart.logging import get_logger

logger = get_logger(__name__)


def _make_engine(url: str):
    connect_args = {"check_same_thread": False} if url.startswith("sqlite") else {}
    eng = create_engine(url, echo=settings.sql_echo, pool_pre_ping=True, connect_args=connect_args)
    if url.startswith("sqlite"):
        event.listen(eng, "connect", _enable_sqlite_foreign_keys)
    return eng


def _enable_sqlite_foreign_keys(dbapi_connection, _record) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


engine = _make_engine(settings.database_url)


def create_db_and_tables() -> None:
    # import so every table is registered on the metadata
    from mealcart.storage import models  # noqa: F401

    SQLModel.metadata.create_all(engine)
    logger.info("db.ready url=%s tables=%s", engine.url.render_as_string(hide_password=True), len(SQLModel.metadata.tables))


def get_session() -> Session:
    return Session(engine)
