from pathlib import Path

from sqlalchemy import create_engine, event, text
from sqlalchemy.engine import Engine

from gator.db.models import Base


def _enable_sqlite_foreign_keys(dbapi_conn, _record) -> None:
    # cascading deletes (reset) depend on this
    cursor = dbapi_conn.cursor()
    cursor.execute("PRAGMA foreign_keys = ON")
    cursor.close()


def make_engine(database_url: str) -> Engine:
    engine = create_engine(database_url, future=True)
    if engine.dialect.name == "sqlite":
        db_file = engine.url.database
        if db_file and db_file != ":memory:":
            Path(db_file).parent.mkdir(parents=True, exist_ok=True)
        event.listen(engine, "connect", _enable_sqlite_foreign_keys)
    return engine


def init_db(engine: Engine) -> Engine:
    """
    Create tables (idempotent) and verify connectivity.
    """
    Base.metadata.create_all(engine)

    with engine.connect() as conn:
        conn.execute(text("SELECT 1"))
    return engine
