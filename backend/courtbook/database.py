from contextlib import contextmanager

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from .config import settings

# Execution option asking SQLite for BEGIN IMMEDIATE (write lock up front)
IMMEDIATE = "sqlite_immediate"


def make_engine(url: str) -> Engine:
    """
    Create an engine for the given URL.

    For SQLite the driver's implicit transaction handling is switched off
    so transactions start where SQLAlchemy says they do; a transaction
    opened through begin_write() starts with BEGIN IMMEDIATE, which
    serializes writers the way SELECT ... FOR UPDATE does on PostgreSQL.
    """
    if not url.startswith("sqlite"):
        return create_engine(url, pool_pre_ping=True)

    # check_same_thread=False: FastAPI runs sync handlers in a thread pool
    engine = create_engine(
        url,
        connect_args={"check_same_thread": False, "timeout": 30},
    )

    @event.listens_for(engine, "connect")
    def enable_sqlite_fk(dbapi_connection, _):
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.execute("PRAGMA journal_mode=WAL")
        cursor.close()

    @event.listens_for(engine, "begin")
    def begin_transaction(conn):
        if conn.get_execution_options().get(IMMEDIATE):
            conn.exec_driver_sql("BEGIN IMMEDIATE")
        else:
            conn.exec_driver_sql("BEGIN")

    return engine


def begin_write(db: Session) -> None:
    """
    Start a fresh write transaction on the session.

    Whatever the session was doing is committed first; the new transaction
    holds the SQLite write lock from its first statement.
    """
    if db.in_transaction():
        db.commit()
    db.connection(execution_options={IMMEDIATE: True})


@contextmanager
def write_transaction(db: Session):
    """
    begin_write() for a block of work; any exception rolls back and
    releases the write lock. The block commits explicitly.
    """
    begin_write(db)
    try:
        yield db
    except Exception:
        db.rollback()
        raise


engine = make_engine(settings.resolved_database_url)

# SessionLocal: основной способ работы с БД
SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine
)


# Dependency для FastAPI
def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
