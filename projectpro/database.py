"""
Database Configuration and Session Management

This module handles SQLAlchemy setup with connection pooling and binds
the request principal to every transaction so PostgreSQL row-level
security policies evaluate against the same tenant and user that the
application authenticated.

NOTE: Application queries always filter by tenant_id as well. On SQLite
(tests, local development) those filters are the only isolation layer.
"""
from typing import Optional

from fastapi import Request
from sqlalchemy import create_engine, event, text
from sqlalchemy.orm import declarative_base, sessionmaker, Session
from projectpro.config import get_settings
import logging

logger = logging.getLogger(__name__)

settings = get_settings()


def _engine_options(url: str) -> dict:
    if url.startswith("sqlite"):
        # TestClient runs the app in a worker thread
        return {"connect_args": {"check_same_thread": False}}
    return {
        "pool_size": settings.DATABASE_POOL_SIZE,
        "max_overflow": settings.DATABASE_MAX_OVERFLOW,
        "pool_pre_ping": True,
    }


engine = create_engine(
    settings.DATABASE_URL,
    echo=settings.DEBUG,
    **_engine_options(settings.DATABASE_URL),
)

# expire_on_commit=False lets handlers serialize rows after commit
# without another round trip.
SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
    expire_on_commit=False,
)

Base = declarative_base()


@event.listens_for(engine, "connect")
def configure_connection(dbapi_connection, connection_record):
    """Set connection-level configuration on new connections."""
    cursor = dbapi_connection.cursor()
    if engine.dialect.name == "postgresql":
        cursor.execute("SET TIME ZONE 'UTC'")
    elif engine.dialect.name == "sqlite":
        cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()
    logger.debug("New database connection established")


def _apply_rls_settings(connection, info: dict) -> None:
    # is_local=true scopes the setting to the current transaction
    connection.execute(
        text(
            "SELECT set_config('app.current_tenant_id', :tenant_id, true), "
            "set_config('app.current_user_id', :user_id, true)"
        ),
        {
            "tenant_id": info.get("tenant_id") or "",
            "user_id": info.get("user_id") or "",
        },
    )


@event.listens_for(SessionLocal, "after_begin")
def set_rls_context(session, transaction, connection):
    """Re-apply the RLS principal at the start of every transaction."""
    if connection.dialect.name != "postgresql":
        return
    if session.info.get("tenant_id") or session.info.get("user_id"):
        _apply_rls_settings(connection, session.info)


def bind_rls_context(
    db: Session,
    tenant_id: Optional[str] = None,
    user_id: Optional[str] = None,
) -> None:
    """
    Attach tenant/user identity to a session.

    Values persist across commits; the after_begin hook re-applies them
    to each new transaction. If a transaction is already open, the
    settings are applied to it immediately.
    """
    if tenant_id is not None:
        db.info["tenant_id"] = tenant_id
    if user_id is not None:
        db.info["user_id"] = user_id

    if db.in_transaction() and db.get_bind().dialect.name == "postgresql":
        _apply_rls_settings(db.connection(), db.info)


def get_db(request: Request) -> Session:
    """
    Dependency function that provides a database session.

    The session is bound to the tenant resolved by TenantMiddleware;
    get_current_membership adds the user once the token is verified.
    """
    db = SessionLocal()
    tenant_id = getattr(request.state, "tenant_id", None)
    if tenant_id:
        bind_rls_context(db, tenant_id=tenant_id)
    try:
        yield db
    finally:
        db.close()


def init_db():
    """
    Create all tables from model metadata.

    For development and tests only; deployed databases are built by the
    Alembic revisions under migrations/, which also install RLS policies.
    """
    import projectpro.models  # noqa: F401  (register mappers)

    logger.warning("init_db() called - use Alembic migrations in production!")
    Base.metadata.create_all(bind=engine)
