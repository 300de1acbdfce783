import time
from sqlalchemy import create_engine, event, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import QueuePool, StaticPool
from prdify.core.config import settings
from prdify.core.logging import db_logger
from prdify.core.monitoring import record_database_operation, database_connections


def create_db_engine(database_url: str) -> Engine:
    """Create an engine; SQLite gets a single shared connection instead of a pool."""
    if database_url.startswith("sqlite"):
        return create_engine(
            database_url,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
            echo=False,
        )
    return create_engine(
        database_url,
        poolclass=QueuePool,
        pool_size=settings.database_pool_size,
        max_overflow=settings.database_max_overflow,
        pool_timeout=settings.database_pool_timeout,
        pool_pre_ping=True,  # Validate connections before use
        pool_recycle=3600,  # Recycle connections after 1 hour
        echo=False,
    )


engine = create_db_engine(settings.database_url)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


# Database monitoring events
@event.listens_for(engine, "connect")
def on_connect(dbapi_connection, connection_record):
    """Event handler for new database connections"""
    database_connections.inc()
    db_logger.debug("New database connection established")


@event.listens_for(engine, "invalidate")
def on_invalidate(dbapi_connection, connection_record, exception):
    """Event handler for connection invalidation"""
    database_connections.dec()
    db_logger.warning("Database connection invalidated", error=str(exception) if exception else None)


def get_db():
    """Dependency to get database session with monitoring"""
    start_time = time.time()
    db = SessionLocal()
    try:
        yield db
    except Exception as e:
        db_logger.error("Database session error", error=str(e))
        db.rollback()
        raise
    finally:
        duration = time.time() - start_time
        record_database_operation("session", duration)
        db.close()


def create_tables(bind: Engine = engine):
    """Create all database tables"""
    # Register the mapped classes on Base.metadata
    import prdify.models  # noqa: F401

    try:
        Base.metadata.create_all(bind=bind)
        db_logger.info("Database tables created successfully")
    except Exception as e:
        db_logger.error("Failed to create database tables", error=str(e))
        raise


def check_database_health() -> bool:
    """Check database connectivity and health"""
    try:
        start_time = time.time()
        db = SessionLocal()

        db.execute(text("SELECT 1"))
        db.close()

        duration = time.time() - start_time
        record_database_operation("health_check", duration)

        db_logger.debug("Database health check passed", duration=duration)
        return True

    except Exception as e:
        db_logger.error("Database health check failed", error=str(e))
        return False


def get_db_stats():
    """Get database connection pool statistics"""
    pool = engine.pool
    if not isinstance(pool, QueuePool):
        return {"pool": type(pool).__name__}
    try:
        return {
            "pool_size": pool.size(),
            "checked_in": pool.checkedin(),
            "checked_out": pool.checkedout(),
            "overflow": pool.overflow(),
        }
    except Exception as e:
        db_logger.error("Failed to get database stats", error=str(e))
        return None
