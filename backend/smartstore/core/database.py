"""
Conexión a base de datos

Este módulo centraliza TODAS las formas de acceso a la base de datos:
- SQLAlchemy ORM (para los modelos de la aplicación)
- psycopg2 directo (para chequeos de conectividad y scripts de comparación)

Author: SmartStore
Updated: 2025-11-02
"""
import time
import logging
from typing import Optional

import psycopg2
from psycopg2.extras import RealDictCursor
from sqlalchemy import create_engine, text
from sqlalchemy.orm import declarative_base, sessionmaker, Session

from .config import settings

logger = logging.getLogger(__name__)


# ============================================================================
# SQLAlchemy Configuration (for ORM models)
# ============================================================================

def build_engine(database_url: str):
    """Create an engine with pool settings suited to the database backend"""
    if database_url.startswith("sqlite"):
        return create_engine(database_url, connect_args={"check_same_thread": False})

    return create_engine(
        database_url,
        pool_pre_ping=True,  # Verificar conexión antes de usar
        pool_size=10,  # Número de conexiones en el pool
        max_overflow=20,  # Conexiones extras si se necesitan
    )


engine = build_engine(settings.DATABASE_URL)

# Session Factory
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# Base para modelos
Base = declarative_base()


def get_db():
    """
    FastAPI dependency para obtener sesión de SQLAlchemy

    Usage:
        @router.get("/items")
        def read_items(db: Session = Depends(get_db)):
            ...
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def init_db(bind=None, drop_existing: bool = False):
    """Create all tables registered on Base (optionally dropping them first)"""
    # Import models so every table is registered on Base.metadata
    from smartstore import models  # noqa: F401

    target = bind or engine
    if drop_existing:
        Base.metadata.drop_all(bind=target)
    Base.metadata.create_all(bind=target)


def check_database(db: Session) -> dict:
    """
    Run a trivial query through the ORM session and report latency

    Returns:
        Dict with status ('connected' | 'disconnected'), latency_ms and error
    """
    start = time.time()
    try:
        db.execute(text("SELECT 1"))
        return {
            "status": "connected",
            "latency_ms": round((time.time() - start) * 1000, 2),
            "error": None,
        }
    except Exception as e:
        logger.warning(f"Database health check failed: {e}")
        return {"status": "disconnected", "latency_ms": None, "error": str(e)}


# ============================================================================
# psycopg2 Direct Connections with Retry Logic (connectivity utilities)
# ============================================================================

def get_db_connection_with_retry(
    database_url: Optional[str] = None,
    max_retries: int = 3,
    retry_delay: float = 1.0,
    dict_cursor: bool = False,
):
    """
    Get a psycopg2 connection with automatic retry on connection failures

    - Retries failed connections up to max_retries times
    - Adds exponential backoff between retries
    - Logs connection attempts for debugging

    Args:
        database_url: PostgreSQL URL (defaults to settings.DATABASE_URL)
        max_retries: Maximum number of connection attempts (default: 3)
        retry_delay: Initial delay between retries in seconds (default: 1.0)
        dict_cursor: Use RealDictCursor so rows come back as dicts

    Returns:
        psycopg2 connection object

    Raises:
        psycopg2.OperationalError: If all retry attempts fail
    """
    database_url = database_url or settings.DATABASE_URL
    if not database_url:
        raise ValueError("DATABASE_URL not configured")

    connect_kwargs = {"cursor_factory": RealDictCursor} if dict_cursor else {}
    last_error = None

    for attempt in range(1, max_retries + 1):
        try:
            logger.debug(f"Database connection attempt {attempt}/{max_retries}")
            conn = psycopg2.connect(database_url, **connect_kwargs)

            # Test connection with a simple query
            cursor = conn.cursor()
            cursor.execute("SELECT 1")
            cursor.close()

            logger.debug(f"Database connection successful on attempt {attempt}")
            return conn

        except psycopg2.OperationalError as e:
            last_error = e
            error_msg = str(e)

            if "SSL connection has been closed unexpectedly" in error_msg:
                logger.warning(f"SSL connection error on attempt {attempt}/{max_retries}: {error_msg}")
            else:
                logger.warning(f"Connection error on attempt {attempt}/{max_retries}: {error_msg}")

            # Don't retry on last attempt
            if attempt < max_retries:
                delay = retry_delay * (2 ** (attempt - 1))
                logger.info(f"Retrying in {delay:.2f} seconds...")
                time.sleep(delay)
            else:
                logger.error(f"All {max_retries} connection attempts failed")
                raise

        except Exception as e:
            # For non-connection errors, fail immediately
            logger.error(f"Unexpected error during connection: {e}")
            raise

    raise last_error if last_error else ConnectionError("Connection failed after all retries")
