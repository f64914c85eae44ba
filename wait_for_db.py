"""Block until the Postgres server in DATABASE_URL accepts connections (sqlite needs no wait)."""
import logging
import os
import time
from urllib.parse import urlparse

import psycopg2

from catering.core.config import settings

logger = logging.getLogger("wait_for_db")


def wait(database_url: str | None = None, timeout_s: int | None = None) -> None:
    url = database_url or os.getenv("DATABASE_URL") or settings.DATABASE_URL
    if url.startswith("sqlite"):
        logger.info("sqlite database, nothing to wait for")
        return

    # SQLAlchemy URL may start with postgresql+psycopg2://
    p = urlparse(url.replace("postgresql+psycopg2://", "postgresql://").replace("postgres://", "postgresql://"))
    host = p.hostname or "db"
    port = p.port or 5432
    user = p.username or "catering"
    dbname = (p.path or "/catering").lstrip("/") or "catering"
    timeout_s = timeout_s if timeout_s is not None else int(os.getenv("DB_WAIT_TIMEOUT", "60"))

    logger.info("waiting for Postgres at %s:%s db=%s user=%s (timeout=%ss)", host, port, dbname, user, timeout_s)
    start = time.time()
    while True:
        try:
            conn = psycopg2.connect(host=host, port=port, user=user, password=p.password or "catering", dbname=dbname)
            conn.close()
            logger.info("Postgres is ready")
            return
        except psycopg2.OperationalError as e:
            if time.time() - start > timeout_s:
                logger.error("timed out waiting for the database; last error: %s", e)
                raise
            time.sleep(1)


if __name__ == "__main__":
    from catering.core.logging import configure_logging

    configure_logging()
    wait()
