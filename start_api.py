#!/usr/bin/env python3
"""
Container entrypoint: wait for the database, migrate, seed, then exec uvicorn.

Migrations and seeding share the app's DATABASE_URL, so the API never starts
against a schema it does not know.
"""
import logging
import os
import sys

from alembic import command
from alembic.config import Config
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

import wait_for_db
from catering.core.config import settings
from catering.core.logging import configure_logging

logger = logging.getLogger("start_api")
HERE = os.path.dirname(os.path.abspath(__file__))


def migrate() -> None:
    cfg = Config(os.path.join(HERE, "alembic.ini"))
    cfg.set_main_option("script_location", os.path.join(HERE, "alembic"))
    cfg.set_main_option("sqlalchemy.url", settings.DATABASE_URL)
    command.upgrade(cfg, "head")
    logger.info("migrations at head")


def seed() -> None:
    # fresh engine: the one built while alembic loaded env.py predates the new tables
    from catering.seed import run as run_seed

    engine = create_engine(settings.DATABASE_URL, pool_pre_ping=True)
    db = sessionmaker(autocommit=False, autoflush=False, bind=engine)()
    try:
        run_seed(db)
    finally:
        db.close()
        engine.dispose()


def serve() -> None:
    port = os.getenv("PORT", "8000")
    logger.info("starting uvicorn on :%s", port)
    os.execv(
        sys.executable,
        [sys.executable, "-m", "uvicorn", "catering.main:app", "--host", "0.0.0.0", "--port", port],
    )


def main() -> None:
    configure_logging()
    wait_for_db.wait()
    migrate()
    seed()
    serve()


if __name__ == "__main__":
    main()
