"""Alembic environment: one metadata (catering models), url always taken from the app settings."""
from logging.config import fileConfig

from alembic import context
from sqlalchemy import create_engine, pool

from catering.core.config import settings
from catering.db.session import Base

# Every mapped table must be imported here or autogenerate will propose dropping it
from catering.models.audit_log import AuditLog  # noqa: F401
from catering.models.booking import Booking  # noqa: F401
from catering.models.cash_flow import CashFlowEntry  # noqa: F401
from catering.models.closed_day import ClosedDay  # noqa: F401
from catering.models.package import Package  # noqa: F401
from catering.models.setting import Setting  # noqa: F401
from catering.models.transaction import Transaction  # noqa: F401
from catering.models.user import User  # noqa: F401

config = context.config
if config.config_file_name is not None:
    # keep the app loggers alive when migrations run inside start_api
    fileConfig(config.config_file_name, disable_existing_loggers=False)

# settings reads DATABASE_URL from the environment and normalises postgres:// urls
DB_URL = settings.DATABASE_URL
config.set_main_option("sqlalchemy.url", DB_URL)

# Shared by both modes; sqlite cannot ALTER most columns in place, so batch mode rebuilds tables
CONFIGURE_KW = dict(
    target_metadata=Base.metadata,
    compare_type=True,
    render_as_batch=DB_URL.startswith("sqlite"),
)


def run_migrations_offline() -> None:
    """Emit SQL to stdout instead of executing it (alembic upgrade --sql)."""
    context.configure(url=DB_URL, literal_binds=True, dialect_opts={"paramstyle": "named"}, **CONFIGURE_KW)
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    # alembic.ini cannot expand env vars, so the engine is built from the resolved url
    connectable = create_engine(DB_URL, poolclass=pool.NullPool)
    with connectable.connect() as connection:
        context.configure(connection=connection, **CONFIGURE_KW)
        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
