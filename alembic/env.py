from logging.config import fileConfig

from alembic import context
from sqlalchemy import create_engine, pool

from lernpfad.db.base import Base, DATABASE_URL
from lernpfad.auth.models import User  # noqa: F401
from lernpfad.state.models import UserState  # noqa: F401

config = context.config
if config.config_file_name is not None:
    fileConfig(config.config_file_name)

# lernpfad.db.base already normalized DATABASE_URL (env, .env or sqlite default)
config.set_main_option("sqlalchemy.url", DATABASE_URL.replace("%", "%%"))
target_metadata = Base.metadata


def _configure(**kwargs) -> None:
    # sqlite cannot ALTER most columns in place; batch mode recreates the table
    context.configure(
        target_metadata=target_metadata,
        compare_type=True,
        render_as_batch=DATABASE_URL.startswith("sqlite"),
        **kwargs,
    )


if context.is_offline_mode():
    _configure(url=DATABASE_URL, literal_binds=True, dialect_opts={"paramstyle": "named"})
    with context.begin_transaction():
        context.run_migrations()
else:
    engine = create_engine(DATABASE_URL, poolclass=pool.NullPool)
    with engine.connect() as connection:
        _configure(connection=connection)
        with context.begin_transaction():
            context.run_migrations()
