from logging.config import fileConfig

from alembic import context
from sqlalchemy import engine_from_config, pool

from reward_points import config as app_config
from reward_points.db import Base

from reward_points.models.user import User  # noqa: F401
from reward_points.models.points_account import PointsAccount  # noqa: F401
from reward_points.models.point_transaction import PointTransaction  # noqa: F401
from reward_points.models.product import Product, ProductPrice  # noqa: F401
from reward_points.models.inventory_item import InventoryItem  # noqa: F401
from reward_points.models.redemption import Redemption  # noqa: F401
from reward_points.models.event import Event  # noqa: F401
from reward_points.models.event_award import EventAward  # noqa: F401
from reward_points.models.event_participant import EventParticipant  # noqa: F401
from reward_points.models.admin_budget import AdminBudget  # noqa: F401


config = context.config
config.set_main_option("sqlalchemy.url", app_config.DATABASE_URL)

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = Base.metadata


def run_migrations_offline() -> None:
    context.configure(
        url=config.get_main_option("sqlalchemy.url"),
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )

    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    connectable = engine_from_config(
        config.get_section(config.config_ini_section, {}),
        prefix="sqlalchemy.",
        poolclass=pool.NullPool,
    )

    with connectable.connect() as connection:
        context.configure(connection=connection, target_metadata=target_metadata)

        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
