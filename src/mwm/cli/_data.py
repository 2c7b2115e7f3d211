"""``mwm migrate`` and ``mwm seed``."""

import anyio

from mwm.config import AppConfig
from mwm.data import Database, migrate
from mwm.data.seed import ADMIN_PASSWORD, seed


async def _migrate(config: AppConfig) -> None:
    async with Database(config.database_url, echo=config.echo_sql) as db:
        result = await migrate(db, config.migrations_dir)
        print(result.summary)


async def _seed(config: AppConfig, admin_password: str) -> None:
    async with Database(config.database_url, echo=config.echo_sql) as db:
        result = await migrate(db, config.migrations_dir)
        print(result.summary)
        seeded = await seed(db, admin_password=admin_password)
        print(
            f"Seeded {seeded.roles} roles and {seeded.permissions} permissions; "
            f"admin user: {seeded.admin_email}"
        )


def run_migrate(config: AppConfig) -> None:
    anyio.run(_migrate, config)


def run_seed(config: AppConfig, admin_password: str | None = None) -> None:
    anyio.run(_seed, config, admin_password or ADMIN_PASSWORD)
