"""Forward-only SQL migrations.

Migrations are numbered ``.sql`` files::

    migrations/
        001_initial.sql
        002_add_sessions_index.sql

Applied versions are recorded in ``_mwm_migrations``. Each file and its
tracking row are applied in one transaction: a failing migration leaves
neither behind, and no later migration runs.

Usage::

    db = Database("sqlite:///mwm.db")
    result = await migrate(db, "src/mwm/data/migrations")
    print(result.summary)
"""

import contextlib
import logging
import re
from dataclasses import dataclass
from datetime import UTC, datetime
from pathlib import Path

from mwm.data.database import Database
from mwm.data.errors import MigrationError, QueryError

logger = logging.getLogger("mwm.data")

_TRACKING_TABLE = "_mwm_migrations"
_FILENAME_RE = re.compile(r"^(\d+)_([A-Za-z0-9_]+)$")


@dataclass(frozen=True, slots=True)
class Migration:
    version: int
    name: str
    sql: str


@dataclass(frozen=True, slots=True)
class MigrationResult:
    applied: list[str]
    already_applied: int
    total_available: int

    @property
    def summary(self) -> str:
        if not self.applied:
            return f"Already up to date ({self.already_applied} migrations applied)"
        return f"Applied {len(self.applied)} migration(s): {', '.join(self.applied)}"


def discover_migrations(directory: str | Path) -> list[Migration]:
    """Read ``NNN_name.sql`` files from *directory*, ordered by version.

    Raises:
        MigrationError: Missing directory, bad filename, empty file, or a
            version used twice.
    """
    path = Path(directory)
    if not path.is_dir():
        msg = f"Migration directory does not exist: {path}"
        raise MigrationError(msg)

    migrations: dict[int, Migration] = {}
    for sql_file in sorted(path.glob("*.sql")):
        match = _FILENAME_RE.match(sql_file.stem)
        if match is None:
            msg = f"Invalid migration filename: {sql_file.name} (expected NNN_description.sql)"
            raise MigrationError(msg)
        version = int(match.group(1))
        if version in migrations:
            msg = f"Duplicate migration version {version}: {sql_file.name}"
            raise MigrationError(msg)
        sql = sql_file.read_text(encoding="utf-8").strip()
        if not sql:
            msg = f"Empty migration file: {sql_file.name}"
            raise MigrationError(msg)
        migrations[version] = Migration(version=version, name=sql_file.stem, sql=sql)
    return [migrations[v] for v in sorted(migrations)]


async def applied_versions(db: Database) -> set[int]:
    await db.execute(
        f"CREATE TABLE IF NOT EXISTS {_TRACKING_TABLE} ("
        " version INTEGER PRIMARY KEY,"
        " name TEXT NOT NULL,"
        " applied_at TEXT NOT NULL)"
    )
    rows = await db.fetch_dicts(f"SELECT version FROM {_TRACKING_TABLE}")
    return {int(row["version"]) for row in rows}


async def _apply(db: Database, migration: Migration) -> None:
    applied_at = datetime.now(UTC).isoformat()
    # Filenames are restricted to [A-Za-z0-9_], so inlining is safe.
    script = (
        "BEGIN;\n"
        f"{migration.sql.rstrip(';')};\n"
        f"INSERT INTO {_TRACKING_TABLE} (version, name, applied_at) "
        f"VALUES ({migration.version}, '{migration.name}', '{applied_at}');\n"
        "COMMIT;"
    )
    try:
        await db.execute_script(script)
    except QueryError:
        with contextlib.suppress(QueryError):
            await db.execute_script("ROLLBACK;")
        raise


async def migrate(db: Database, directory: str | Path) -> MigrationResult:
    """Apply pending migrations from *directory* in version order.

    Raises:
        MigrationError: A migration failed or the directory is invalid.
    """
    migrations = discover_migrations(directory)
    done = await applied_versions(db)

    applied: list[str] = []
    for migration in migrations:
        if migration.version in done:
            continue
        try:
            await _apply(db, migration)
        except QueryError as exc:
            msg = f"Migration {migration.name} failed: {exc}"
            raise MigrationError(msg) from exc
        logger.info("Applied migration %s", migration.name)
        applied.append(migration.name)

    return MigrationResult(
        applied=applied,
        already_applied=len(done),
        total_available=len(migrations),
    )
