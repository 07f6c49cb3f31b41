"""
Migration Runner - версионированные миграции хранилища расширений.

Каждая миграция: ``version`` + async ``up()`` / ``down()``.
``up()`` обязана быть идемпотентной, ``down()`` молча пропускает то,
чего уже нет. Операции над схемой выполняются через Alembic Operations
поверх соединения SQLAlchemy.
"""
import logging
import re
from dataclasses import dataclass
from functools import cmp_to_key
from typing import Any, Dict, List, Optional, Sequence, Tuple

import sqlalchemy as sa
from alembic.migration import MigrationContext
from alembic.operations import Operations
from sqlalchemy.engine import Connection
from sqlalchemy.ext.asyncio import AsyncEngine

from ..errors import MigrationError

logger = logging.getLogger(__name__)


# ============= VERSIONS =============

_NUMERIC = re.compile(r"^\d+$")


def _split_version(version: str) -> Tuple[List[int], List[str]]:
    core, _, prerelease = version.strip().lstrip("vV").partition("-")
    numbers = []
    for part in core.split("."):
        numbers.append(int(part) if _NUMERIC.match(part) else 0)
    return numbers, prerelease.split(".") if prerelease else []


def _compare_prerelease(a: List[str], b: List[str]) -> int:
    # Релиз старше любого pre-release той же версии
    if not a and not b:
        return 0
    if not a:
        return 1
    if not b:
        return -1
    for pa, pb in zip(a, b):
        if pa == pb:
            continue
        a_num, b_num = _NUMERIC.match(pa), _NUMERIC.match(pb)
        if a_num and b_num:
            return -1 if int(pa) < int(pb) else 1
        if a_num:
            return -1
        if b_num:
            return 1
        return -1 if pa < pb else 1
    return (len(a) > len(b)) - (len(a) < len(b))


def compare_versions(a: str, b: str) -> int:
    """Сравнить версии вида ``1.2.3`` / ``0.0.1-alpha.7``; возвращает -1, 0 или 1."""
    a_core, a_pre = _split_version(a)
    b_core, b_pre = _split_version(b)
    width = max(len(a_core), len(b_core))
    a_core += [0] * (width - len(a_core))
    b_core += [0] * (width - len(b_core))
    if a_core != b_core:
        return -1 if a_core < b_core else 1
    return _compare_prerelease(a_pre, b_pre)


# ============= CONTRACT =============


class ExtensionMigration:
    """Базовый класс миграции расширения."""

    version: str = "0.0.0"

    async def up(self) -> None:
        raise NotImplementedError

    async def down(self) -> None:
        raise NotImplementedError

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.version}>"


def select_migrations(
    migrations: Sequence[ExtensionMigration],
    from_version: Optional[str],
    to_version: str,
) -> List[ExtensionMigration]:
    """Миграции с from_version < version <= to_version по возрастанию версии."""
    selected = [
        m for m in migrations
        if compare_versions(m.version, to_version) <= 0
        and (from_version is None or compare_versions(m.version, from_version) > 0)
    ]
    # sorted стабилен: одинаковые версии сохраняют порядок объявления
    return sorted(selected, key=cmp_to_key(lambda a, b: compare_versions(a.version, b.version)))


class MigrationRunner:
    """Последовательно применяет/откатывает миграции одного расширения."""

    async def upgrade(
        self,
        namespace: str,
        migrations: Sequence[ExtensionMigration],
        from_version: Optional[str],
        to_version: str,
    ) -> List[str]:
        applied: List[str] = []
        for migration in select_migrations(migrations, from_version, to_version):
            logger.info(f"⬆️ Applying migration {migration.version} for extension {namespace}")
            try:
                await migration.up()
            except MigrationError:
                raise
            except Exception as e:
                raise MigrationError(
                    f"Migration {migration.version} of '{namespace}' failed: {e}",
                    version=migration.version,
                ) from e
            applied.append(migration.version)
        return applied

    async def downgrade(
        self,
        namespace: str,
        migrations: Sequence[ExtensionMigration],
        from_version: str,
        to_version: Optional[str],
    ) -> List[str]:
        """Откатить миграции с to_version < version <= from_version по убыванию."""
        reverted: List[str] = []
        for migration in reversed(select_migrations(migrations, to_version, from_version)):
            logger.info(f"⬇️ Reverting migration {migration.version} for extension {namespace}")
            try:
                await migration.down()
            except MigrationError:
                raise
            except Exception as e:
                raise MigrationError(
                    f"Rollback {migration.version} of '{namespace}' failed: {e}",
                    version=migration.version,
                ) from e
            reverted.append(migration.version)
        return reverted


# ============= CONCRETE MIGRATIONS =============


@dataclass(frozen=True)
class IndexDefinition:
    name: str
    columns: Tuple[str, ...]
    unique: bool = False

    def matches(self, reflected: Dict[str, Any]) -> bool:
        """Совпадает ли с индексом из ``inspector.get_indexes()``."""
        return (
            tuple(reflected.get("column_names") or ()) == tuple(self.columns)
            and bool(reflected.get("unique")) == self.unique
        )


class TableIndexMigration(ExtensionMigration):
    """
    Создает индексы на таблице расширения.

    - таблицы нет -> пропуск (мигрировать пока нечего)
    - индекс с тем же определением уже есть -> пропуск
    - индекс с тем же именем, но другим определением -> drop + create
    """

    def __init__(self, engine: AsyncEngine, version: str, table_name: str, indexes: Sequence[IndexDefinition]):
        self.engine = engine
        self.version = version
        self.table_name = table_name
        self.indexes = list(indexes)

    async def up(self) -> None:
        async with self.engine.begin() as conn:
            await conn.run_sync(self._upgrade)

    async def down(self) -> None:
        async with self.engine.begin() as conn:
            await conn.run_sync(self._downgrade)

    def _upgrade(self, connection: Connection) -> None:
        inspector = sa.inspect(connection)
        if not inspector.has_table(self.table_name):
            logger.warning(f"⚠️ Table {self.table_name} not found. Skipping index creation.")
            return

        existing = {ix["name"]: ix for ix in inspector.get_indexes(self.table_name)}
        op = Operations(MigrationContext.configure(connection))

        for definition in self.indexes:
            current = existing.get(definition.name)
            if current is not None:
                if definition.matches(current):
                    logger.debug(f"Index {definition.name} on {self.table_name} already up to date")
                    continue
                logger.warning(f"🔧 Rebuilding index {definition.name} on {self.table_name}")
                op.drop_index(definition.name, table_name=self.table_name)
            op.create_index(
                definition.name,
                self.table_name,
                list(definition.columns),
                unique=definition.unique,
            )
            logger.info(f"✅ Ensured index {definition.name} on {self.table_name}")

    def _downgrade(self, connection: Connection) -> None:
        inspector = sa.inspect(connection)
        if not inspector.has_table(self.table_name):
            logger.warning(f"⚠️ Table {self.table_name} not found. Nothing to drop.")
            return

        existing = {ix["name"] for ix in inspector.get_indexes(self.table_name)}
        op = Operations(MigrationContext.configure(connection))
        for definition in self.indexes:
            if definition.name not in existing:
                logger.warning(f"Index {definition.name} not present on {self.table_name}, skipping.")
                continue
            op.drop_index(definition.name, table_name=self.table_name)
            logger.info(f"Dropped index {definition.name} from {self.table_name}")


class RenameTableMigration(ExtensionMigration):
    """
    Переносит данные из legacy-таблицы и затем делегирует шагу индексов.

    Переименование выполняется только если целевой таблицы еще нет.
    """

    def __init__(
        self,
        engine: AsyncEngine,
        version: str,
        legacy_table: str,
        table_name: str,
        then: Optional[ExtensionMigration] = None,
    ):
        self.engine = engine
        self.version = version
        self.legacy_table = legacy_table
        self.table_name = table_name
        self.then = then

    async def up(self) -> None:
        async with self.engine.begin() as conn:
            await conn.run_sync(self._rename_forward)
        if self.then is not None:
            await self.then.up()

    async def down(self) -> None:
        async with self.engine.begin() as conn:
            await conn.run_sync(self._rename_back)

    def _rename_forward(self, connection: Connection) -> None:
        inspector = sa.inspect(connection)
        if not inspector.has_table(self.legacy_table):
            logger.info(f"Table {self.legacy_table} not found. Ensuring indexes on {self.table_name}.")
            return
        if inspector.has_table(self.table_name):
            logger.warning(
                f"⚠️ Target table {self.table_name} already exists. "
                f"Skipping rename from {self.legacy_table}."
            )
            return
        Operations(MigrationContext.configure(connection)).rename_table(self.legacy_table, self.table_name)
        logger.info(f"✅ Renamed table {self.legacy_table} to {self.table_name}")

    def _rename_back(self, connection: Connection) -> None:
        inspector = sa.inspect(connection)
        if not inspector.has_table(self.table_name):
            logger.warning(f"⚠️ Table {self.table_name} does not exist. Nothing to rename back.")
            return
        if inspector.has_table(self.legacy_table):
            logger.warning(
                f"⚠️ Legacy table {self.legacy_table} already exists. "
                f"Skipping rename back from {self.table_name}."
            )
            return
        Operations(MigrationContext.configure(connection)).rename_table(self.table_name, self.legacy_table)
        logger.info(f"Renamed table {self.table_name} back to {self.legacy_table}")


__all__ = [
    "compare_versions",
    "select_migrations",
    "ExtensionMigration",
    "MigrationRunner",
    "IndexDefinition",
    "TableIndexMigration",
    "RenameTableMigration",
]
