import logging
from datetime import datetime
from typing import List

from sqlmodel import SQLModel, select
from sqlmodel.ext.asyncio.session import AsyncSession
from sqlalchemy.dialects import mysql, postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.exc import SQLAlchemyError

from ..core.errors import StorageFailure
from ..models.rating import Rating, RatingRecord, as_utc

logger = logging.getLogger(__name__)

connect_args = {}


def init_db(settings) -> AsyncEngine:
    return create_async_engine(
        settings.DATABASE_URL,
        echo=settings.SQL_ECHO,
        future=True,
        connect_args=connect_args,
    )


def get_session_maker(engine: AsyncEngine):
    return sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


async def create_tables(engine: AsyncEngine):
    try:
        async with engine.begin() as conn:
            await conn.run_sync(SQLModel.metadata.create_all)
    except SQLAlchemyError as e:
        logger.error("Could not create tables: %s", e)
        raise StorageFailure(str(e)) from e


async def recreate_table(engine: AsyncEngine):
    try:
        async with engine.begin() as conn:
            await conn.run_sync(SQLModel.metadata.drop_all)
            await conn.run_sync(SQLModel.metadata.create_all)
    except SQLAlchemyError as e:
        logger.error("Database error occurred: %s", e)
        raise StorageFailure(str(e)) from e


def to_record(row: Rating) -> RatingRecord:
    return RatingRecord(
        resource_id=row.resource_id,
        rater_id=row.rater_id,
        value=row.value,
        created_at=as_utc(row.created_at),
        updated_at=as_utc(row.updated_at),
    )


class SqlRatingStore:
    """Ratings in a relational table keyed by (resource_id, rater_id)."""

    def __init__(self, engine: AsyncEngine):
        self.engine = engine
        self.dialect_name = engine.dialect.name
        self.session_maker = get_session_maker(engine)

    @classmethod
    def from_settings(cls, settings) -> "SqlRatingStore":
        return cls(init_db(settings))

    async def init(self):
        await create_tables(self.engine)
        logger.info("SQL rating store ready (%s)", self.engine.dialect.name)

    async def upsert(self, resource_id: int, rater_id: str, value: int, now: datetime):
        try:
            async with self.session_maker() as session:
                await self._write(session, resource_id, rater_id, value, now)
                await session.commit()
        except SQLAlchemyError as e:
            raise StorageFailure(str(e)) from e

    async def _write(self, session: AsyncSession, resource_id, rater_id, value, now):
        values = {
            "resource_id": resource_id,
            "rater_id": rater_id,
            "value": value,
            "created_at": now,
            "updated_at": now,
        }
        dialect = self.dialect_name
        table = Rating.__table__

        if dialect in ("sqlite", "postgresql"):
            insert = sqlite.insert if dialect == "sqlite" else postgresql.insert
            stmt = insert(table).values(**values)
            stmt = stmt.on_conflict_do_update(
                index_elements=["resource_id", "rater_id"],
                set_={"value": stmt.excluded["value"], "updated_at": stmt.excluded["updated_at"]},
            )
        elif dialect in ("mysql", "mariadb"):
            stmt = mysql.insert(table).values(**values)
            stmt = stmt.on_duplicate_key_update(
                value=stmt.inserted["value"], updated_at=stmt.inserted["updated_at"]
            )
        else:
            existing = await session.get(Rating, (resource_id, rater_id))
            if existing:
                existing.value = value
                existing.updated_at = now
            else:
                session.add(Rating(**values))
            return

        await session.exec(stmt)

    async def list_for_resource(self, resource_id: int) -> List[RatingRecord]:
        return await self._select(select(Rating).where(Rating.resource_id == resource_id))

    async def list_all(self) -> List[RatingRecord]:
        return await self._select(select(Rating))

    async def _select(self, query) -> List[RatingRecord]:
        try:
            async with self.session_maker() as session:
                result = await session.exec(query)
                rows = result.all()
        except SQLAlchemyError as e:
            raise StorageFailure(str(e)) from e
        return [to_record(row) for row in rows]

    async def close(self):
        await self.engine.dispose()
        logger.info("SQL rating store closed")
