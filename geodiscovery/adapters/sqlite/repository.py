"""
SQLite Catalog Repository - Listing storage with coordinate and attribute indexes.

Features:
- Async operations via aiosqlite
- Composite (status, latitude, longitude) index for box lookups
- Category/cuisine junction tables for indexed set-intersection filters
- Denormalized category/cuisine JSON on the listing row for cheap reads
"""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import Iterable
from pathlib import Path
from typing import Any

import aiosqlite

from geodiscovery.config import ErrorCode, StorageError
from geodiscovery.domains.search.models import (
    BoundingBox,
    GeoPoint,
    ListingStatus,
    SearchableEntity,
    SearchFilters,
)

logger = logging.getLogger(__name__)

__all__ = ["SQLiteCatalogRepository"]

SCHEMA = """
    -- Searchable listing projection
    CREATE TABLE IF NOT EXISTS establishments (
        id TEXT PRIMARY KEY,
        name TEXT NOT NULL,
        city TEXT NOT NULL DEFAULT '',
        address TEXT NOT NULL DEFAULT '',
        latitude REAL NOT NULL CHECK (latitude BETWEEN -90 AND 90),
        longitude REAL NOT NULL CHECK (longitude BETWEEN -180 AND 180),
        status TEXT NOT NULL DEFAULT 'draft',
        categories TEXT NOT NULL,
        cuisines TEXT NOT NULL,
        price_range TEXT,
        rating REAL,
        review_count INTEGER NOT NULL DEFAULT 0,
        promotion_weight INTEGER NOT NULL DEFAULT 0,
        primary_image_url TEXT,
        average_check_byn REAL,
        is_24_hours INTEGER NOT NULL DEFAULT 0,
        updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
    );

    CREATE TABLE IF NOT EXISTS establishment_categories (
        establishment_id TEXT NOT NULL REFERENCES establishments(id) ON DELETE CASCADE,
        category TEXT NOT NULL,
        PRIMARY KEY (establishment_id, category)
    );

    CREATE TABLE IF NOT EXISTS establishment_cuisines (
        establishment_id TEXT NOT NULL REFERENCES establishments(id) ON DELETE CASCADE,
        cuisine TEXT NOT NULL,
        PRIMARY KEY (establishment_id, cuisine)
    );

    -- Indexes
    CREATE INDEX IF NOT EXISTS idx_establishments_location
        ON establishments(status, latitude, longitude);
    CREATE INDEX IF NOT EXISTS idx_establishments_price ON establishments(price_range);
    CREATE INDEX IF NOT EXISTS idx_establishments_rating ON establishments(rating);
    CREATE INDEX IF NOT EXISTS idx_categories_value ON establishment_categories(category);
    CREATE INDEX IF NOT EXISTS idx_cuisines_value ON establishment_cuisines(cuisine);
"""


class SQLiteCatalogRepository:
    """
    SQLite-backed catalog store.

    Example:
        >>> repo = SQLiteCatalogRepository("data/geodiscovery.db")
        >>> await repo.initialize()
        >>> await repo.upsert_entity(entity)
        >>> rows = await repo.find_in_box(box, SearchFilters())
    """

    def __init__(self, db_path: str | Path) -> None:
        """
        Initialize repository.

        Args:
            db_path: Path to SQLite database file
        """
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._connection: aiosqlite.Connection | None = None

    async def _get_connection(self) -> aiosqlite.Connection:
        """Get or create database connection."""
        if self._connection is None:
            try:
                self._connection = await aiosqlite.connect(str(self.db_path))
            except (aiosqlite.Error, OSError) as e:
                raise StorageError(
                    f"Cannot open catalog database: {e}",
                    {"db_path": str(self.db_path)},
                    code=ErrorCode.CATALOG_UNAVAILABLE,
                ) from e
            self._connection.row_factory = aiosqlite.Row
            await self._connection.execute("PRAGMA foreign_keys = ON")
        return self._connection

    async def initialize(self) -> None:
        """Initialize database schema."""
        conn = await self._get_connection()
        await conn.executescript(SCHEMA)
        await conn.commit()
        logger.info("Catalog database initialized: %s", self.db_path)

    async def upsert_entity(self, entity: SearchableEntity) -> None:
        """Insert or replace one listing."""
        await self.upsert_many([entity])

    async def upsert_many(self, entities: Iterable[SearchableEntity]) -> int:
        """
        Insert or replace listings in one transaction.

        Returns:
            Number of listings written
        """
        conn = await self._get_connection()
        count = 0
        try:
            for entity in entities:
                await conn.execute(
                    """
                    INSERT OR REPLACE INTO establishments
                    (id, name, city, address, latitude, longitude, status, categories, cuisines,
                     price_range, rating, review_count, promotion_weight, primary_image_url,
                     average_check_byn, is_24_hours, updated_at)
                    VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, CURRENT_TIMESTAMP)
                    """,
                    _entity_params(entity),
                )
                await conn.execute(
                    "DELETE FROM establishment_categories WHERE establishment_id = ?", (entity.id,)
                )
                await conn.execute(
                    "DELETE FROM establishment_cuisines WHERE establishment_id = ?", (entity.id,)
                )
                await conn.executemany(
                    "INSERT INTO establishment_categories (establishment_id, category) VALUES (?, ?)",
                    [(entity.id, c.value) for c in entity.categories],
                )
                await conn.executemany(
                    "INSERT INTO establishment_cuisines (establishment_id, cuisine) VALUES (?, ?)",
                    [(entity.id, c.value) for c in entity.cuisines],
                )
                count += 1
            await conn.commit()
        except aiosqlite.Error as e:
            await conn.rollback()
            raise StorageError(
                f"Failed to write listings: {e}", code=ErrorCode.STORAGE_WRITE_FAILED
            ) from e

        logger.debug("Upserted %d listings", count)
        return count

    async def get_entity(self, entity_id: str) -> SearchableEntity | None:
        """Get listing by ID, regardless of status."""
        rows = await self._fetch("SELECT * FROM establishments WHERE id = ?", (entity_id,))
        return _row_to_entity(rows[0]) if rows else None

    async def find_in_box(
        self,
        box: BoundingBox,
        filters: SearchFilters,
    ) -> list[SearchableEntity]:
        """
        Visible listings inside box matching filters.

        Args:
            box: Latitude/longitude rectangle (inclusive)
            filters: Category, cuisine, price and rating filters

        Returns:
            Matching listings in identifier order
        """
        clauses = [
            "e.status = ?",
            "e.latitude BETWEEN ? AND ?",
            "e.longitude BETWEEN ? AND ?",
        ]
        params: list[Any] = [
            ListingStatus.ACTIVE.value,
            box.min_lat,
            box.max_lat,
            box.min_lon,
            box.max_lon,
        ]

        if filters.categories:
            marks = ", ".join("?" for _ in filters.categories)
            clauses.append(
                "e.id IN (SELECT establishment_id FROM establishment_categories "
                f"WHERE category IN ({marks}))"
            )
            params.extend(sorted(c.value for c in filters.categories))
        if filters.cuisines:
            marks = ", ".join("?" for _ in filters.cuisines)
            clauses.append(
                "e.id IN (SELECT establishment_id FROM establishment_cuisines "
                f"WHERE cuisine IN ({marks}))"
            )
            params.extend(sorted(c.value for c in filters.cuisines))
        if filters.price_range is not None:
            clauses.append("e.price_range = ?")
            params.append(filters.price_range.value)
        if filters.min_rating is not None:
            clauses.append("e.rating IS NOT NULL AND e.rating >= ?")
            params.append(filters.min_rating)

        sql = f"SELECT e.* FROM establishments e WHERE {' AND '.join(clauses)} ORDER BY e.id"
        rows = await self._fetch(sql, tuple(params))
        return [_row_to_entity(row) for row in rows]

    async def count_visible(self) -> int:
        """Get publicly visible listing count."""
        rows = await self._fetch(
            "SELECT COUNT(*) FROM establishments WHERE status = ?",
            (ListingStatus.ACTIVE.value,),
        )
        return rows[0][0] if rows else 0

    async def ping(self) -> bool:
        """Return True when the database answers a trivial query."""
        rows = await self._fetch("SELECT 1", ())
        return bool(rows) and rows[0][0] == 1

    async def close(self) -> None:
        """Close database connection."""
        if self._connection:
            await self._connection.close()
            self._connection = None

    async def _fetch(self, sql: str, params: tuple[Any, ...]) -> list[aiosqlite.Row]:
        conn = await self._get_connection()
        try:
            cursor = await conn.execute(sql, params)
            return list(await cursor.fetchall())
        except asyncio.CancelledError:
            # The statement keeps running on the connection thread until interrupted
            await conn.interrupt()
            raise
        except aiosqlite.Error as e:
            raise StorageError(f"Catalog read failed: {e}") from e


def _entity_params(entity: SearchableEntity) -> tuple[Any, ...]:
    return (
        entity.id,
        entity.name,
        entity.city,
        entity.address,
        entity.location.latitude,
        entity.location.longitude,
        entity.status.value,
        json.dumps(sorted(c.value for c in entity.categories), ensure_ascii=False),
        json.dumps(sorted(c.value for c in entity.cuisines), ensure_ascii=False),
        entity.price_range.value if entity.price_range else None,
        entity.rating,
        entity.review_count,
        entity.promotion_weight,
        entity.primary_image_url,
        entity.average_check_byn,
        int(entity.is_24_hours),
    )


def _row_to_entity(row: aiosqlite.Row) -> SearchableEntity:
    return SearchableEntity(
        id=row["id"],
        name=row["name"],
        city=row["city"],
        address=row["address"],
        location=GeoPoint(latitude=row["latitude"], longitude=row["longitude"]),
        status=row["status"],
        categories=json.loads(row["categories"]),
        cuisines=json.loads(row["cuisines"]),
        price_range=row["price_range"],
        rating=row["rating"],
        review_count=row["review_count"],
        promotion_weight=row["promotion_weight"],
        primary_image_url=row["primary_image_url"],
        average_check_byn=row["average_check_byn"],
        is_24_hours=bool(row["is_24_hours"]),
    )
