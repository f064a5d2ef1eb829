"""
DuckDB-backed review/property store for the analytics backend.

Tables
- properties(id, name, city, country, image_url)
- reviews(one row per review; category scores flattened into columns)

Timestamps are stored as naive UTC TIMESTAMP values.
"""

from __future__ import annotations
import logging
import threading
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, FrozenSet, Iterable, List, Optional, Sequence, Tuple

import duckdb

from analytics.errors import StoreUnavailableError
from analytics.types import CATEGORY_KEYS, AnalyticsFilter, Property, Review, as_utc

logger = logging.getLogger("review_analytics.store")

SCHEMA_LOCK = threading.Lock()

PROPERTY_COLUMNS = ("id", "name", "city", "country", "image_url")
CATEGORY_COLUMNS = tuple(f"score_{key}" for key in CATEGORY_KEYS)
REVIEW_COLUMNS = (
    "source",
    "source_review_id",
    "property_id",
    "channel",
    "rating",
    "review_date",
    "stay_date",
    "stay_nights",
    "checkout_date",
    "approved_for_public",
    "title",
    "body",
    "author_name",
    *CATEGORY_COLUMNS,
)

_SCHEMA_SQL = (
    """
    CREATE TABLE IF NOT EXISTS properties (
        id VARCHAR PRIMARY KEY,
        name VARCHAR NOT NULL,
        city VARCHAR,
        country VARCHAR,
        image_url VARCHAR
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS reviews (
        source VARCHAR NOT NULL,
        source_review_id VARCHAR NOT NULL,
        property_id VARCHAR NOT NULL,
        channel VARCHAR NOT NULL,
        rating INTEGER NOT NULL CHECK (rating BETWEEN 1 AND 5),
        review_date TIMESTAMP NOT NULL,
        stay_date TIMESTAMP,
        stay_nights INTEGER,
        checkout_date TIMESTAMP,
        approved_for_public BOOLEAN NOT NULL DEFAULT FALSE,
        title VARCHAR,
        body VARCHAR,
        author_name VARCHAR,
        score_cleanliness INTEGER CHECK (score_cleanliness BETWEEN 1 AND 5),
        score_communication INTEGER CHECK (score_communication BETWEEN 1 AND 5),
        score_location INTEGER CHECK (score_location BETWEEN 1 AND 5),
        score_checkin INTEGER CHECK (score_checkin BETWEEN 1 AND 5),
        score_accuracy INTEGER CHECK (score_accuracy BETWEEN 1 AND 5),
        score_value INTEGER CHECK (score_value BETWEEN 1 AND 5),
        PRIMARY KEY (source, source_review_id)
    )
    """,
)


def ensure_schema(conn: duckdb.DuckDBPyConnection) -> None:
    """Create review/property tables when missing."""
    with SCHEMA_LOCK:
        for statement in _SCHEMA_SQL:
            conn.execute(statement)


def _naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    if value is None:
        return None
    return as_utc(value).replace(tzinfo=None)


def insert_properties(conn: duckdb.DuckDBPyConnection, properties: Iterable[Property]) -> int:
    rows = [(p.id, p.name, p.city, p.country, p.image_url) for p in properties]
    if rows:
        conn.executemany(
            f"INSERT OR REPLACE INTO properties ({', '.join(PROPERTY_COLUMNS)}) VALUES (?, ?, ?, ?, ?)",
            rows,
        )
    return len(rows)


def insert_reviews(conn: duckdb.DuckDBPyConnection, reviews: Iterable[Review]) -> int:
    rows: List[Tuple[Any, ...]] = []
    for review in reviews:
        categories = review.categories or {}
        rows.append(
            (
                review.source,
                review.source_review_id,
                review.property_id,
                review.channel,
                review.rating,
                _naive_utc(review.review_date),
                _naive_utc(review.stay_date),
                review.stay_nights,
                _naive_utc(review.checkout_date),
                review.approved_for_public,
                review.title,
                review.text,
                review.author_name,
                *(categories.get(key) for key in CATEGORY_KEYS),
            )
        )
    if rows:
        placeholders = ", ".join("?" for _ in REVIEW_COLUMNS)
        conn.executemany(
            f"INSERT OR REPLACE INTO reviews ({', '.join(REVIEW_COLUMNS)}) VALUES ({placeholders})",
            rows,
        )
    return len(rows)


def _row_to_review(row: Sequence[Any]) -> Review:
    record = dict(zip(REVIEW_COLUMNS, row))
    categories = {
        key: int(record[column])
        for key, column in zip(CATEGORY_KEYS, CATEGORY_COLUMNS)
        if record.get(column) is not None
    }
    return Review(
        source=record["source"],
        source_review_id=str(record["source_review_id"]),
        property_id=str(record["property_id"]),
        channel=record["channel"],
        rating=int(record["rating"]),
        review_date=as_utc(record["review_date"]),
        categories=categories,
        stay_date=as_utc(record["stay_date"]),
        stay_nights=record["stay_nights"],
        checkout_date=as_utc(record["checkout_date"]),
        approved_for_public=bool(record["approved_for_public"]),
        title=record["title"],
        text=record["body"] or "",
        author_name=record["author_name"],
    )


class DuckDBReviewStore:
    """ReviewStore over a DuckDB file (or an injected connection for tests)."""

    def __init__(
        self,
        db_path: Path | str | None = None,
        *,
        connection: Optional[duckdb.DuckDBPyConnection] = None,
        read_only: bool = True,
    ) -> None:
        if db_path is None and connection is None:
            raise ValueError("DuckDBReviewStore needs a db_path or a connection.")
        self.db_path = Path(db_path) if db_path is not None else None
        self.read_only = read_only
        self._connection = connection

    def _query(self, sql: str, params: Sequence[Any] | None = None) -> List[Tuple[Any, ...]]:
        try:
            if self._connection is not None:
                with self._connection.cursor() as cur:
                    return cur.execute(sql, list(params or [])).fetchall()
            with duckdb.connect(str(self.db_path), read_only=self.read_only) as con:
                return con.execute(sql, list(params or [])).fetchall()
        except duckdb.Error as exc:
            logger.error("[STORE] Query failed: %s", exc)
            raise StoreUnavailableError(f"Review store query failed: {exc}") from exc

    def resolve_properties_by_location(self, substring: str) -> FrozenSet[str]:
        needle = (substring or "").strip().lower()
        if not needle:
            return frozenset()
        rows = self._query(
            """
            SELECT id FROM properties
            WHERE contains(lower(coalesce(name, '')), ?)
               OR contains(lower(coalesce(city, '')), ?)
               OR contains(lower(coalesce(country, '')), ?)
            """,
            [needle, needle, needle],
        )
        return frozenset(str(row[0]) for row in rows)

    def fetch_reviews(self, filters: AnalyticsFilter) -> List[Review]:
        where_parts = ["approved_for_public = TRUE"]
        params: List[Any] = []
        if filters.date_from is not None:
            where_parts.append("review_date >= ?")
            params.append(_naive_utc(filters.date_from))
        if filters.date_to is not None:
            where_parts.append("review_date <= ?")
            params.append(_naive_utc(filters.date_to))
        if filters.property_ids is not None:
            if not filters.property_ids:
                return []
            ids = sorted(filters.property_ids)
            where_parts.append(f"property_id IN ({', '.join('?' for _ in ids)})")
            params.extend(ids)

        sql = f"SELECT {', '.join(REVIEW_COLUMNS)} FROM reviews WHERE " + " AND ".join(where_parts)
        return [_row_to_review(row) for row in self._query(sql, params)]

    def fetch_properties_by_ids(self, ids: Iterable[str]) -> List[Property]:
        id_list = sorted({str(i) for i in ids})
        if not id_list:
            return []
        rows = self._query(
            f"SELECT {', '.join(PROPERTY_COLUMNS)} FROM properties WHERE id IN ({', '.join('?' for _ in id_list)})",
            id_list,
        )
        properties: List[Property] = []
        for row in rows:
            record: Dict[str, Any] = dict(zip(PROPERTY_COLUMNS, row))
            properties.append(
                Property(
                    id=str(record["id"]),
                    name=record["name"],
                    city=record["city"],
                    country=record["country"],
                    image_url=record["image_url"],
                )
            )
        return properties


__all__ = [
    "DuckDBReviewStore",
    "ensure_schema",
    "insert_properties",
    "insert_reviews",
]
