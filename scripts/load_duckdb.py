#!/usr/bin/env python3
"""
Load properties and guest reviews into DuckDB.

- Creates the properties/reviews tables when missing
- Upserts properties from a JSON array (id, name, city, country, imageUrl)
- Upserts reviews from a JSON array or JSON-lines file (camelCase keys,
  category scores under "categories")

Usage: python scripts/load_duckdb.py --properties data/properties.json --reviews data/reviews.jsonl
"""
from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any, Dict, Iterator, List

import duckdb

# Ensure project root is on sys.path when executed as a script.
PROJECT_ROOT = Path(__file__).resolve().parent.parent
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from analytics.config import load_config
from analytics.filters import parse_date
from analytics.types import CHANNELS, Property, Review
from backend.store import ensure_schema, insert_properties, insert_reviews


logging.basicConfig(level=logging.INFO, format="%(levelname)s: %(message)s")


def require_file(path: Path) -> Path:
    if not path.is_file():
        raise FileNotFoundError(f"Expected input file: {path}")
    return path


def read_records(path: Path) -> Iterator[Dict[str, Any]]:
    """Yield dicts from a JSON array file or a JSON-lines file."""
    text = require_file(path).read_text(encoding="utf-8")
    if path.suffix == ".jsonl":
        for line in text.splitlines():
            if line.strip():
                yield json.loads(line)
        return
    data = json.loads(text)
    if isinstance(data, dict):
        data = [data]
    yield from data


def to_property(record: Dict[str, Any]) -> Property:
    return Property(
        id=str(record["id"]),
        name=record.get("name") or str(record["id"]),
        city=record.get("city"),
        country=record.get("country"),
        image_url=record.get("imageUrl"),
    )


def to_review(record: Dict[str, Any]) -> Review:
    review_date = parse_date(record.get("reviewDate"))
    if review_date is None:
        raise ValueError(f"Review {record.get('sourceReviewId')!r} has no valid reviewDate")
    channel = str(record.get("channel") or "").lower()
    if channel not in CHANNELS:
        raise ValueError(f"Review {record.get('sourceReviewId')!r} has unknown channel {channel!r}")
    categories = {
        str(key).lower(): int(value)
        for key, value in (record.get("categories") or {}).items()
        if value is not None
    }
    return Review(
        source=record.get("source") or channel,
        source_review_id=str(record["sourceReviewId"]),
        property_id=str(record["propertyId"]),
        channel=channel,
        rating=int(record["rating"]),
        review_date=review_date,
        categories=categories,
        stay_date=parse_date(record.get("stayDate")),
        stay_nights=record.get("stayNights"),
        checkout_date=parse_date(record.get("checkoutDate")),
        approved_for_public=bool(record.get("approvedForPublic", False)),
        title=record.get("title"),
        text=record.get("text") or "",
        author_name=record.get("authorName"),
    )


def main() -> None:
    parser = argparse.ArgumentParser(description="Load properties and reviews into DuckDB.")
    parser.add_argument("--properties", type=Path, required=True, help="JSON file with property records")
    parser.add_argument("--reviews", type=Path, required=True, help="JSON or JSONL file with review records")
    parser.add_argument("--db", type=Path, default=None, help="DuckDB file (defaults to configured path)")
    args = parser.parse_args()

    db_path = args.db or load_config().duckdb_path
    db_path.parent.mkdir(parents=True, exist_ok=True)

    properties: List[Property] = [to_property(record) for record in read_records(args.properties)]
    reviews: List[Review] = [to_review(record) for record in read_records(args.reviews)]

    logging.info("Connecting to DuckDB: %s", db_path)
    con = duckdb.connect(str(db_path))
    try:
        ensure_schema(con)
        logging.info("Upserted %d properties from %s", insert_properties(con, properties), args.properties.name)
        logging.info("Upserted %d reviews from %s", insert_reviews(con, reviews), args.reviews.name)

        approved = con.execute("SELECT COUNT(*) FROM reviews WHERE approved_for_public").fetchone()[0]
        logging.info("Approved reviews now in store: %d", approved)
    finally:
        con.close()
    logging.info("✅ DuckDB ready at %s", db_path)


if __name__ == "__main__":
    main()
