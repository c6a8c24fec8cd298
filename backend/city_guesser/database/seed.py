"""Load the city catalog from a simplemaps-style CSV file."""

import csv
import logging
from pathlib import Path
from typing import Any, Dict, Iterable, Optional

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from .models import City

logger = logging.getLogger(__name__)

BATCH_SIZE = 1000
REQUIRED_FIELDS = ("city", "lat", "lng", "country")


def _float(value: Optional[str]) -> Optional[float]:
    return float(value) if value else None


def _int(value: Optional[str]) -> Optional[int]:
    # Population columns sometimes carry a trailing ".0"
    return int(float(value)) if value else None


def parse_city_row(record: Dict[str, Any]) -> Optional[City]:
    """Build a City from a CSV record, or None if required fields are missing."""
    record = {k: (v.strip() if isinstance(v, str) else v) for k, v in record.items() if k}
    if not all(record.get(field) for field in REQUIRED_FIELDS):
        return None

    return City(
        city=record["city"],
        city_ascii=record.get("city_ascii") or record["city"],
        city_alt=record.get("city_alt") or None,
        lat=float(record["lat"]),
        lng=float(record["lng"]),
        country=record["country"],
        iso2=(record.get("iso2") or "").upper(),
        iso3=(record.get("iso3") or "").upper(),
        admin_name=record.get("admin_name") or None,
        capital=record.get("capital") or None,
        density=_float(record.get("density")),
        population=_int(record.get("population")),
        population_proper=_int(record.get("population_proper")),
        ranking=_int(record.get("ranking")),
        timezone=record.get("timezone") or None,
        same_name=record.get("same_name") in ("true", "TRUE", "1"),
        source_id=record.get("id") or None,
    )


async def import_cities(db: AsyncSession, records: Iterable[Dict[str, Any]]) -> int:
    """Insert parsed records in one transaction. Returns the number imported."""
    count = 0
    try:
        for index, record in enumerate(records):
            try:
                city = parse_city_row(record)
            except ValueError:
                city = None
            if city is None:
                logger.warning("Skipping record at index %d: missing or invalid required fields", index)
                continue

            db.add(city)
            count += 1
            if count % BATCH_SIZE == 0:
                await db.flush()
                logger.info("Imported %d cities...", count)

        await db.commit()
    except SQLAlchemyError:
        await db.rollback()
        logger.exception("Error importing city data")
        raise

    logger.info("City import completed. Imported %d cities.", count)
    return count


async def load_cities_from_csv(db: AsyncSession, csv_path: str) -> int:
    """Import the CSV unless the cities table already has data."""
    existing = await db.scalar(select(func.count()).select_from(City))
    if existing:
        logger.info("Cities table already has %d rows, skipping import.", existing)
        return 0

    path = Path(csv_path)
    if not path.exists():
        logger.warning("City CSV %s not found, skipping import.", path)
        return 0

    logger.info("Starting CSV import from %s", path)
    with path.open(encoding="utf-8", newline="") as handle:
        return await import_cities(db, csv.DictReader(handle))
