import csv

from sqlalchemy import func, select

from city_guesser.database.models import City
from city_guesser.database.seed import load_cities_from_csv, parse_city_row

from .conftest import CITY_ROWS


def test_parse_city_row():
    city = parse_city_row({
        "city": " Lyon ", "city_ascii": "", "lat": "45.764", "lng": "4.8357", "country": "France",
        "iso2": "fr", "iso3": "fra", "population": "", "population_proper": "513275.0",
        "same_name": "false", "id": "1250196189",
    })

    assert city.city == "Lyon"
    assert city.city_ascii == "Lyon"
    assert city.lat == 45.764
    assert city.iso2 == "FR"
    assert city.population is None
    assert city.population_proper == 513275
    assert city.same_name is False
    assert city.source_id == "1250196189"


def test_parse_city_row_requires_core_fields():
    assert parse_city_row({"city": "Nowhere", "lat": "1.0", "lng": "", "country": "X"}) is None
    assert parse_city_row({"city": "", "lat": "1.0", "lng": "2.0", "country": "X"}) is None


def write_csv(path, rows):
    fieldnames = list(CITY_ROWS[0].keys())
    with path.open("w", encoding="utf-8", newline="") as handle:
        writer = csv.DictWriter(handle, fieldnames=fieldnames)
        writer.writeheader()
        writer.writerows(rows)


async def test_load_cities_from_csv(db_session, tmp_path):
    csv_path = tmp_path / "cities.csv"
    bad_row = dict(CITY_ROWS[0], lat="")
    unparsable_row = dict(CITY_ROWS[1], lng="east")
    write_csv(csv_path, CITY_ROWS + [bad_row, unparsable_row])

    imported = await load_cities_from_csv(db_session, str(csv_path))

    assert imported == len(CITY_ROWS)
    assert await db_session.scalar(select(func.count()).select_from(City)) == len(CITY_ROWS)


async def test_load_skips_populated_table(seeded_db, tmp_path):
    csv_path = tmp_path / "cities.csv"
    write_csv(csv_path, CITY_ROWS)

    assert await load_cities_from_csv(seeded_db, str(csv_path)) == 0
    assert await seeded_db.scalar(select(func.count()).select_from(City)) == len(CITY_ROWS)


async def test_load_missing_file(db_session, tmp_path):
    assert await load_cities_from_csv(db_session, str(tmp_path / "missing.csv")) == 0
