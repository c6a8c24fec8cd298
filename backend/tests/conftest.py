import asyncio
import os
import random

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool, StaticPool

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///./test_city_guesser.db")

from city_guesser.database.seed import import_cities
from city_guesser.database.session import Base, get_db
from city_guesser.main import app
from city_guesser.models.location import Location
from city_guesser.services.game import GameEngine
from city_guesser.services.locations import InMemoryLocationStore


# Rows shaped like the simplemaps CSV read through csv.DictReader
CITY_ROWS = [
    {"city": "London", "city_ascii": "London", "lat": "51.5074", "lng": "-0.1278", "country": "United Kingdom",
     "iso2": "GB", "iso3": "GBR", "population": "9000000", "population_proper": "8900000", "id": "1826645935"},
    {"city": "Paris", "city_ascii": "Paris", "lat": "48.8566", "lng": "2.3522", "country": "France",
     "iso2": "FR", "iso3": "FRA", "population": "2100000", "population_proper": "2100000", "id": "1250015082"},
    {"city": "Berlin", "city_ascii": "Berlin", "lat": "52.52", "lng": "13.405", "country": "Germany",
     "iso2": "DE", "iso3": "DEU", "population": "3600000", "population_proper": "3600000", "id": "1276451290"},
    {"city": "Madrid", "city_ascii": "Madrid", "lat": "40.4168", "lng": "-3.7038", "country": "Spain",
     "iso2": "ES", "iso3": "ESP", "population": "3200000", "population_proper": "3200000", "id": "1724616994"},
    {"city": "Rome", "city_ascii": "Rome", "lat": "41.9028", "lng": "12.4964", "country": "Italy",
     "iso2": "IT", "iso3": "ITA", "population": "2800000", "population_proper": "2800000", "id": "1380382862"},
    {"city": "Lyon", "city_ascii": "Lyon", "lat": "45.764", "lng": "4.8357", "country": "France",
     "iso2": "FR", "iso3": "FRA", "population": "", "population_proper": "513275", "id": "1250196189"},
    {"city": "Manchester", "city_ascii": "Manchester", "lat": "53.4808", "lng": "-2.2426", "country": "United Kingdom",
     "iso2": "GB", "iso3": "GBR", "population": "550000", "population_proper": "550000", "id": "1826246541"},
    {"city": "Paris", "city_ascii": "Paris", "lat": "33.6609", "lng": "-95.5555", "country": "United States",
     "iso2": "US", "iso3": "USA", "population": "25000", "population_proper": "25000", "id": "1840020604"},
    {"city": "Zürich", "city_ascii": "Zurich", "lat": "47.3769", "lng": "8.5417", "country": "Switzerland",
     "iso2": "CH", "iso3": "CHE", "population": "420000", "population_proper": "420000", "id": "1756539143"},
    {"city": "Hallstatt", "city_ascii": "Hallstatt", "lat": "47.5622", "lng": "13.6493", "country": "Austria",
     "iso2": "AT", "iso3": "AUT", "population": "800", "population_proper": "800", "id": "1040000001"},
]


def _location(index: int, row: dict) -> Location:
    return Location(
        id=index,
        name=row["city"],
        ascii_name=row["city_ascii"],
        country=row["country"],
        country_code=row["iso2"],
        latitude=float(row["lat"]),
        longitude=float(row["lng"]),
        population=int(row["population"]) if row["population"] else None,
    )


@pytest.fixture
def locations():
    """Catalog as Location objects, ids matching insertion order in the database."""
    return [_location(i, row) for i, row in enumerate(CITY_ROWS, 1)]


@pytest.fixture
def store(locations):
    return InMemoryLocationStore(locations, rng=random.Random(42))


@pytest.fixture
def engine(store):
    return GameEngine(store, rng=random.Random(7))


@pytest.fixture
async def db_session():
    """Fresh in-memory database for each test."""
    db_engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with db_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    session_factory = async_sessionmaker(db_engine, expire_on_commit=False)
    async with session_factory() as session:
        yield session

    await db_engine.dispose()


@pytest.fixture
async def seeded_db(db_session):
    """Database session with the sample cities loaded."""
    await import_cities(db_session, CITY_ROWS)
    return db_session


async def _prepare_database(url: str):
    db_engine = create_async_engine(url, poolclass=NullPool)
    async with db_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    async with async_sessionmaker(db_engine, expire_on_commit=False)() as db:
        await import_cities(db, CITY_ROWS)
    return db_engine


@pytest.fixture
def client(tmp_path):
    """Test client backed by a seeded file database."""
    db_engine = asyncio.run(_prepare_database(f"sqlite+aiosqlite:///{tmp_path / 'api.db'}"))
    session_factory = async_sessionmaker(db_engine, expire_on_commit=False)

    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()
    asyncio.run(db_engine.dispose())
