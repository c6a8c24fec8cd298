"""Location store implementations and the round selector."""

import logging
import random
from typing import Iterable, List, Optional, Protocol, Sequence

from sqlalchemy import func, or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from ..database.models import City
from ..exceptions import NoEligibleLocation, StoreUnavailable
from ..models.location import CountryResponse, Location, LocationFilter

logger = logging.getLogger(__name__)


class LocationStore(Protocol):
    """Read-only access to the city catalog."""

    async def find_random(self, location_filter: LocationFilter) -> Optional[Location]:
        ...

    async def find_by_id(self, location_id: int) -> Optional[Location]:
        ...

    async def find_by_name(self, name: str) -> Optional[Location]:
        ...

    async def sample(self, count: int, exclude: Iterable[int] = ()) -> List[Location]:
        ...


def city_to_location(city: City) -> Location:
    return Location(
        id=city.id,
        name=city.city,
        ascii_name=city.city_ascii,
        country=city.country,
        country_code=city.iso2,
        latitude=city.lat,
        longitude=city.lng,
        population=city.population,
    )


class SqlLocationStore:
    """Location store backed by the ``cities`` table."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def _first(self, query) -> Optional[Location]:
        try:
            result = await self.db.execute(query)
        except SQLAlchemyError as e:
            logger.exception("City lookup failed")
            raise StoreUnavailable(f"Cannot read cities: {e}") from e
        city = result.scalars().first()
        return city_to_location(city) if city else None

    async def find_random(self, location_filter: LocationFilter) -> Optional[Location]:
        """Pick one city uniformly at random among those matching the filter."""
        query = select(City)

        if location_filter.min_population:
            query = query.where(or_(
                City.population >= location_filter.min_population,
                City.population_proper >= location_filter.min_population,
            ))
        if location_filter.countries:
            query = query.where(City.iso2.in_(sorted(location_filter.countries)))
        if location_filter.exclude:
            query = query.where(City.id.not_in(sorted(location_filter.exclude)))

        return await self._first(query.order_by(func.random()).limit(1))

    async def find_by_id(self, location_id: int) -> Optional[Location]:
        return await self._first(select(City).where(City.id == location_id))

    async def find_by_name(self, name: str) -> Optional[Location]:
        """Case-insensitive exact match on the city name or its ASCII spelling.

        Several cities can share a name; the most populous one wins.
        """
        needle = name.strip().lower()
        query = (
            select(City)
            .where(or_(func.lower(City.city) == needle, func.lower(City.city_ascii) == needle))
            .order_by(City.population.desc().nulls_last(), City.id)
            .limit(1)
        )
        return await self._first(query)

    async def sample(self, count: int, exclude: Iterable[int] = ()) -> List[Location]:
        query = select(City)
        exclude = sorted(exclude)
        if exclude:
            query = query.where(City.id.not_in(exclude))
        try:
            result = await self.db.execute(query.order_by(func.random()).limit(count))
        except SQLAlchemyError as e:
            logger.exception("City sampling failed")
            raise StoreUnavailable(f"Cannot read cities: {e}") from e
        return [city_to_location(city) for city in result.scalars().all()]

    async def list_countries(self) -> List[CountryResponse]:
        try:
            result = await self.db.execute(
                select(City.iso2, City.country).distinct().order_by(City.country)
            )
        except SQLAlchemyError as e:
            logger.exception("Country listing failed")
            raise StoreUnavailable(f"Cannot read countries: {e}") from e
        return [CountryResponse(code=code, name=name) for code, name in result.all()]


class InMemoryLocationStore:
    """Location store over a fixed list, for tests and non-SQL callers."""

    def __init__(self, locations: Sequence[Location], rng: Optional[random.Random] = None):
        self.locations = list(locations)
        self.rng = rng or random.Random()

    async def find_random(self, location_filter: LocationFilter) -> Optional[Location]:
        candidates = [loc for loc in self.locations if location_filter.matches(loc)]
        if not candidates:
            return None
        return self.rng.choice(candidates)

    async def find_by_id(self, location_id: int) -> Optional[Location]:
        for loc in self.locations:
            if loc.id == location_id:
                return loc
        return None

    async def find_by_name(self, name: str) -> Optional[Location]:
        """Same matching as the SQL store: name or ASCII name, most populous wins."""
        needle = name.strip().lower()
        matches = [
            loc for loc in self.locations
            if loc.name.lower() == needle or (loc.ascii_name or "").lower() == needle
        ]
        if not matches:
            return None
        return max(matches, key=lambda loc: loc.population or -1)

    async def sample(self, count: int, exclude: Iterable[int] = ()) -> List[Location]:
        excluded = set(exclude)
        candidates = [loc for loc in self.locations if loc.id not in excluded]
        return self.rng.sample(candidates, min(count, len(candidates)))


async def select_location(store: LocationStore, location_filter: LocationFilter) -> Location:
    """
    Obtain one eligible location for a round.

    Raises:
        NoEligibleLocation: when no candidate satisfies every constraint
    """
    location = await store.find_random(location_filter)
    if location is None:
        logger.warning(
            "No city matches filter (countries=%s, min_population=%s, excluded=%d)",
            sorted(location_filter.countries),
            location_filter.min_population,
            len(location_filter.exclude),
        )
        raise NoEligibleLocation("No cities found matching criteria")

    logger.debug("Selected city %s (%s)", location.id, location.name)
    return location
