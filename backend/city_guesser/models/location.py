from pydantic import BaseModel, Field, field_validator
from typing import FrozenSet, Iterable, Optional


class Location(BaseModel):
    """A city from the catalog. Immutable once loaded."""
    id: int
    name: str
    ascii_name: Optional[str] = None
    country: str
    country_code: str = ""
    latitude: float = Field(ge=-90, le=90)
    longitude: float = Field(ge=-180, le=180)
    population: Optional[int] = Field(default=None, ge=0)

    class Config:
        frozen = True


class LocationFilter(BaseModel):
    """Constraints narrowing which locations may be picked as a target.

    An empty ``countries`` set and a missing or zero ``min_population``
    mean unrestricted.
    """
    countries: FrozenSet[str] = frozenset()
    min_population: Optional[int] = Field(default=None, ge=0)
    exclude: FrozenSet[int] = frozenset()

    class Config:
        frozen = True

    @field_validator("countries", mode="before")
    @classmethod
    def normalize_countries(cls, value):
        if value is None:
            return frozenset()
        return frozenset(code.strip().upper() for code in value if code and code.strip())

    def excluding(self, ids: Iterable[int]) -> "LocationFilter":
        """Return a copy that also excludes the given location ids."""
        return self.model_copy(update={"exclude": self.exclude | frozenset(ids)})

    def matches(self, location: Location) -> bool:
        if location.id in self.exclude:
            return False
        if self.countries and location.country_code.upper() not in self.countries:
            return False
        if self.min_population:
            return location.population is not None and location.population >= self.min_population
        return True


class CityResponse(BaseModel):
    """Public city details."""
    id: int
    name: str
    country: str
    country_code: str
    latitude: float
    longitude: float

    class Config:
        from_attributes = True


class CityOption(BaseModel):
    """City offered as a multiple choice answer (no coordinates)."""
    id: int
    name: str
    country: str

    class Config:
        from_attributes = True


class CountryResponse(BaseModel):
    """Country available for filtering."""
    code: str
    name: str
