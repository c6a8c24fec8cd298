from fastapi import APIRouter, Depends, HTTPException, Query, status
from typing import List

from ..dependencies import get_location_store, http_error
from ..exceptions import GameError
from ..models.location import CityResponse, CountryResponse
from ..services.locations import SqlLocationStore

router = APIRouter(tags=["Cities"])


@router.get("/cities/search", response_model=CityResponse)
async def search_city(
    name: str = Query(..., min_length=1),
    store: SqlLocationStore = Depends(get_location_store)
):
    """Find a city by exact name (case-insensitive)."""
    try:
        location = await store.find_by_name(name)
    except GameError as e:
        raise http_error(e)

    if not location:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="City not found")
    return CityResponse(**location.model_dump(exclude={"population", "ascii_name"}))


@router.get("/cities/{city_id}", response_model=CityResponse)
async def get_city(city_id: int, store: SqlLocationStore = Depends(get_location_store)):
    """Get a city by id."""
    try:
        location = await store.find_by_id(city_id)
    except GameError as e:
        raise http_error(e)

    if not location:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="City not found")
    return CityResponse(**location.model_dump(exclude={"population", "ascii_name"}))


@router.get("/countries", response_model=List[CountryResponse])
async def list_countries(store: SqlLocationStore = Depends(get_location_store)):
    """Countries present in the city catalog, for the filter settings."""
    try:
        return await store.list_countries()
    except GameError as e:
        raise http_error(e)
