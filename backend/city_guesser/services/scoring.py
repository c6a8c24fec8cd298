from math import radians, sin, cos, sqrt, atan2, log10, floor

# Earth's radius in kilometers
EARTH_RADIUS_KM = 6371.0

PERFECT_SCORE = 1000
PERFECT_RADIUS_KM = 1.0


def haversine_distance(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """
    Calculate the great circle distance between two points on Earth.

    Args:
        lat1, lon1: Coordinates of the first point (degrees)
        lat2, lon2: Coordinates of the second point (degrees)

    Returns:
        Distance in kilometers
    """
    lat1_rad = radians(lat1)
    lat2_rad = radians(lat2)
    dlat = radians(lat2 - lat1)
    dlon = radians(lon2 - lon1)

    a = sin(dlat / 2)**2 + cos(lat1_rad) * cos(lat2_rad) * sin(dlon / 2)**2
    # Rounding near antipodes can push a just past 1
    a = min(1.0, max(0.0, a))
    c = 2 * atan2(sqrt(a), sqrt(1 - a))

    return EARTH_RADIUS_KM * c


def calculate_score(distance_km: float) -> int:
    """
    Calculate score based on distance from actual location.

    Scoring system (inverse logarithmic):
    - Perfect guess (< 1km): 1000 points
    - Otherwise: 1000 / log10(distance + 10), rounded half up

    The curve stays positive for any distance on Earth (about 232 points
    at the antipode), the floor at 0 only guards the contract.

    Args:
        distance_km: Distance in kilometers

    Returns:
        Score (0 to 1000)
    """
    if distance_km < PERFECT_RADIUS_KM:
        return PERFECT_SCORE

    return max(0, floor(PERFECT_SCORE / log10(distance_km + 10) + 0.5))
