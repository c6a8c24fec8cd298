import math

import pytest

from city_guesser.services.scoring import calculate_score, haversine_distance

LONDON = (51.5074, -0.1278)
PARIS = (48.8566, 2.3522)
NEW_YORK = (40.7128, -74.0060)
SYDNEY = (-33.8688, 151.2093)


@pytest.mark.parametrize("point", [LONDON, (0.0, 0.0), (90.0, 0.0), (-45.5, 179.9)])
def test_distance_to_self_is_zero(point):
    assert haversine_distance(*point, *point) == 0


@pytest.mark.parametrize("a,b", [(LONDON, PARIS), (NEW_YORK, SYDNEY), (PARIS, SYDNEY)])
def test_distance_is_symmetric(a, b):
    assert haversine_distance(*a, *b) == pytest.approx(haversine_distance(*b, *a))


def test_london_to_paris():
    assert haversine_distance(*LONDON, *PARIS) == pytest.approx(343.5, abs=1.0)


def test_antipodal_points_are_half_circumference():
    half_circumference = math.pi * 6371.0
    assert haversine_distance(0, 0, 0, 180) == pytest.approx(half_circumference)
    assert haversine_distance(90, 0, -90, 0) == pytest.approx(half_circumference)


def test_distance_across_date_line():
    # One degree of longitude at the equator, measured the short way round
    assert haversine_distance(0, 179.5, 0, -179.5) == pytest.approx(111.19, abs=0.1)


@pytest.mark.parametrize("distance", [0, 0.0001, 0.5, 0.999])
def test_perfect_guess_under_one_km(distance):
    assert calculate_score(distance) == 1000


def test_score_at_one_km_drops_below_perfect():
    assert calculate_score(1) == 960


def test_london_paris_score():
    assert calculate_score(343.5) == 392
    assert calculate_score(343.5) == round(1000 / math.log10(353.5))


def test_score_is_non_increasing():
    distances = [1, 2, 5, 10, 50, 100, 343.5, 1000, 5000, 10000, 20015]
    scores = [calculate_score(d) for d in distances]
    assert scores == sorted(scores, reverse=True)


def test_score_never_reaches_zero_on_earth():
    assert calculate_score(20015) == 232
    assert calculate_score(1e9) > 0
    assert calculate_score(1e300) >= 0


def test_score_at_powers_of_ten():
    assert calculate_score(90) == 500
    assert calculate_score(990) == 333
