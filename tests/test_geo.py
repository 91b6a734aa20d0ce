import math

import pytest

from domain.models import GeoPoint
from utils.geo import (
    DEFAULT_ORIGIN,
    ROAD_FACTOR,
    STORE_ORIGIN,
    estimate_route_km,
    haversine_km,
    is_valid_point,
    origin_notice,
    resolve_origin,
)

ONE_DEGREE_KM = 6371 * math.pi / 180


class TestHaversine:
    def test_same_point_is_zero(self):
        assert haversine_km(STORE_ORIGIN, STORE_ORIGIN) == pytest.approx(0.0)

    def test_one_degree_of_latitude(self):
        a = GeoPoint(lat=-12.0, lng=-77.0)
        b = GeoPoint(lat=-13.0, lng=-77.0)
        assert haversine_km(a, b) == pytest.approx(ONE_DEGREE_KM, rel=1e-9)

    def test_symmetric(self):
        assert haversine_km(STORE_ORIGIN, DEFAULT_ORIGIN) == pytest.approx(
            haversine_km(DEFAULT_ORIGIN, STORE_ORIGIN)
        )

    def test_nan_propagates(self):
        assert math.isnan(haversine_km(STORE_ORIGIN, GeoPoint(lat=float("nan"), lng=-77.0)))


class TestRouteEstimate:
    def test_applies_road_factor(self):
        straight = haversine_km(STORE_ORIGIN, DEFAULT_ORIGIN)
        assert estimate_route_km(DEFAULT_ORIGIN) == pytest.approx(straight * ROAD_FACTOR)

    def test_custom_origin_and_factor(self):
        a = GeoPoint(lat=-12.0, lng=-77.0)
        b = GeoPoint(lat=-13.0, lng=-77.0)
        assert estimate_route_km(b, origin=a, road_factor=1.0) == pytest.approx(ONE_DEGREE_KM)


class TestValidPoint:
    @pytest.mark.parametrize(
        "point",
        [
            None,
            GeoPoint(lat=0, lng=0),
            GeoPoint(lat=float("nan"), lng=-77.0),
            GeoPoint(lat=-12.0, lng=float("inf")),
            GeoPoint(lat=-91.0, lng=-77.0),
            GeoPoint(lat=-12.0, lng=181.0),
            GeoPoint(lat="abc", lng=-77.0),
        ],
    )
    def test_rejected(self, point):
        assert not is_valid_point(point)

    def test_lima_point_accepted(self):
        assert is_valid_point(GeoPoint(lat=-12.05, lng=-77.04))


class TestResolveOrigin:
    def test_uses_device_position(self):
        here = GeoPoint(lat=-12.1, lng=-77.0)
        assert resolve_origin(here) == here

    def test_notice_only_for_default_origin(self):
        assert "centro de Lima" in origin_notice(resolve_origin(None))
        assert origin_notice(GeoPoint(lat=-12.1, lng=-77.0)) is None

    def test_falls_back_to_default(self, caplog):
        with caplog.at_level("WARNING"):
            assert resolve_origin(None) == DEFAULT_ORIGIN
        assert "Geolocation unavailable" in caplog.text
