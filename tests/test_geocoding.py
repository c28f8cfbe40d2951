"""Tests for Nominatim forward/reverse geocoding (network mocked)."""

from unittest.mock import MagicMock

import pytest
import requests

from climate_api.geocoding import NominatimGeocoder, country_from_display_name


def make_geocoder(payload=None, status=200, exc=None):
    session = MagicMock(spec=requests.Session)
    if exc is not None:
        session.get.side_effect = exc
    else:
        resp = MagicMock()
        resp.status_code = status
        resp.json.return_value = payload
        if status >= 400:
            resp.raise_for_status.side_effect = requests.HTTPError(f"{status} error")
        session.get.return_value = resp
    return NominatimGeocoder(base_url="https://nominatim.test/", session=session), session


LISBON = {
    "lat": "38.7077507",
    "lon": "-9.1365919",
    "boundingbox": ["38.6913994", "38.7967584", "-9.2298356", "-9.0863328"],
    "display_name": "Lisboa, Portugal",
    "address": {"city": "Lisboa", "country": "Portugal"},
}


class TestCountryFromDisplayName:
    def test_last_segment(self):
        assert country_from_display_name("Lyon, Métropole de Lyon, Rhône, France") == "France"

    def test_trailing_postal_code_is_a_known_limitation(self):
        assert country_from_display_name("10 Downing St, London, SW1A 2AA") == "SW1A 2AA"

    @pytest.mark.parametrize("raw", ["", None, " , ,"])
    def test_empty(self, raw):
        assert country_from_display_name(raw) == ""


class TestResolveByName:
    def test_first_result(self):
        geo, session = make_geocoder([LISBON, {"lat": "0", "lon": "0"}])
        place = geo.resolve_by_name("  Lisbon ")
        assert place.lat == pytest.approx(38.7077507)
        assert place.lon == pytest.approx(-9.1365919)
        assert place.bounding_box == (38.6913994, 38.7967584, -9.2298356, -9.0863328)
        assert place.country_name == "Portugal"
        assert place.display_name == "Lisboa, Portugal"

        args, kwargs = session.get.call_args
        assert args[0] == "https://nominatim.test/search"
        assert kwargs["params"]["q"] == "Lisbon"
        assert "User-Agent" in kwargs["headers"]
        assert kwargs["timeout"] == 15

    def test_structured_country_preferred_over_heuristic(self):
        item = dict(LISBON, display_name="Rua Augusta, Lisboa, 1100-048", address={"country": "Portugal"})
        geo, _ = make_geocoder([item])
        assert geo.resolve_by_name("Rua Augusta").country_name == "Portugal"

    def test_heuristic_fallback_without_address(self):
        item = {k: v for k, v in LISBON.items() if k != "address"}
        geo, _ = make_geocoder([item])
        assert geo.resolve_by_name("Lisbon").country_name == "Portugal"

    def test_no_result(self):
        geo, _ = make_geocoder([])
        assert geo.resolve_by_name("Atlantis") is None

    def test_blank_query_skips_network(self):
        geo, session = make_geocoder([LISBON])
        assert geo.resolve_by_name("   ") is None
        session.get.assert_not_called()

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"exc": requests.ConnectionError("down")},
            {"exc": requests.Timeout("slow")},
            {"payload": {"error": "x"}, "status": 503},
            {"payload": [{"display_name": "no coordinates"}]},
            {"payload": [{"lat": "abc", "lon": "1"}]},
            {"payload": "garbage"},
        ],
    )
    def test_failures_are_not_found(self, kwargs):
        geo, _ = make_geocoder(**kwargs)
        assert geo.resolve_by_name("Lisbon") is None


class TestResolveByCoordinate:
    def test_address_country(self):
        geo, session = make_geocoder({"display_name": "Nairobi, Kenya", "address": {"country": "Kenya"}})
        place = geo.resolve_by_coordinate(-1.28, 36.82)
        assert place.country_name == "Kenya"
        assert place.display_name == "Nairobi, Kenya"
        assert (place.lat, place.lon) == (-1.28, 36.82)
        assert place.bounding_box is None
        assert session.get.call_args[0][0] == "https://nominatim.test/reverse"

    def test_open_ocean(self):
        geo, _ = make_geocoder({"error": "Unable to geocode"})
        assert geo.resolve_by_coordinate(0.0, -30.0) is None

    def test_network_error(self):
        geo, _ = make_geocoder(exc=requests.ConnectionError("down"))
        assert geo.resolve_by_coordinate(1.0, 1.0) is None
