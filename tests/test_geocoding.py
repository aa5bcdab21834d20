import googlemaps
import requests

from jiantu_travel.api.config import get_google_maps_config
from jiantu_travel.api.errors import Failure, FailureKind
from jiantu_travel.api.geocoding import GoogleGeocoder, NominatimGeocoder, short_name
from jiantu_travel.api.models import GeocodeResult

from conftest import FakeResponse, FakeSession

TEMPLE = {
    "place_id": 1,
    "display_name": "Temple of Heaven, Dongcheng District, Beijing, 100061, China",
    "lat": "39.8822",
    "lon": "116.4066",
}


def nominatim(*responses):
    session = FakeSession(*responses)
    return NominatimGeocoder(base_url="http://nominatim.test", user_agent="tests", timeout=2, session=session), session


def test_nominatim_returns_single_best_match():
    geocoder, session = nominatim(FakeResponse(200, [TEMPLE]))

    result = geocoder.search("temple of heaven")

    assert result == GeocodeResult(TEMPLE["display_name"], 39.8822, 116.4066)
    call = session.calls[0]
    assert call["url"] == "http://nominatim.test/search"
    assert call["params"] == {"format": "json", "q": "temple of heaven", "limit": 1}
    assert call["headers"]["User-Agent"] == "tests"


def test_nominatim_empty_result_is_not_found():
    geocoder, _ = nominatim(FakeResponse(200, []))
    result = geocoder.search("atlantis")
    assert isinstance(result, Failure)
    assert result.kind is FailureKind.NOT_FOUND


def test_nominatim_blank_query_skips_request():
    geocoder, session = nominatim()
    assert geocoder.search("   ").kind is FailureKind.NOT_FOUND
    assert session.calls == []


def test_nominatim_network_failure():
    geocoder, _ = nominatim(requests.ConnectionError("offline"))
    assert geocoder.search("beijing").kind is FailureKind.NETWORK_ERROR


def test_nominatim_http_error():
    geocoder, _ = nominatim(FakeResponse(503, None))
    assert geocoder.search("beijing").kind is FailureKind.NETWORK_ERROR


def test_nominatim_bad_coordinates_are_malformed():
    geocoder, _ = nominatim(FakeResponse(200, [dict(TEMPLE, lat="north")]))
    assert geocoder.search("beijing").kind is FailureKind.MALFORMED


def test_successful_lookups_are_cached():
    geocoder, session = nominatim(FakeResponse(200, [TEMPLE]))
    first = geocoder.search("Temple of Heaven")
    second = geocoder.search("temple of heaven ")
    assert first == second
    assert len(session.calls) == 1


def test_misses_are_not_cached():
    geocoder, session = nominatim(FakeResponse(200, []), FakeResponse(200, [TEMPLE]))
    assert geocoder.search("temple").kind is FailureKind.NOT_FOUND
    assert isinstance(geocoder.search("temple"), GeocodeResult)
    assert len(session.calls) == 2


def test_short_name_takes_leading_component():
    assert short_name(TEMPLE["display_name"]) == "Temple of Heaven"
    assert short_name("Somewhere") == "Somewhere"


class FakeGmaps:
    def __init__(self, results=None, error=None):
        self.results = results
        self.error = error

    def geocode(self, query, language=None):
        if self.error:
            raise self.error
        return self.results


def test_google_geocoder_uses_first_result():
    gmaps = FakeGmaps([
        {"formatted_address": "Summer Palace, Haidian, Beijing", "geometry": {"location": {"lat": 39.9993, "lng": 116.2753}}},
        {"formatted_address": "Elsewhere", "geometry": {"location": {"lat": 0, "lng": 0}}},
    ])
    result = GoogleGeocoder(client=gmaps).search("summer palace")
    assert result == GeocodeResult("Summer Palace, Haidian, Beijing", 39.9993, 116.2753)


def test_google_geocoder_no_results():
    assert GoogleGeocoder(client=FakeGmaps([])).search("nowhere").kind is FailureKind.NOT_FOUND


def test_google_geocoder_timeout():
    geocoder = GoogleGeocoder(client=FakeGmaps(error=googlemaps.exceptions.Timeout()))
    assert geocoder.search("beijing").kind is FailureKind.NETWORK_ERROR


def test_google_config_reads_only_the_api_key(monkeypatch):
    monkeypatch.setenv("GOOGLE_MAPS_API_KEY", "test-key")
    assert get_google_maps_config() == {"api_key": "test-key"}
