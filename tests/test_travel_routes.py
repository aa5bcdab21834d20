import pytest
from flask import Flask

from jiantu_travel.api.errors import Failure, FailureKind
from jiantu_travel.api.models import GeocodeResult
from jiantu_travel.api.recommendations import recommend
from jiantu_travel.routes.travel import create_travel_blueprint

from conftest import FakeGeocoder


def make_client(geocoder):
    app = Flask(__name__)
    app.register_blueprint(create_travel_blueprint(geocoder=geocoder))
    return app.test_client()


@pytest.fixture
def client():
    return make_client(FakeGeocoder(GeocodeResult("Summer Palace, Haidian District, Beijing", 39.9993, 116.2753)))


def test_health(client):
    response = client.get("/travel/health")
    assert response.status_code == 200
    assert response.get_json() == {"status": "ok", "service": "travel"}


def test_config_exposes_planner_defaults(client):
    body = client.get("/travel/api/config").get_json()
    assert body["routing_profile"] == "driving"
    assert body["default_start_time"] == "08:00"
    assert "Deep Explorer" in body["personas"]


def test_search_returns_short_name(client):
    body = client.get("/travel/api/search?q=summer+palace").get_json()
    assert body == {
        "name": "Summer Palace, Haidian District, Beijing",
        "short_name": "Summer Palace",
        "lat": 39.9993,
        "lng": 116.2753,
    }


def test_search_miss_is_404():
    client = make_client(FakeGeocoder(Failure(FailureKind.NOT_FOUND)))
    response = client.get("/travel/api/search?q=atlantis")
    assert response.status_code == 404
    assert response.get_json()["error"]["kind"] == "not_found"


def test_search_outage_is_502():
    client = make_client(FakeGeocoder(Failure(FailureKind.NETWORK_ERROR)))
    assert client.get("/travel/api/search?q=beijing").status_code == 502


def test_recommendations_put_persona_matches_first(client):
    places = client.get("/travel/api/recommendations?persona=Creative%20Traveler").get_json()
    tagged = ["Creative Traveler" in place["tags"] for place in places]
    assert tagged == sorted(tagged, reverse=True)
    assert places[0]["name"] == "Universal Beijing Resort"


def test_recommend_keeps_catalog_order_without_persona():
    assert [p.id for p in recommend()] == ["1", "2", "3", "4", "5", "6", "7"]
    assert [p.id for p in recommend("Deep Explorer")][:4] == ["1", "3", "5", "7"]
