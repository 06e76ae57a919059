from app.core.errors import ProviderUnavailable
from app.schemas.geo import PlaceCategory
from tests.conftest import make_point

URL = "/api/v1/geo/nearby"


def _seed(places):
    places.points = [
        make_point("a", -23.5600, -46.6560, rating=4.0),
        make_point("b", -23.5650, -46.6560, rating=4.9, category=PlaceCategory.public),
        make_point("c", -23.5500, -46.6560),
    ]


def test_nearby_camel_case_page(client, places):
    _seed(places)
    resp = client.get(URL, params={
        "latitude": -23.561, "longitude": -46.656, "query": "CRAS",
        "limit": 2, "sortBy": "distance",
    })
    assert resp.status_code == 200
    body = resp.json()
    assert body["totalResults"] == 3
    assert body["totalPages"] == 2
    assert body["page"] == 1
    assert [p["id"] for p in body["results"]] == ["a", "b"]
    assert body["results"][0]["distance"] > 0
    assert "openingHours" in body["results"][0]


def test_nearby_type_filter(client, places):
    _seed(places)
    resp = client.get(URL, params={"latitude": -23.561, "longitude": -46.656, "type": "public"})
    assert [p["id"] for p in resp.json()["results"]] == ["b"]


def test_nearby_empty_message(client):
    resp = client.get(URL, params={"latitude": 0, "longitude": 0})
    assert resp.status_code == 200
    assert resp.json()["message"] == "No support points found."


def test_nearby_missing_or_bad_coordinates(client, places):
    assert client.get(URL, params={"latitude": -23.5}).status_code == 400
    assert client.get(URL, params={"latitude": "abc", "longitude": 0}).status_code == 400
    assert client.get(URL, params={"latitude": 95, "longitude": 0}).status_code == 400
    assert client.get(URL, params={"latitude": 0, "longitude": 0, "limit": 0}).status_code == 400
    assert places.calls == []


def test_nearby_provider_failure_is_502(client, places):
    places.error = ProviderUnavailable()
    resp = client.get(URL, params={"latitude": -23.561, "longitude": -46.656})
    assert resp.status_code == 502
    assert resp.json()["detail"] == "External search provider unavailable"


def test_photo_redirect(client):
    resp = client.get("/api/v1/geo/photo/ref1", params={"maxWidth": 800}, follow_redirects=False)
    assert resp.status_code == 307
    assert resp.headers["location"] == "https://images.example.com/ref1?w=800"
