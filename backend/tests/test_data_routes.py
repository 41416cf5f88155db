"""
The /data persistence endpoint and /health, through the Flask test client
and through the client-side gateway.
"""

import httpx

from boutique.models import ShopState
from boutique.store.persistence import PersistenceGateway


def test_get_without_document_is_404(client, db_session):
    response = client.get("/data")

    assert response.status_code == 404
    assert response.get_json() == {"message": "No data found"}


def test_post_then_get_round_trips_the_document(client, db_session, seeded_state):
    document = seeded_state.to_document()

    response = client.post("/data", json=document)
    assert response.status_code == 200
    assert response.get_json() == {"message": "Data saved successfully"}

    response = client.get("/data")
    assert response.status_code == 200
    assert response.get_json() == document


def test_post_replaces_the_whole_document(client, db_session):
    client.post("/data", json={"categories": ["A"], "products": []})
    client.post("/data", json={"categories": ["B"]})

    assert client.get("/data").get_json() == {"categories": ["B"]}


def test_post_without_body_is_400(client, db_session):
    response = client.post("/data")

    assert response.status_code == 400
    assert response.get_json() == {"message": "No body provided"}


def test_post_with_non_json_body_is_400(client, db_session):
    response = client.post("/data", data="not json", content_type="text/plain")

    assert response.status_code == 400


def test_post_with_non_object_json_is_400(client, db_session):
    response = client.post("/data", json=[1, 2, 3])

    assert response.status_code == 400
    assert client.get("/data").status_code == 404


def test_other_methods_are_405(client, db_session):
    for method in ("put", "patch", "delete"):
        response = getattr(client, method)("/data")
        assert response.status_code == 405
        assert response.get_json() == {"message": "Method Not Allowed"}


def test_cors_headers_for_allowed_origin(client, db_session):
    allowed = client.get("/data", headers={"Origin": "http://localhost:5173"})
    other = client.get("/data", headers={"Origin": "http://evil.test"})

    assert allowed.headers["Access-Control-Allow-Origin"] == "http://localhost:5173"
    assert "Access-Control-Allow-Origin" not in other.headers


def test_health_reports_database_and_document(client, db_session):
    response = client.get("/health")
    body = response.get_json()

    assert response.status_code == 200
    assert body["status"] == "healthy"
    assert body["checks"]["database"]["details"]["document_stored"] is False

    client.post("/data", json={"categories": []})
    body = client.get("/health").get_json()
    assert body["checks"]["database"]["details"]["document_stored"] is True


def test_gateway_against_the_flask_endpoint(app, db_session, seeded_state):
    http = httpx.Client(transport=httpx.WSGITransport(app=app), base_url="http://testserver")
    gateway = PersistenceGateway("http://testserver", client=http)

    assert gateway.load() is None
    gateway.save(seeded_state.to_document())
    loaded = gateway.load()

    assert isinstance(loaded, ShopState)
    assert loaded.products == seeded_state.products
    assert loaded.clients == seeded_state.clients
