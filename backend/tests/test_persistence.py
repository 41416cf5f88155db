"""
Store lifecycle against the persistence endpoint: load at start, debounced
save on change, save status reporting.
"""

import json
import threading

import httpx
import pytest

from boutique.models import SaveStatus, UserRole
from boutique.store import ShopStore
from boutique.store.facade import ShopActions
from boutique.store.persistence import (
    DebouncedSaver,
    PersistenceError,
    PersistenceGateway,
    bootstrap_from_config,
    bootstrap_store,
)


class FakeEndpoint:
    """In-memory stand-in for GET/POST /data behind httpx.MockTransport."""

    def __init__(self, document=None, get_status=None, post_status=200):
        self.document = document
        self.get_status = get_status
        self.post_status = post_status
        self.posts = []
        self.posted = threading.Event()

    def __call__(self, request: httpx.Request) -> httpx.Response:
        if request.url.path != "/data":
            return httpx.Response(404)
        if request.method == "GET":
            if self.get_status is not None:
                return httpx.Response(self.get_status, json={"message": "Internal Server Error"})
            if self.document is None:
                return httpx.Response(404, json={"message": "No data found"})
            return httpx.Response(200, json=self.document)
        body = json.loads(request.content)
        self.posts.append(body)
        if self.post_status == 200:
            self.document = body
        self.posted.set()
        return httpx.Response(self.post_status, json={"message": "Data saved successfully"})


def _gateway(endpoint):
    client = httpx.Client(transport=httpx.MockTransport(endpoint), base_url="http://shop.test")
    return PersistenceGateway("http://shop.test", client=client)


def test_load_returns_none_when_nothing_saved():
    assert _gateway(FakeEndpoint()).load() is None


def test_load_raises_on_server_error():
    with pytest.raises(PersistenceError):
        _gateway(FakeEndpoint(get_status=500)).load()


def test_bootstrap_hydrates_from_stored_document(seeded_state):
    endpoint = FakeEndpoint(document={**seeded_state.to_document(), "currentUser": {"id": "u1"}})

    store, saver = bootstrap_store(_gateway(endpoint), debounce_seconds=60)

    assert store.loaded is True
    assert store.state.products == seeded_state.products
    assert store.state.current_user is None
    assert saver.enabled is True
    assert store.save_status == SaveStatus.IDLE


def test_bootstrap_from_empty_endpoint_uses_defaults():
    store, saver = bootstrap_store(_gateway(FakeEndpoint()), debounce_seconds=60)

    assert store.loaded is True
    assert store.state.categories == ("Vêtements", "Accessoires", "Chaussures")
    assert saver.enabled is True


def test_failed_load_disables_saving():
    endpoint = FakeEndpoint(get_status=503)
    store, saver = bootstrap_store(_gateway(endpoint), debounce_seconds=60)

    ShopActions(store).add_category("Bijoux")

    assert saver.enabled is False
    assert saver.pending is False
    assert store.save_status == SaveStatus.ERROR
    assert endpoint.posts == []


def test_changes_are_coalesced_into_one_save(store, shop, line):
    endpoint = FakeEndpoint()
    saver = DebouncedSaver(store, _gateway(endpoint), delay=60)

    shop.create_order("c1", [line(quantity=1)])
    shop.add_category("Bijoux")
    assert saver.pending is True
    assert endpoint.posts == []

    assert saver.flush() is True

    assert len(endpoint.posts) == 1
    saved = endpoint.posts[0]
    assert "currentUser" not in saved
    assert saved["categories"][-1] == "Bijoux"
    assert len(saved["orders"]) == 1
    assert store.save_status == SaveStatus.SAVED
    assert saver.pending is False
    assert saver.flush() is True
    assert len(endpoint.posts) == 1


def test_session_actions_do_not_trigger_a_save(store, shop):
    user = shop.add_user("Amina", UserRole.ADMIN, "1234")
    endpoint = FakeEndpoint()
    saver = DebouncedSaver(store, _gateway(endpoint), delay=60)

    shop.login(user.id, "1234")
    shop.logout()

    assert saver.pending is False


def test_saved_document_never_contains_the_session(store, shop):
    user = shop.add_user("Amina", UserRole.ADMIN, "1234")
    shop.login(user.id, "1234")
    endpoint = FakeEndpoint()
    saver = DebouncedSaver(store, _gateway(endpoint), delay=60)

    shop.add_category("Bijoux")
    saver.flush()

    assert "currentUser" not in endpoint.posts[0]
    assert endpoint.posts[0]["users"][0]["pinHash"] != "1234"


def test_failed_save_is_reported_and_state_kept(store, shop):
    endpoint = FakeEndpoint(post_status=500)
    saver = DebouncedSaver(store, _gateway(endpoint), delay=60)

    shop.add_category("Bijoux")

    assert saver.flush() is False
    assert store.save_status == SaveStatus.ERROR
    assert "Bijoux" in store.state.categories


def test_timer_saves_after_the_quiet_period(store, shop):
    endpoint = FakeEndpoint()
    saver = DebouncedSaver(store, _gateway(endpoint), delay=0.01)

    shop.add_category("Bijoux")

    assert endpoint.posted.wait(timeout=5)
    saver.close()
    assert endpoint.document["categories"][-1] == "Bijoux"


def test_unsubscribe_stops_notifications():
    store = ShopStore()
    seen = []
    unsubscribe = store.subscribe(lambda state, action: seen.append(action))
    ShopActions(store).add_category("Bijoux")
    unsubscribe()
    ShopActions(store).add_category("Sacs")

    assert len(seen) == 1


def test_bootstrap_from_config_disables_saving_when_endpoint_unreachable():
    config = {
        "BOUTIQUE_API_URL": "http://127.0.0.1:9",
        "BOUTIQUE_HTTP_TIMEOUT": 0.5,
        "BOUTIQUE_SAVE_DEBOUNCE_SECONDS": 60,
    }

    store, saver = bootstrap_from_config(config)

    assert saver.enabled is False
    assert saver.delay == 60
    assert store.save_status == SaveStatus.ERROR
    saver.close()


def test_malformed_stored_document_disables_saving():
    endpoint = FakeEndpoint(document={"orders": [1]})

    with pytest.raises(PersistenceError):
        _gateway(endpoint).load()

    store, saver = bootstrap_store(_gateway(endpoint), debounce_seconds=60)
    assert saver.enabled is False
    assert store.save_status == SaveStatus.ERROR
    assert store.loaded is False
