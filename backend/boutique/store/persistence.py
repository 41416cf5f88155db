"""
Persistence Gateway

Load-on-start and debounced save-on-change of the whole shop document
against the remote /data endpoint.

The endpoint is a get/set blob store: GET returns the document or 404,
POST upserts it. There is no versioning and no partial update; the last
save wins.

SAVE CYCLE:
- every state-changing action (re)arms a timer of `debounce_seconds`
- when it fires, the CURRENT state is serialized and POSTed
- save_status: idle -> saving -> saved | error
- a failed save is only reported; the in-memory state is kept as is
"""

from __future__ import annotations

import logging
import threading
from typing import Optional

import httpx

from boutique.models import SaveStatus, ShopState
from boutique.validation import ValidationError
from .actions import Action, LoggedIn, LoggedOut
from .store import ShopStore

logger = logging.getLogger(__name__)

DEFAULT_DEBOUNCE_SECONDS = 1.0
DEFAULT_TIMEOUT_SECONDS = 10.0

# Session actions do not change the persisted document.
_SESSION_ACTIONS = (LoggedIn, LoggedOut)


class PersistenceError(Exception):
    """Raised when the persistence endpoint cannot be read or written."""
    pass


class PersistenceGateway:
    def __init__(self, base_url: str, timeout: float = DEFAULT_TIMEOUT_SECONDS,
                 client: Optional[httpx.Client] = None):
        self._client = client or httpx.Client(base_url=base_url.rstrip("/"), timeout=timeout)

    def load(self) -> Optional[ShopState]:
        """Fetch the stored document; None when nothing has been saved yet."""
        try:
            response = self._client.get("/data")
        except httpx.HTTPError as exc:
            raise PersistenceError(f"Load failed: {exc}") from exc
        if response.status_code == 404:
            return None
        if response.is_error:
            raise PersistenceError(f"Load failed with HTTP {response.status_code}")
        try:
            return ShopState.from_document(response.json())
        except (ValueError, ValidationError) as exc:
            raise PersistenceError(f"Stored document is invalid: {exc}") from exc

    def save(self, document: dict) -> None:
        try:
            response = self._client.post("/data", json=document)
        except httpx.HTTPError as exc:
            raise PersistenceError(f"Save failed: {exc}") from exc
        if response.is_error:
            raise PersistenceError(f"Save failed with HTTP {response.status_code}")

    def close(self) -> None:
        self._client.close()


class DebouncedSaver:
    """Saves the store's document once dispatches have been quiet for `delay` seconds."""

    def __init__(self, store: ShopStore, gateway: PersistenceGateway,
                 delay: float = DEFAULT_DEBOUNCE_SECONDS):
        self.store = store
        self.gateway = gateway
        self.delay = delay
        self.enabled = True
        self._timer: Optional[threading.Timer] = None
        self._lock = threading.Lock()
        self._unsubscribe = store.subscribe(self._on_action)

    @property
    def pending(self) -> bool:
        with self._lock:
            return self._timer is not None

    def _on_action(self, state: ShopState, action: Action) -> None:
        if isinstance(action, _SESSION_ACTIONS):
            return
        self.schedule()

    def schedule(self) -> None:
        if not self.enabled:
            return
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
            self._timer = threading.Timer(self.delay, self._fire)
            self._timer.daemon = True
            self._timer.start()

    def _fire(self) -> None:
        with self._lock:
            self._timer = None
        self.save_now()

    def save_now(self) -> bool:
        """Save the current document immediately. Returns True on success."""
        self.store.set_save_status(SaveStatus.SAVING)
        document = self.store.state.to_document()
        try:
            self.gateway.save(document)
        except PersistenceError:
            logger.exception("Saving the shop document failed")
            self.store.set_save_status(SaveStatus.ERROR)
            return False
        self.store.set_save_status(SaveStatus.SAVED)
        return True

    def flush(self) -> bool:
        """Run a pending save now. Returns False when it failed."""
        with self._lock:
            timer, self._timer = self._timer, None
        if timer is None:
            return True
        timer.cancel()
        return self.save_now()

    def close(self) -> None:
        self.flush()
        self._unsubscribe()


def bootstrap_store(gateway: PersistenceGateway,
                    debounce_seconds: float = DEFAULT_DEBOUNCE_SECONDS) -> tuple[ShopStore, DebouncedSaver]:
    """
    Build a store from the remote document and attach a saver to it.

    When the document cannot be loaded (anything but "nothing saved yet"),
    the store starts empty and saving is disabled so the empty state never
    overwrites the remote one.
    """
    store = ShopStore()
    saver = DebouncedSaver(store, gateway, debounce_seconds)
    try:
        loaded = gateway.load()
    except PersistenceError:
        logger.exception("Loading the shop document failed; saving disabled")
        saver.enabled = False
        store.set_save_status(SaveStatus.ERROR)
        return store, saver
    if loaded is None:
        logger.info("No stored shop document; starting from defaults")
        store.loaded = True
    else:
        store.hydrate(loaded)
    return store, saver


def bootstrap_from_config(config) -> tuple[ShopStore, DebouncedSaver]:
    """Same as bootstrap_store, reading the BOUTIQUE_* keys of a Flask-style config mapping."""
    gateway = PersistenceGateway(
        config["BOUTIQUE_API_URL"],
        timeout=float(config.get("BOUTIQUE_HTTP_TIMEOUT", DEFAULT_TIMEOUT_SECONDS)),
    )
    return bootstrap_store(
        gateway,
        debounce_seconds=float(config.get("BOUTIQUE_SAVE_DEBOUNCE_SECONDS", DEFAULT_DEBOUNCE_SECONDS)),
    )
