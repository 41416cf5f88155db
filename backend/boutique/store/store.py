# Overview: The explicit state store: current document, ordered dispatch, subscribers, save status.

from __future__ import annotations

import logging
import threading
from dataclasses import replace
from typing import Callable, Optional

from boutique.models import SaveStatus, ShopState
from .actions import Action
from .reducer import reduce

logger = logging.getLogger(__name__)

Listener = Callable[[ShopState, Action], None]


class ShopStore:
    """
    Holds the one ShopState and applies actions to it in call order.

    Builders passed to apply() read the state and dispatch under the same
    lock, so an operation never computes its action from a stale state.
    Listeners are called after the state has been replaced, while the lock
    is still held, so they must not block.
    """

    def __init__(self, state: Optional[ShopState] = None):
        self._state = state if state is not None else ShopState()
        self._lock = threading.RLock()
        self._listeners: list[Listener] = []
        self.save_status = SaveStatus.IDLE
        self.loaded = False

    @property
    def state(self) -> ShopState:
        with self._lock:
            return self._state

    def dispatch(self, action: Action) -> ShopState:
        with self._lock:
            logger.debug("Dispatch %s", type(action).__name__)
            new_state = reduce(self._state, action)
            if new_state is self._state:
                logger.debug("Action %s left the state unchanged", type(action).__name__)
                return new_state
            self._state = new_state
            for listener in list(self._listeners):
                listener(new_state, action)
            return new_state

    def apply(self, build: Callable[[ShopState], Optional[Action]]) -> Optional[Action]:
        """
        Run build(state) and dispatch what it returns.

        Returns the dispatched action, or None when the builder reported a
        lookup miss. Exceptions raised by the builder propagate and leave
        the state untouched.
        """
        with self._lock:
            action = build(self._state)
            if action is not None:
                self.dispatch(action)
            return action

    def hydrate(self, state: ShopState) -> None:
        """Install a loaded document without notifying listeners."""
        with self._lock:
            # The session survives a reload when its user still exists.
            current_user = self._state.current_user
            if current_user is not None:
                state = replace(state, current_user=state.user(current_user.id))
            self._state = state
            self.loaded = True

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        with self._lock:
            self._listeners.append(listener)

        def unsubscribe() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return unsubscribe

    def set_save_status(self, status: SaveStatus) -> None:
        if status != self.save_status:
            logger.debug("Save status %s -> %s", self.save_status.value, status.value)
        self.save_status = status
