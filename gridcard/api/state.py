"""Shared application state (injected into routes)."""
import time
from typing import Callable, Optional

import requests

from gridcard.config import STORE_PATH
from gridcard.core.store import JsonFileStore, KeyValueStore


class AppState:
    """Collaborators every request needs: the key-value store and the outbound HTTP session."""

    def __init__(
        self,
        store: Optional[KeyValueStore] = None,
        session: Optional[requests.Session] = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.store: KeyValueStore = store if store is not None else JsonFileStore(STORE_PATH)
        self.session = session if session is not None else requests.Session()
        self.sleep = sleep

    def close(self) -> None:
        self.session.close()


_state: Optional[AppState] = None


def get_state() -> AppState:
    global _state
    if _state is None:
        _state = AppState()
    return _state
