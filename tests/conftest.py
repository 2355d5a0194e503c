import json
from typing import Any, Callable, Dict, List, Optional, Tuple, Union

import pytest
import requests

from gridcard.core.store import MemoryStore


class FakeResponse:
    def __init__(self, status_code: int = 200, json_body: Any = None, text: Optional[str] = None, content: bytes = b""):
        self.status_code = status_code
        self._json = json_body
        if text is None:
            text = json.dumps(json_body) if json_body is not None else ""
        self.text = text
        self.content = content or text.encode()

    def json(self) -> Any:
        if self._json is None:
            raise ValueError("No JSON body")
        return self._json


Reply = Union[FakeResponse, Exception, Callable[..., FakeResponse]]


class FakeSession:
    """Stands in for requests.Session. Routes match on method + URL prefix (longest wins);
    each route replays its replies in order and repeats the last one."""

    def __init__(self) -> None:
        self.routes: Dict[Tuple[str, str], List[Reply]] = {}
        self.calls: List[Tuple[str, str, Dict[str, Any]]] = []
        self.closed = False

    def add(self, method: str, url_prefix: str, *replies: Reply) -> "FakeSession":
        self.routes[(method.upper(), url_prefix)] = list(replies)
        return self

    def calls_to(self, method: str, url_prefix: str) -> List[Tuple[str, str, Dict[str, Any]]]:
        return [c for c in self.calls if c[0] == method.upper() and c[1].startswith(url_prefix)]

    def request(self, method: str, url: str, **kwargs: Any) -> FakeResponse:
        method = method.upper()
        self.calls.append((method, url, kwargs))
        matches = [k for k in self.routes if k[0] == method and url.startswith(k[1])]
        if not matches:
            raise requests.ConnectionError(f"no route for {method} {url}")
        replies = self.routes[max(matches, key=lambda k: len(k[1]))]
        reply = replies.pop(0) if len(replies) > 1 else replies[0]
        if isinstance(reply, Exception):
            raise reply
        if callable(reply):
            return reply(method, url, **kwargs)
        return reply

    def close(self) -> None:
        self.closed = True


@pytest.fixture
def session() -> FakeSession:
    return FakeSession()


@pytest.fixture
def store() -> MemoryStore:
    return MemoryStore()


@pytest.fixture
def no_sleep() -> List[float]:
    """Collects requested sleeps instead of sleeping; pass .append as the sleep function."""
    return []
