"""Shared fakes for the HTTP layer."""

import threading
from typing import Dict, Iterator, List, Optional, Union

import pytest
import requests


class FakeResponse:
    def __init__(
        self,
        status_code: int = 200,
        json_data=None,
        body: bytes = b"",
        headers: Optional[Dict[str, str]] = None,
        stream_error: bool = False,
    ) -> None:
        self.status_code = status_code
        self._json = json_data
        self.body = body
        self.headers = headers if headers is not None else {"content-length": str(len(body))}
        self.stream_error = stream_error

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False

    def raise_for_status(self) -> None:
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Error", response=self)

    def json(self):
        if self._json is None:
            raise ValueError("No JSON object could be decoded")
        return self._json

    def iter_content(self, chunk_size: int = 1) -> Iterator[bytes]:
        for start in range(0, len(self.body), chunk_size):
            yield self.body[start:start + chunk_size]
            if self.stream_error:
                raise requests.exceptions.ChunkedEncodingError("Connection broken")


class FakeSession:
    """Route GET requests to canned responses; unknown URLs get a 404."""

    def __init__(self, routes: Optional[Dict[str, Union[FakeResponse, Exception]]] = None) -> None:
        self.routes = routes or {}
        self.calls: List[str] = []
        self.kwargs: List[dict] = []
        self._lock = threading.Lock()

    def get(self, url: str, **kwargs) -> FakeResponse:
        with self._lock:
            self.calls.append(url)
            self.kwargs.append(kwargs)
        route = self.routes.get(url, FakeResponse(status_code=404))
        if isinstance(route, Exception):
            raise route
        return route

    def close(self) -> None:
        pass


@pytest.fixture
def make_session():
    return FakeSession


@pytest.fixture
def make_response():
    return FakeResponse
