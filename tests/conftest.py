import json

import httpx
import pytest

from clicksign_python import SyncClient


class RecordingHandler:
    """Answers every request with a fixed response and keeps what was sent."""

    def __init__(self, status_code=200, json_body=None, text=None):
        self.status_code = status_code
        self.json_body = json_body
        self.text = text
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        request.read()
        self.requests.append(request)
        if self.text is not None:
            return httpx.Response(self.status_code, text=self.text)
        return httpx.Response(self.status_code, json=self.json_body if self.json_body is not None else {})

    @property
    def last(self) -> httpx.Request:
        return self.requests[-1]

    def last_json(self):
        return json.loads(self.last.content)


@pytest.fixture
def make_client():
    clients = []

    def factory(status_code=200, json_body=None, text=None, **client_kwargs):
        handler = RecordingHandler(status_code, json_body, text)
        client_kwargs.setdefault("token", "tok_123")
        client = SyncClient(transport=httpx.MockTransport(handler), **client_kwargs)
        clients.append(client)
        return client, handler

    yield factory

    for client in clients:
        client.close()
