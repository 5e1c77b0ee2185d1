import os

import httpx
import pytest

from setto_sdk import SettoConfig, SettoEnvironment
from setto_sdk.api import reset_client


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    """Keep SETTO_* variables from the developer's shell out of the tests."""
    for key in list(os.environ):
        if key.startswith("SETTO_"):
            monkeypatch.delenv(key)
    reset_client()
    yield
    reset_client()


@pytest.fixture
def config():
    return SettoConfig(merchant_id="m1", environment=SettoEnvironment.DEV)


@pytest.fixture
def idp_config():
    return SettoConfig(
        merchant_id="m1",
        environment=SettoEnvironment.DEV,
        idp_token="idp-abc",
    )


class RecordingTransport:
    """Mock Setto API: records requests and answers with a canned response."""

    def __init__(self, response=None):
        self.requests = []
        self.response = response or httpx.Response(200, json={"payment_token": "tok-123"})

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if isinstance(self.response, Exception):
            raise self.response
        return self.response

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self))


@pytest.fixture
def make_api():
    return RecordingTransport


@pytest.fixture
def api():
    return RecordingTransport()
