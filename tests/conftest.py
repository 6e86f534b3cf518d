"""
Pytest configuration for gateway tests.

Outbound calls go through ``httpx.MockTransport`` so tests can see exactly
what the gateway sent to the token endpoint and the downstream webhook.
"""
from typing import Dict, List, Optional

import httpx
import pytest
from fastapi.testclient import TestClient

from whgateway.core.config import Settings, reset_settings
from whgateway.core.observability import RelayMetrics
from whgateway.webhooks.server import create_app

AUTH_HOST = "auth.test"
DOWNSTREAM_HOST = "downstream.test"
VERIFY_TOKEN = "s3cret-verify"


class FakeUpstreams:
    """Token endpoint and downstream webhook in one MockTransport handler."""

    def __init__(self):
        self.requests: List[httpx.Request] = []
        self.token_status = 200
        self.token_body: Dict = {
            "access_token": "tok-123",
            "token_type": "Bearer",
            "expires_in": 3600,
        }
        self.forward_status = 200
        self.errors: Dict[str, Exception] = {}

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)

        error: Optional[Exception] = self.errors.get(request.url.host)
        if error is not None:
            raise error

        if request.url.host == AUTH_HOST:
            return httpx.Response(self.token_status, json=self.token_body)

        return httpx.Response(self.forward_status, text="downstream says hi")

    def fail(self, host: str, message: str = "connection refused"):
        """Make every request to ``host`` raise a connect error."""
        self.errors[host] = httpx.ConnectError(message)

    @property
    def auth_requests(self) -> List[httpx.Request]:
        return [r for r in self.requests if r.url.host == AUTH_HOST]

    @property
    def forward_requests(self) -> List[httpx.Request]:
        return [r for r in self.requests if r.url.host == DOWNSTREAM_HOST]


@pytest.fixture(autouse=True)
def _fresh_settings_cache():
    """Never leak cached settings between tests."""
    reset_settings()
    yield
    reset_settings()


@pytest.fixture
def settings() -> Settings:
    return Settings(
        _env_file=None,
        verify_token=VERIFY_TOKEN,
        auth_url=f"https://{AUTH_HOST}/oauth2/token",
        grant_type="client_credentials",
        client_id="client-abc",
        client_secret="secret-xyz",
        external_webhook_url=f"https://{DOWNSTREAM_HOST}/hooks/whatsapp",
        request_timeout=5.0,
    )


@pytest.fixture
def upstreams() -> FakeUpstreams:
    return FakeUpstreams()


@pytest.fixture
def http_client(upstreams) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(upstreams))


@pytest.fixture
def metrics() -> RelayMetrics:
    return RelayMetrics()


@pytest.fixture
def client(settings, http_client, metrics):
    """Test client for a gateway wired to the fake upstreams."""
    app = create_app(settings, http_client, metrics)
    with TestClient(app) as c:
        yield c


def message_envelope(*texts: str) -> Dict:
    """Envelope with one change per text, each carrying one user message."""
    return {
        "object": "whatsapp_business_account",
        "entry": [
            {
                "id": "102290129340398",
                "changes": [
                    {
                        "field": "messages",
                        "value": {
                            "messaging_product": "whatsapp",
                            "metadata": {"phone_number_id": "106540352242922"},
                            "contacts": [{"wa_id": "16505551234"}],
                            "messages": [
                                {
                                    "from": "16505551234",
                                    "id": f"wamid.{i}",
                                    "timestamp": "1749416383",
                                    "type": "text",
                                    "text": {"body": text},
                                }
                            ],
                        },
                    }
                    for i, text in enumerate(texts)
                ],
            }
        ],
    }


def status_envelope() -> Dict:
    """Envelope carrying a delivery receipt only."""
    return {
        "object": "whatsapp_business_account",
        "entry": [
            {
                "id": "102290129340398",
                "changes": [
                    {
                        "field": "messages",
                        "value": {
                            "messaging_product": "whatsapp",
                            "statuses": [
                                {"id": "wamid.0", "status": "delivered", "recipient_id": "16505551234"}
                            ],
                        },
                    }
                ],
            }
        ],
    }
