"""
Tests for the relay.
"""
import json

import pytest

from whgateway.core.exceptions import CredentialError, ForwardError
from whgateway.logging import LogLevel
from whgateway.webhooks.relay import OutcomeStatus, Relay

from conftest import AUTH_HOST, DOWNSTREAM_HOST, message_envelope, status_envelope


@pytest.fixture
def relay(settings, http_client, metrics):
    return Relay(settings, http_client, metrics=metrics)


def raw(envelope) -> bytes:
    # Spacing differs from json.dumps defaults on purpose
    return json.dumps(envelope, indent=1, ensure_ascii=False).encode()


class TestRelayForwarding:
    """Qualifying changes are forwarded with a fresh bearer token."""

    @pytest.mark.asyncio
    async def test_message_is_forwarded_with_bearer_token(self, relay, upstreams):
        envelope = message_envelope("hola")
        body = raw(envelope)

        result = await relay.relay(envelope, body)

        assert result.summary() == {"forwarded": 1, "failed": 0, "ignored": 0}
        assert [r.url.host for r in upstreams.requests] == [AUTH_HOST, DOWNSTREAM_HOST]

        forwarded = upstreams.forward_requests[0]
        assert forwarded.method == "POST"
        assert str(forwarded.url) == f"https://{DOWNSTREAM_HOST}/hooks/whatsapp"
        assert forwarded.headers["authorization"] == "Bearer tok-123"
        assert forwarded.headers["content-type"] == "application/json"

    @pytest.mark.asyncio
    async def test_forwarded_body_is_byte_identical(self, relay, upstreams):
        envelope = message_envelope("¿qué tal? 👋")
        body = raw(envelope)

        await relay.relay(envelope, body)

        assert upstreams.forward_requests[0].content == body

    @pytest.mark.asyncio
    async def test_envelope_is_encoded_when_no_raw_body(self, relay, upstreams):
        envelope = message_envelope("hi")

        await relay.relay(envelope)

        assert json.loads(upstreams.forward_requests[0].content) == envelope

    @pytest.mark.asyncio
    async def test_one_forward_per_qualifying_change(self, relay, upstreams, metrics):
        envelope = message_envelope("a", "b")
        envelope["entry"].append(status_envelope()["entry"][0])

        result = await relay.relay(envelope, raw(envelope))

        assert result.summary() == {"forwarded": 2, "failed": 0, "ignored": 1}
        assert len(upstreams.auth_requests) == 2
        assert len(upstreams.forward_requests) == 2
        assert metrics.get_value("whgateway_changes_total", outcome="forwarded") == 2
        assert metrics.get_value("whgateway_changes_total", outcome="ignored") == 1

    @pytest.mark.asyncio
    async def test_status_updates_make_no_calls(self, relay, upstreams):
        envelope = status_envelope()

        result = await relay.relay(envelope, raw(envelope))

        assert result.outcomes == []
        assert result.ignored == 1
        assert upstreams.requests == []

    @pytest.mark.asyncio
    async def test_filter_logging_follows_relay_level(self, settings, http_client, upstreams, caplog):
        relay = Relay(settings, http_client, level=LogLevel.WARNING)
        caplog.set_level("DEBUG", logger="whgateway.filter")
        envelope = status_envelope()

        result = await relay.relay(envelope, raw(envelope))

        assert result.ignored == 1
        assert "Ignored non-message event" not in caplog.text


class TestRelayFailures:
    """Failures become outcomes and never raise."""

    @pytest.mark.asyncio
    async def test_downstream_500_is_recorded(self, relay, upstreams, metrics, caplog):
        upstreams.forward_status = 500
        envelope = message_envelope("hi")

        result = await relay.relay(envelope, raw(envelope))

        outcome = result.outcomes[0]
        assert outcome.status == OutcomeStatus.FAILED
        assert outcome.status_code == 500
        assert isinstance(outcome.error, ForwardError)
        assert len(upstreams.forward_requests) == 1
        assert metrics.get_value("whgateway_changes_total", outcome="failed") == 1
        assert "Error forwarding event" in caplog.text

    @pytest.mark.asyncio
    async def test_downstream_unreachable(self, relay, upstreams):
        upstreams.fail(DOWNSTREAM_HOST)
        envelope = message_envelope("hi")

        result = await relay.relay(envelope, raw(envelope))

        assert result.failed == 1
        assert isinstance(result.outcomes[0].error, ForwardError)
        assert result.outcomes[0].status_code is None

    @pytest.mark.asyncio
    async def test_token_failure_skips_forward(self, relay, upstreams):
        upstreams.token_status = 503
        envelope = message_envelope("hi")

        result = await relay.relay(envelope, raw(envelope))

        assert result.failed == 1
        assert isinstance(result.outcomes[0].error, CredentialError)
        assert upstreams.forward_requests == []

    @pytest.mark.asyncio
    async def test_failure_does_not_stop_later_changes(self, relay, upstreams):
        upstreams.forward_status = 502
        envelope = message_envelope("a", "b")

        result = await relay.relay(envelope, raw(envelope))

        assert result.failed == 2
        assert len(upstreams.forward_requests) == 2

    @pytest.mark.asyncio
    async def test_missing_webhook_url(self, settings, http_client, upstreams):
        settings = settings.model_copy(update={"external_webhook_url": None})
        relay = Relay(settings, http_client)
        envelope = message_envelope("hi")

        result = await relay.relay(envelope, raw(envelope))

        assert result.failed == 1
        assert "EXTERNAL_WEBHOOK_URL" in str(result.outcomes[0].error)
        assert upstreams.forward_requests == []

    @pytest.mark.asyncio
    async def test_no_retries(self, relay, upstreams):
        upstreams.forward_status = 503
        envelope = message_envelope("hi")

        await relay.relay(envelope, raw(envelope))

        assert len(upstreams.auth_requests) == 1
        assert len(upstreams.forward_requests) == 1
