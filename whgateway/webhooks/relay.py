"""
Relay - Forward qualifying webhook envelopes to the downstream endpoint.

For every change carrying user messages the relay fetches a fresh access
token and POSTs the original body to the configured webhook URL. Failures
are turned into outcomes and logged; they never reach the caller, so the
upstream platform is acknowledged regardless of downstream availability.
"""

from typing import Any, List, Optional
from dataclasses import dataclass, field
from enum import Enum
import json
import time
import httpx

from whgateway.auth.oauth import ClientCredentialsProvider
from whgateway.core.config import Settings
from whgateway.core.exceptions import GatewayError, ForwardError
from whgateway.core.observability import RelayMetrics
from whgateway.logging import LogLevel, get_logger
from whgateway.webhooks.filter import iter_changes, message_changes


class OutcomeStatus(str, Enum):
    """What happened to one qualifying change."""
    FORWARDED = "forwarded"
    FAILED = "failed"


@dataclass
class RelayOutcome:
    """Result of forwarding the envelope for one qualifying change."""

    status: OutcomeStatus
    """Forwarded or failed"""

    status_code: Optional[int] = None
    """Downstream (or token endpoint) HTTP status, when known"""

    error: Optional[GatewayError] = None
    """Failure, if any"""

    duration_ms: float = 0.0
    """Token fetch plus forward time"""

    @property
    def ok(self) -> bool:
        return self.status == OutcomeStatus.FORWARDED


@dataclass
class RelayResult:
    """Outcomes of relaying one envelope."""

    outcomes: List[RelayOutcome] = field(default_factory=list)
    ignored: int = 0

    @property
    def forwarded(self) -> int:
        return sum(1 for o in self.outcomes if o.ok)

    @property
    def failed(self) -> int:
        return sum(1 for o in self.outcomes if not o.ok)

    def summary(self) -> dict:
        """Counts for logging."""
        return {
            "forwarded": self.forwarded,
            "failed": self.failed,
            "ignored": self.ignored,
        }


class Relay:
    """
    Forwards WhatsApp message events to an OAuth2-protected webhook.

    Example:
        >>> relay = Relay(settings, http_client)
        >>> result = await relay.relay(envelope, raw_body)
        >>> result.summary()
        {'forwarded': 1, 'failed': 0, 'ignored': 0}
    """

    def __init__(
        self,
        settings: Settings,
        http_client: httpx.AsyncClient,
        credentials: Optional[ClientCredentialsProvider] = None,
        metrics: Optional[RelayMetrics] = None,
        level: LogLevel = LogLevel.INFO
    ):
        """
        Initialize relay.

        Args:
            settings: Gateway settings
            http_client: Shared async HTTP client
            credentials: Token provider (built from settings by default)
            metrics: Metrics collector (a private one by default)
            level: Logging level
        """
        self.settings = settings
        self.http_client = http_client
        self.credentials = credentials or ClientCredentialsProvider(
            settings, http_client, level
        )
        self.metrics = metrics or RelayMetrics()
        self.logger = get_logger("whgateway.relay", level)
        self.filter_logger = get_logger("whgateway.filter", level)

    async def relay(self, envelope: Any, raw_body: Optional[bytes] = None) -> RelayResult:
        """
        Forward the envelope once per change that carries user messages.

        Args:
            envelope: Parsed webhook body
            raw_body: Exact bytes received; forwarded as-is. When omitted the
                envelope is JSON-encoded.

        Returns:
            Relay result (never raises for relay failures)
        """
        result = RelayResult()

        matched = message_changes(envelope, self.filter_logger)
        result.ignored = sum(1 for _ in iter_changes(envelope)) - len(matched)
        self.metrics.record_change("ignored", result.ignored)

        if not matched:
            return result

        body = raw_body if raw_body is not None else json.dumps(envelope).encode()

        for _ in matched:
            self.logger.info("Forwarding WhatsApp message")
            outcome = await self._forward_change(body)
            result.outcomes.append(outcome)
            self.metrics.record_change(outcome.status.value)

        return result

    async def _forward_change(self, body: bytes) -> RelayOutcome:
        start = time.perf_counter()

        try:
            token = await self.credentials.acquire()
            status_code = await self.forward(body, token.authorization_header)
        except GatewayError as e:
            duration = time.perf_counter() - start
            self.metrics.observe_forward(duration)
            self.logger.error("Error forwarding event", error=e.to_dict())
            return RelayOutcome(
                status=OutcomeStatus.FAILED,
                status_code=getattr(e, "status_code", None),
                error=e,
                duration_ms=duration * 1000
            )

        duration = time.perf_counter() - start
        self.metrics.observe_forward(duration)
        self.logger.info(
            "Event forwarded successfully",
            status_code=status_code,
            duration_ms=round(duration * 1000, 2)
        )

        return RelayOutcome(
            status=OutcomeStatus.FORWARDED,
            status_code=status_code,
            duration_ms=duration * 1000
        )

    async def forward(self, body: bytes, authorization: str) -> int:
        """
        POST the body to the downstream webhook.

        Args:
            body: Request body bytes
            authorization: ``Authorization`` header value

        Returns:
            Downstream HTTP status code

        Raises:
            ForwardError: On transport failure or non-2xx response
        """
        url = self.settings.external_webhook_url
        if not url:
            raise ForwardError("EXTERNAL_WEBHOOK_URL is not configured")

        try:
            response = await self.http_client.post(
                url,
                content=body,
                headers={
                    "Content-Type": "application/json",
                    "Authorization": authorization,
                },
                timeout=self.settings.request_timeout,
            )
        except httpx.HTTPError as e:
            raise ForwardError(f"{e.__class__.__name__}: {e}", cause=e) from e

        if not response.is_success:
            raise ForwardError(
                f"{response.status_code} - {response.text}",
                status_code=response.status_code
            )

        return response.status_code
