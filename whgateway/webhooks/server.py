"""
Webhook Server - Receive WhatsApp Cloud API webhooks over HTTP.

Provides:
- Subscription verification handshake (GET /)
- Event ingestion with unconditional acknowledgment (POST /)
- Health check and Prometheus metrics
"""

from typing import Optional
from contextlib import asynccontextmanager
from datetime import datetime, timezone
import hmac
import json
import time

import httpx
from fastapi import FastAPI, Query, Request, Response
from fastapi.responses import PlainTextResponse

from whgateway.__version__ import __version__
from whgateway.core.config import Settings, get_settings
from whgateway.core.exceptions import ErrorCode
from whgateway.core.observability import RelayMetrics
from whgateway.logging import LogLevel, get_logger
from whgateway.webhooks.relay import Relay

SUBSCRIBE_MODE = "subscribe"


class WebhookServer:
    """
    HTTP server for the WhatsApp webhook gateway.

    Features:
    - FastAPI-based server
    - Verification handshake against the configured verify token
    - Relay of user-message events to the downstream webhook
    - Logging and metrics

    Example:
        >>> server = WebhookServer(get_settings())
        >>> app = server.get_app()
    """

    def __init__(
        self,
        settings: Settings,
        http_client: Optional[httpx.AsyncClient] = None,
        metrics: Optional[RelayMetrics] = None
    ):
        """
        Initialize webhook server.

        Args:
            settings: Gateway settings
            http_client: Outbound HTTP client (created and owned if omitted)
            metrics: Metrics collector (a fresh registry if omitted)
        """
        self.settings = settings
        self._owns_client = http_client is None
        self.http_client = http_client or httpx.AsyncClient(
            timeout=settings.request_timeout
        )
        self.metrics = metrics or RelayMetrics()

        level = LogLevel(settings.log_level.lower())
        self.logger = get_logger("whgateway.server", level)
        self.relay = Relay(
            settings,
            self.http_client,
            metrics=self.metrics,
            level=level
        )

        self.app = FastAPI(
            title="WhatsApp Webhook Gateway",
            version=__version__,
            lifespan=self._lifespan
        )

        # Setup routes
        self._setup_routes()

    @asynccontextmanager
    async def _lifespan(self, app: FastAPI):
        missing = self.settings.missing_fields()
        if missing:
            self.logger.warning("Configuration incomplete", missing=missing)

        self.logger.info(
            "Gateway ready",
            host=self.settings.host,
            port=self.settings.port
        )

        yield

        if self._owns_client:
            await self.http_client.aclose()

        self.logger.info("Gateway stopped")

    def verify(self, mode: Optional[str], token: Optional[str]) -> bool:
        """
        Check a subscription verification request.

        Args:
            mode: ``hub.mode`` query value
            token: ``hub.verify_token`` query value

        Returns:
            True if mode is "subscribe" and the token matches the configured one
        """
        expected = self.settings.verify_token
        if mode != SUBSCRIBE_MODE or not expected or token is None:
            return False

        return hmac.compare_digest(token.encode(), expected.encode())

    def _setup_routes(self):
        """Setup FastAPI routes."""

        @self.app.get("/")
        async def verify_subscription(
            mode: Optional[str] = Query(None, alias="hub.mode"),
            challenge: Optional[str] = Query(None, alias="hub.challenge"),
            token: Optional[str] = Query(None, alias="hub.verify_token"),
        ):
            """Answer the webhook subscription handshake."""
            accepted = self.verify(mode, token)
            self.metrics.record_verification(accepted)

            if accepted:
                self.logger.info("WEBHOOK VERIFIED")
                return PlainTextResponse(challenge or "", status_code=200)

            self.logger.warning(
                "Webhook verification rejected",
                code=ErrorCode.VERIFICATION_FAILED.value,
                mode=mode
            )
            return Response(status_code=403)

        @self.app.post("/")
        async def receive_webhook(request: Request):
            """Receive an event and acknowledge it whatever the relay outcome."""
            body = await request.body()
            self.metrics.record_event()

            received_at = datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M:%S")
            self.logger.info(
                "Webhook received",
                received_at=received_at,
                size=len(body)
            )

            try:
                envelope = json.loads(body)
            except (ValueError, RecursionError):
                self.logger.warning("Webhook body is not valid JSON, nothing to forward")
                return Response(status_code=200)

            try:
                if self.logger.is_enabled_for(LogLevel.DEBUG):
                    self.logger.debug("Webhook payload", payload=json.dumps(envelope, indent=2))

                result = await self.relay.relay(envelope, body)
            except Exception as e:
                self.logger.error(f"Error processing webhook: {e}")
            else:
                self.logger.info("Webhook processed", **result.summary())

            return Response(status_code=200)

        @self.app.get("/health")
        async def health_check():
            """Health check endpoint."""
            return {"status": "healthy", "timestamp": time.time()}

        @self.app.get("/metrics")
        async def metrics():
            """Prometheus metrics endpoint."""
            return Response(
                content=self.metrics.render(),
                media_type=self.metrics.content_type
            )

    def get_app(self) -> FastAPI:
        """Get the FastAPI application."""
        return self.app


def create_app(
    settings: Optional[Settings] = None,
    http_client: Optional[httpx.AsyncClient] = None,
    metrics: Optional[RelayMetrics] = None
) -> FastAPI:
    """
    Create the gateway application.

    Args:
        settings: Gateway settings (process-wide settings by default)
        http_client: Outbound HTTP client (owned by the app if omitted)
        metrics: Metrics collector

    Returns:
        FastAPI app
    """
    server = WebhookServer(settings or get_settings(), http_client, metrics)
    return server.get_app()
