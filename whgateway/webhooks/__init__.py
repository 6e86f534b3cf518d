"""
Gateway Webhooks - Receive WhatsApp webhooks and relay message events.

Provides:
- Webhook receiver server
- Message event filter
- Relay to the downstream webhook
"""

from whgateway.webhooks.filter import should_forward, message_changes, iter_changes
from whgateway.webhooks.relay import Relay, RelayResult, RelayOutcome, OutcomeStatus
from whgateway.webhooks.server import WebhookServer, create_app


__all__ = [
    "should_forward",
    "message_changes",
    "iter_changes",
    "Relay",
    "RelayResult",
    "RelayOutcome",
    "OutcomeStatus",
    "WebhookServer",
    "create_app",
]
