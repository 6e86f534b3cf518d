"""
WhatsApp Webhook Gateway

Receives WhatsApp Cloud API webhooks, keeps the user-message events and
forwards them to a downstream endpoint behind an OAuth2 client-credentials
token.
"""

from whgateway.__version__ import __version__, __title__, __description__
from whgateway.core.config import Settings, get_settings
from whgateway.webhooks.server import create_app

__all__ = [
    "__version__",
    "__title__",
    "__description__",
    "Settings",
    "get_settings",
    "create_app",
]
