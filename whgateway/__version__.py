"""Version information for WhatsApp Webhook Gateway."""

__version__ = "0.1.0"
__title__ = "whgateway"
__description__ = "Relay WhatsApp Cloud API message webhooks to an OAuth2-protected endpoint"
