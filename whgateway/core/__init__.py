"""
Gateway core.

- Exception hierarchy with error codes
- Environment-sourced settings
- Relay metrics
"""

from whgateway.core.exceptions import (
    GatewayError,
    ErrorCode,
    ConfigurationError,
    CredentialError,
    ForwardError,
)

from whgateway.core.config import (
    Settings,
    get_settings,
    reset_settings,
)

from whgateway.core.observability import RelayMetrics

__all__ = [
    # Exceptions
    "GatewayError",
    "ErrorCode",
    "ConfigurationError",
    "CredentialError",
    "ForwardError",

    # Configuration
    "Settings",
    "get_settings",
    "reset_settings",

    # Observability
    "RelayMetrics",
]
