"""OAuth2 client-credentials token acquisition."""

from whgateway.auth.oauth import AccessToken, ClientCredentialsProvider

__all__ = ["AccessToken", "ClientCredentialsProvider"]
