"""
OAuth2 Client Credentials - Exchange a client id/secret for a bearer token.

Provides:
- Access token model
- Token acquisition against a configured token endpoint

Tokens are fetched fresh for every forward and never cached.
"""

from typing import Dict, Any, Optional
from dataclasses import dataclass
import httpx

from whgateway.core.config import Settings
from whgateway.core.exceptions import CredentialError
from whgateway.logging import LogLevel, get_logger


@dataclass
class AccessToken:
    """OAuth2 access token returned by the authorization server."""

    access_token: str
    """Access token"""

    token_type: str = "Bearer"
    """Token type"""

    expires_in: Optional[int] = None
    """Token lifetime in seconds, as reported (not tracked)"""

    @property
    def authorization_header(self) -> str:
        """Value for the ``Authorization`` header."""
        return f"Bearer {self.access_token}"

    @classmethod
    def from_response(cls, data: Dict[str, Any]) -> "AccessToken":
        """
        Build a token from a token endpoint JSON body.

        Raises:
            KeyError: If ``access_token`` is absent, not a string, or empty
        """
        access_token = data["access_token"]
        if not isinstance(access_token, str) or not access_token:
            raise KeyError("access_token")

        return cls(
            access_token=access_token,
            token_type=data.get("token_type", "Bearer"),
            expires_in=data.get("expires_in"),
        )


class ClientCredentialsProvider:
    """
    Credential provider using the OAuth2 client-credentials grant.

    Example:
        >>> provider = ClientCredentialsProvider(settings, http_client)
        >>> token = await provider.acquire()
        >>> headers = {"Authorization": token.authorization_header}
    """

    def __init__(
        self,
        settings: Settings,
        http_client: httpx.AsyncClient,
        level: LogLevel = LogLevel.INFO
    ):
        """
        Initialize credential provider.

        Args:
            settings: Gateway settings (token URL, grant type, client id/secret)
            http_client: Shared async HTTP client
            level: Logging level
        """
        self.settings = settings
        self.http_client = http_client
        self.logger = get_logger("whgateway.oauth2", level)

    def _form_data(self) -> Dict[str, str]:
        return {
            "grant_type": self.settings.grant_type,
            "client_id": self.settings.client_id or "",
            "client_secret": self.settings.client_secret or "",
        }

    async def acquire(self) -> AccessToken:
        """
        Request a new access token.

        Returns:
            Access token

        Raises:
            CredentialError: If the request fails, the server answers with a
                non-2xx status, or the body has no ``access_token``
        """
        if not self.settings.auth_url:
            raise CredentialError("AUTH_URL is not configured")

        try:
            response = await self.http_client.post(
                self.settings.auth_url,
                data=self._form_data(),
                headers={"Content-Type": "application/x-www-form-urlencoded"},
                timeout=self.settings.request_timeout,
            )
        except httpx.HTTPError as e:
            raise CredentialError(f"{e.__class__.__name__}: {e}", cause=e) from e

        if not response.is_success:
            raise CredentialError(
                f"{response.status_code} - {response.text}",
                status_code=response.status_code
            )

        try:
            token = AccessToken.from_response(response.json())
        except (ValueError, KeyError, TypeError) as e:
            raise CredentialError(
                "response has no access_token",
                status_code=response.status_code,
                cause=e
            ) from e

        self.logger.debug("Obtained access token", token_type=token.token_type)

        return token
