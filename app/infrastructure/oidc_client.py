"""OpenID Connect client for the identity provider (Keycloak).

Covers the relying-party side only: discovery, JWKS retrieval, building the
authorization redirect and exchanging the authorization code for tokens.
"""

import time
from functools import lru_cache
from typing import Any, Dict, Optional
from urllib.parse import urlencode

import httpx
import structlog

from app.config import get_settings

settings = get_settings()
logger = structlog.get_logger(__name__)

HTTP_TIMEOUT = 10.0  # seconds
JWKS_REFRESH_INTERVAL = 60.0  # seconds between refetches triggered by unknown key ids


class OIDCProviderError(Exception):
    """The identity provider could not be reached or answered with an error."""


class OIDCClient:
    """Client for one OIDC registration.

    Provider metadata and the JWKS are fetched lazily and kept for the life
    of the process; the JWKS is refetched when a token names an unknown key.
    """

    def __init__(self, issuer_uri: str, client_id: str, client_secret: str, scopes: list[str]):
        self.issuer_uri = issuer_uri.rstrip("/")
        self.client_id = client_id
        self.client_secret = client_secret
        self.scopes = scopes
        self._metadata: Optional[Dict[str, Any]] = None
        self._jwks: Optional[Dict[str, Any]] = None
        self._jwks_loaded_at = 0.0

    async def _get_json(self, url: str) -> Dict[str, Any]:
        try:
            async with httpx.AsyncClient(timeout=HTTP_TIMEOUT) as client:
                response = await client.get(url)
                response.raise_for_status()
                return response.json()
        except httpx.HTTPError as e:
            raise OIDCProviderError(f"GET {url} failed: {e}") from e

    async def metadata(self) -> Dict[str, Any]:
        if self._metadata is None:
            self._metadata = await self._get_json(f"{self.issuer_uri}/.well-known/openid-configuration")
            logger.info("Loaded OIDC provider metadata", issuer=self.issuer_uri)
        return self._metadata

    async def jwks(self, kid: Optional[str] = None) -> Dict[str, Any]:
        """Signing keys.

        An unknown ``kid`` triggers a refetch (key rotation), at most once per
        ``JWKS_REFRESH_INTERVAL``. Within the interval the cached keys are
        returned and the token fails verification.
        """
        if self._jwks is None:
            await self._load_jwks()
        elif kid and not self._has_key(kid):
            if time.monotonic() - self._jwks_loaded_at < JWKS_REFRESH_INTERVAL:
                logger.info("Unknown signing key, refetch throttled", kid=kid)
            else:
                await self._load_jwks()
        return self._jwks

    async def _load_jwks(self) -> None:
        metadata = await self.metadata()
        self._jwks = await self._get_json(metadata["jwks_uri"])
        self._jwks_loaded_at = time.monotonic()
        logger.info("Loaded OIDC signing keys", keys=len(self._jwks.get("keys", [])))

    def _has_key(self, kid: str) -> bool:
        return any(key.get("kid") == kid for key in (self._jwks or {}).get("keys", []))

    async def authorization_url(self, redirect_uri: str, state: str, nonce: str) -> str:
        metadata = await self.metadata()
        params = {
            "client_id": self.client_id,
            "redirect_uri": redirect_uri,
            "response_type": "code",
            "scope": " ".join(self.scopes),
            "state": state,
            "nonce": nonce,
        }
        return f"{metadata['authorization_endpoint']}?{urlencode(params)}"

    async def exchange_code(self, code: str, redirect_uri: str) -> Dict[str, Any]:
        """Exchange an authorization code for access/refresh/id tokens."""
        metadata = await self.metadata()
        data = {
            "grant_type": "authorization_code",
            "code": code,
            "redirect_uri": redirect_uri,
            "client_id": self.client_id,
            "client_secret": self.client_secret,
        }
        try:
            async with httpx.AsyncClient(timeout=HTTP_TIMEOUT) as client:
                response = await client.post(metadata["token_endpoint"], data=data)
        except httpx.HTTPError as e:
            raise OIDCProviderError(f"Token request failed: {e}") from e

        if response.status_code != 200:
            try:
                error_data = response.json()
            except ValueError:
                error_data = {}
            error_msg = error_data.get("error_description", error_data.get("error", response.text))
            raise OIDCProviderError(f"Code exchange rejected: {error_msg}")
        return response.json()


@lru_cache
def get_oidc_client() -> OIDCClient:
    return OIDCClient(
        issuer_uri=settings.OIDC_ISSUER_URI,
        client_id=settings.OIDC_CLIENT_ID,
        client_secret=settings.OIDC_CLIENT_SECRET,
        scopes=settings.OIDC_SCOPES,
    )
