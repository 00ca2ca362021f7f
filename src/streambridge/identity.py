from __future__ import annotations

import logging
from typing import Optional

import httpx

from .config import Config
from .models import TokenGrant

logger = logging.getLogger(__name__)


class ExchangeError(Exception):
    """Base class for failed token-endpoint exchanges."""

    kind = "exchange"


class UpstreamStatusError(ExchangeError):
    kind = "upstream_status"

    def __init__(self, status: int, body: str) -> None:
        super().__init__(f"token endpoint returned {status}")
        self.status = status
        self.body = body


class TransportError(ExchangeError):
    kind = "transport"

    def __init__(self, detail: str, timeout: bool = False) -> None:
        super().__init__(detail)
        self.timeout = timeout


class DecodeError(ExchangeError):
    kind = "decode"


class IdentityClient:
    """OAuth2 token-endpoint client for the authorization-code platform.

    Performs the two grant exchanges the desktop app needs:
    - authorization code -> grant, after the browser redirect lands
    - refresh token -> grant, for silent renewal

    The client only talks to the token endpoint; publishing results is the
    caller's job. Pass `transport` (e.g. `httpx.MockTransport`) to stub the
    endpoint in tests.
    """

    def __init__(
        self,
        client_id: str,
        client_secret: str,
        redirect_uri: str,
        token_url: str,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.client_id = client_id
        self.client_secret = client_secret
        self.redirect_uri = redirect_uri
        self.token_url = token_url
        self.timeout = timeout
        self._transport = transport

    @classmethod
    def from_config(
        cls, config: Config, transport: Optional[httpx.AsyncBaseTransport] = None
    ) -> "IdentityClient":
        return cls(
            client_id=config.client_id,
            client_secret=config.client_secret,
            redirect_uri=config.redirect_uri,
            token_url=config.token_url,
            timeout=config.exchange_timeout,
            transport=transport,
        )

    async def exchange_code(self, code: str) -> TokenGrant:
        return await self._request_grant(
            {
                "grant_type": "authorization_code",
                "code": code,
                "redirect_uri": self.redirect_uri,
            }
        )

    async def refresh(self, refresh_token: str) -> TokenGrant:
        return await self._request_grant(
            {"grant_type": "refresh_token", "refresh_token": refresh_token}
        )

    async def _request_grant(self, form: dict) -> TokenGrant:
        data = {
            "client_id": self.client_id,
            "client_secret": self.client_secret,
            **form,
        }
        grant_type = form["grant_type"]

        try:
            async with httpx.AsyncClient(
                timeout=self.timeout, transport=self._transport
            ) as client:
                resp = await client.post(self.token_url, data=data)
        except httpx.TimeoutException as exc:
            logger.error("token exchange (%s) timed out: %r", grant_type, exc)
            raise TransportError(f"token endpoint timed out: {exc}", timeout=True) from exc
        except httpx.TransportError as exc:
            logger.error("token exchange (%s) transport failure: %r", grant_type, exc)
            raise TransportError(f"token endpoint unreachable: {exc}") from exc

        if not resp.is_success:
            logger.error(
                "token exchange (%s) failed: status=%s", grant_type, resp.status_code
            )
            logger.debug("token endpoint response: %s", resp.text)
            raise UpstreamStatusError(resp.status_code, resp.text)

        try:
            payload = resp.json()
        except ValueError as exc:
            raise DecodeError(f"token response is not JSON: {exc}") from exc
        try:
            grant = TokenGrant.from_payload(payload)
        except ValueError as exc:
            raise DecodeError(str(exc)) from exc

        logger.info(
            "token exchange (%s) succeeded; refresh token present: %s",
            grant_type,
            grant.refresh_token is not None,
        )
        return grant
