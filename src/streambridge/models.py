from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional

TWITCH = "twitch"
YOUTUBE = "youtube"

ALERT_SUB = "sub"
ALERT_GIFT = "gift"
ALERT_REDEMPTION = "redemption"
ALERT_LIVE = "live"


@dataclass(frozen=True)
class Alert:
    """Canonical alert produced from a platform notification.

    Alerts carry no identity; the same notification delivered twice yields
    two equal alerts.
    """

    platform: str
    alert_type: str
    user_name: str
    message: str
    amount: Optional[str] = None
    currency: Optional[str] = None
    count: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "platform": self.platform,
            "alert_type": self.alert_type,
            "user_name": self.user_name,
            "message": self.message,
            "amount": self.amount,
            "currency": self.currency,
            "count": self.count,
        }


@dataclass(frozen=True)
class OAuthResult:
    """Outcome of a sign-in attempt, successful (token) or not (error)."""

    token: str
    service: str
    error: Optional[str] = None
    refresh_token: Optional[str] = None
    expires_in: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        # the desktop UI keys its listeners on "<service>-oauth-callback"
        return {
            "type": f"{self.service}-oauth-callback",
            "token": self.token,
            "service": self.service,
            "error": self.error,
            "refresh_token": self.refresh_token,
            "expires_in": self.expires_in,
        }


@dataclass(frozen=True)
class TokenGrant:
    access_token: str
    expires_in: int
    token_type: str = "Bearer"
    refresh_token: Optional[str] = None
    scope: Optional[str] = None

    @classmethod
    def from_payload(cls, payload: Any) -> "TokenGrant":
        """Build a grant from a decoded token-endpoint response.

        Raises ValueError when the payload is not a grant.
        """
        if not isinstance(payload, dict):
            raise ValueError("token response is not a JSON object")
        access_token = payload.get("access_token")
        if not isinstance(access_token, str) or not access_token:
            raise ValueError("token response has no access_token")
        expires_in = payload.get("expires_in")
        if expires_in is None:
            raise ValueError("token response has no expires_in")
        # bool is an int subclass; strings and floats are not lifetimes
        if isinstance(expires_in, bool) or not isinstance(expires_in, int):
            raise ValueError("expires_in must be an integer")
        refresh_token = payload.get("refresh_token")
        scope = payload.get("scope")
        return cls(
            access_token=access_token,
            expires_in=expires_in,
            token_type=str(payload.get("token_type") or "Bearer"),
            refresh_token=refresh_token if isinstance(refresh_token, str) else None,
            scope=scope if isinstance(scope, str) else None,
        )

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            "access_token": self.access_token,
            "expires_in": self.expires_in,
            "token_type": self.token_type,
        }
        if self.refresh_token is not None:
            out["refresh_token"] = self.refresh_token
        if self.scope is not None:
            out["scope"] = self.scope
        return out
