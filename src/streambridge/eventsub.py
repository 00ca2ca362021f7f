"""Twitch EventSub helpers.

Decodes the `event` object of an EventSub notification into one variant per
subscription type the bridge understands, and verifies the HMAC signature
Twitch attaches to every delivery.
"""

from __future__ import annotations

import hashlib
import hmac
from dataclasses import dataclass
from typing import Any, Union

SUBSCRIBE = "channel.subscribe"
SUBSCRIPTION_GIFT = "channel.subscription.gift"
REWARD_REDEMPTION = "channel.channel_points_custom_reward_redemption.add"

# Twitch-Eventsub-Message-Type values
VERIFICATION = "webhook_callback_verification"
NOTIFICATION = "notification"
REVOCATION = "revocation"


@dataclass(frozen=True)
class SubscribeEvent:
    user_name: str


@dataclass(frozen=True)
class GiftEvent:
    user_name: str
    total: int


@dataclass(frozen=True)
class RedemptionEvent:
    user_name: str
    reward_title: str


@dataclass(frozen=True)
class UnrecognizedEvent:
    subscription_type: str
    reason: str


DecodedEvent = Union[SubscribeEvent, GiftEvent, RedemptionEvent, UnrecognizedEvent]


def _str_field(obj: Any, key: str) -> str | None:
    if not isinstance(obj, dict):
        return None
    value = obj.get(key)
    return value if isinstance(value, str) else None


def decode_event(subscription_type: str, event: Any) -> DecodedEvent:
    """Decode a raw `event` object for `subscription_type`.

    Never raises: unknown types and malformed events decode to
    UnrecognizedEvent with a short reason.
    """
    if subscription_type not in (SUBSCRIBE, SUBSCRIPTION_GIFT, REWARD_REDEMPTION):
        return UnrecognizedEvent(subscription_type, "unsupported type")

    user_name = _str_field(event, "user_name")
    if user_name is None:
        return UnrecognizedEvent(subscription_type, "missing user_name")

    if subscription_type == SUBSCRIBE:
        return SubscribeEvent(user_name=user_name)

    if subscription_type == SUBSCRIPTION_GIFT:
        total = event.get("total")
        # bool is an int subclass; JSON true is not a count
        if isinstance(total, bool) or not isinstance(total, int) or total < 0:
            return UnrecognizedEvent(subscription_type, "missing total")
        return GiftEvent(user_name=user_name, total=total)

    title = _str_field(event.get("reward"), "title")
    if title is None:
        return UnrecognizedEvent(subscription_type, "missing reward.title")
    return RedemptionEvent(user_name=user_name, reward_title=title)


def verify_signature(
    secret: str, message_id: str, timestamp: str, body: bytes, signature: str
) -> bool:
    """Verify the `Twitch-Eventsub-Message-Signature` header.

    The header is `sha256=<hex>` where the HMAC is computed over
    message_id + timestamp + raw body with the subscription secret.
    """
    if not secret or not signature or not signature.startswith("sha256="):
        return False
    sig_hex = signature.split("=", 1)[1]

    mac = hmac.new(secret.encode("utf-8"), digestmod=hashlib.sha256)
    mac.update(message_id.encode("utf-8"))
    mac.update(timestamp.encode("utf-8"))
    mac.update(body)
    return hmac.compare_digest(mac.hexdigest(), sig_hex)
