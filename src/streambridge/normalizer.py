"""Map platform notifications to canonical alerts.

Both entry points are pure and never raise: anything the bridge does not
understand maps to None so the webhook is still acknowledged.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from .eventsub import (
    GiftEvent,
    RedemptionEvent,
    SubscribeEvent,
    UnrecognizedEvent,
    decode_event,
)
from .models import (
    ALERT_GIFT,
    ALERT_LIVE,
    ALERT_REDEMPTION,
    ALERT_SUB,
    TWITCH,
    YOUTUBE,
    Alert,
)

logger = logging.getLogger(__name__)

# PubSubHubbub Atom entries for a new upload or broadcast carry this element.
# The feed is not parsed; see normalize_push_notification.
VIDEO_ID_MARKER = "<yt:videoId>"
LIVE_PLACEHOLDER_USER = "Channel"
LIVE_MESSAGE = "A new stream or video is live!"


def normalize_subscription_event(subscription_type: str, event: Any) -> Optional[Alert]:
    decoded = decode_event(subscription_type, event)

    if isinstance(decoded, SubscribeEvent):
        return Alert(
            platform=TWITCH,
            alert_type=ALERT_SUB,
            user_name=decoded.user_name,
            message=f"{decoded.user_name} just subscribed!",
        )
    if isinstance(decoded, GiftEvent):
        return Alert(
            platform=TWITCH,
            alert_type=ALERT_GIFT,
            user_name=decoded.user_name,
            message=f"{decoded.user_name} gifted {decoded.total} subscriptions!",
            count=decoded.total,
        )
    if isinstance(decoded, RedemptionEvent):
        return Alert(
            platform=TWITCH,
            alert_type=ALERT_REDEMPTION,
            user_name=decoded.user_name,
            message=f"{decoded.user_name} redeemed {decoded.reward_title}!",
        )

    if isinstance(decoded, UnrecognizedEvent):
        logger.debug(
            "dropping eventsub event type=%s: %s",
            decoded.subscription_type,
            decoded.reason,
        )
    return None


def normalize_push_notification(body: str) -> Optional[Alert]:
    """Return a generic live alert if `body` looks like a video entry.

    Substring check only; the channel name is not extracted, so the alert
    uses a fixed placeholder user.
    """
    if not body or VIDEO_ID_MARKER not in body:
        return None
    return Alert(
        platform=YOUTUBE,
        alert_type=ALERT_LIVE,
        user_name=LIVE_PLACEHOLDER_USER,
        message=LIVE_MESSAGE,
    )
