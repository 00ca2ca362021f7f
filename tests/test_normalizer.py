import pytest

from streambridge.models import Alert
from streambridge.normalizer import (
    normalize_push_notification,
    normalize_subscription_event,
)


def test_subscribe_event():
    alert = normalize_subscription_event("channel.subscribe", {"user_name": "Ada"})
    assert alert == Alert(
        platform="twitch",
        alert_type="sub",
        user_name="Ada",
        message="Ada just subscribed!",
    )


def test_gift_event_carries_count():
    alert = normalize_subscription_event(
        "channel.subscription.gift", {"user_name": "Bob", "total": 5}
    )
    assert alert is not None
    assert alert.alert_type == "gift"
    assert alert.message == "Bob gifted 5 subscriptions!"
    assert alert.count == 5
    assert alert.amount is None and alert.currency is None


def test_redemption_event():
    alert = normalize_subscription_event(
        "channel.channel_points_custom_reward_redemption.add",
        {"user_name": "Cy", "reward": {"title": "Hydrate", "cost": 100}},
    )
    assert alert is not None
    assert alert.alert_type == "redemption"
    assert alert.message == "Cy redeemed Hydrate!"
    assert alert.count is None


def test_unsupported_type_is_dropped():
    assert normalize_subscription_event("channel.follow", {"user_name": "Ada"}) is None
    assert normalize_subscription_event("", {}) is None


@pytest.mark.parametrize(
    "sub_type, event",
    [
        ("channel.subscribe", {}),
        ("channel.subscribe", {"user_name": 42}),
        ("channel.subscribe", None),
        ("channel.subscribe", ["user_name"]),
        ("channel.subscription.gift", {"user_name": "Bob"}),
        ("channel.subscription.gift", {"user_name": "Bob", "total": -1}),
        ("channel.subscription.gift", {"user_name": "Bob", "total": "5"}),
        ("channel.subscription.gift", {"user_name": "Bob", "total": True}),
        ("channel.channel_points_custom_reward_redemption.add", {"user_name": "Cy"}),
        (
            "channel.channel_points_custom_reward_redemption.add",
            {"user_name": "Cy", "reward": "Hydrate"},
        ),
    ],
)
def test_malformed_events_are_dropped(sub_type, event):
    assert normalize_subscription_event(sub_type, event) is None


def test_push_notification_with_video_entry():
    body = (
        '<feed xmlns:yt="http://www.youtube.com/xml/schemas/2015">'
        "<entry><yt:videoId>dQw4w9WgXcQ</yt:videoId></entry></feed>"
    )
    alert = normalize_push_notification(body)
    assert alert is not None
    assert alert.platform == "youtube"
    assert alert.alert_type == "live"
    assert alert.user_name == "Channel"
    assert alert.message == "A new stream or video is live!"


def test_push_notification_without_marker():
    assert normalize_push_notification("") is None
    assert normalize_push_notification("<feed><entry></entry></feed>") is None
    # deleted-entry notifications carry no videoId element
    assert normalize_push_notification("<at:deleted-entry ref='yt:video:abc'/>") is None
