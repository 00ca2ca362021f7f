from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, Callable, Dict, List, Optional, Protocol

from fastapi import WebSocket

from .bus import Empty, Lagged, Subscription, Topic, TopicClosed
from .models import Alert, OAuthResult

logger = logging.getLogger(__name__)

OAUTH_TOPIC = "oauth-events"
ALERT_TOPIC = "alert-events"

# event names the desktop UI listens for
OAUTH_EVENT = "auth-callback"
ALERT_EVENT = "alert"


class NotificationSink(Protocol):
    async def emit(self, event: str, payload: Dict[str, Any]) -> None: ...


class BroadcastManager:
    """Host-application sink backed by connected WebSocket clients.

    Every emitted event is sent to all clients as
    `{"event": <name>, "payload": {...}}`. Clients whose send fails are
    dropped.
    """

    def __init__(self) -> None:
        self.active: List[WebSocket] = []
        self.lock = asyncio.Lock()

    async def connect(self, ws: WebSocket) -> None:
        await ws.accept()
        async with self.lock:
            self.active.append(ws)
        logger.info("host client connected (%d active)", len(self.active))

    async def disconnect(self, ws: WebSocket) -> None:
        async with self.lock:
            if ws in self.active:
                self.active.remove(ws)
        logger.info("host client disconnected (%d active)", len(self.active))

    async def broadcast(self, message: dict) -> None:
        text = json.dumps(message)
        async with self.lock:
            to_remove: List[WebSocket] = []
            for ws in list(self.active):
                try:
                    await ws.send_text(text)
                except Exception as exc:
                    logger.warning("dropping host client after failed send: %r", exc)
                    to_remove.append(ws)
            for ws in to_remove:
                if ws in self.active:
                    self.active.remove(ws)

    async def emit(self, event: str, payload: Dict[str, Any]) -> None:
        if not self.active:
            logger.debug("no host client connected; %s event not delivered", event)
        await self.broadcast({"event": event, "payload": payload})


async def forward(
    topic: Topic[Any],
    sink: NotificationSink,
    event_name: str,
    translate: Callable[[Any], Dict[str, Any]],
    subscription: Optional[Subscription[Any]] = None,
) -> None:
    """Deliver every message on `topic` to `sink` until the topic closes.

    A lagging subscription is replaced with a fresh one. Only the overflowed
    messages are lost: whatever the old subscription still buffered is taken
    before the swap and delivered first, then delivery continues with the
    next published message. Pass `subscription` to start from a subscription
    taken before the task was scheduled.
    """

    async def deliver(message: Any) -> None:
        try:
            await sink.emit(event_name, translate(message))
        except Exception:
            logger.exception("failed to deliver %s event to host", event_name)

    sub = subscription if subscription is not None else topic.subscribe()
    try:
        while True:
            try:
                message = await sub.recv()
            except Lagged as exc:
                # no await between draining and resubscribing: nothing
                # published meanwhile can be missed or seen twice
                backlog = drain(sub)
                logger.warning(
                    "%s forwarder lagged, %d message(s) lost; resubscribing",
                    topic.name,
                    exc.skipped,
                )
                sub.close()
                sub = topic.subscribe()
                for message in backlog:
                    await deliver(message)
                continue
            except TopicClosed:
                logger.info("%s closed; forwarder stopping", topic.name)
                return

            await deliver(message)
    finally:
        sub.close()


def drain(sub: Subscription[Any]) -> List[Any]:
    """Take every message currently buffered in `sub` without waiting."""
    out: List[Any] = []
    while True:
        try:
            out.append(sub.try_recv())
        except (Empty, TopicClosed):
            return out
        except Lagged:
            continue


def start_forwarders(
    oauth_topic: Topic[OAuthResult],
    alert_topic: Topic[Alert],
    sink: NotificationSink,
) -> List[asyncio.Task]:
    """Spawn one forwarding task per topic on the running loop.

    Subscriptions are taken here, before the tasks first run, so nothing
    published right after startup is missed.
    """
    return [
        asyncio.create_task(
            forward(
                oauth_topic,
                sink,
                OAUTH_EVENT,
                OAuthResult.to_dict,
                subscription=oauth_topic.subscribe(),
            ),
            name=f"{oauth_topic.name}-forwarder",
        ),
        asyncio.create_task(
            forward(
                alert_topic,
                sink,
                ALERT_EVENT,
                Alert.to_dict,
                subscription=alert_topic.subscribe(),
            ),
            name=f"{alert_topic.name}-forwarder",
        ),
    ]
