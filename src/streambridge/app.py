from __future__ import annotations

import asyncio
import json
import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, Dict, Optional

from fastapi import FastAPI, Request, WebSocket, WebSocketDisconnect
from fastapi.responses import HTMLResponse, JSONResponse, PlainTextResponse

from . import eventsub
from .bus import Topic, TopicClosed
from .config import Config
from .forwarders import (
    ALERT_TOPIC,
    OAUTH_TOPIC,
    BroadcastManager,
    NotificationSink,
    start_forwarders,
)
from .identity import (
    DecodeError,
    ExchangeError,
    IdentityClient,
    TransportError,
    UpstreamStatusError,
)
from .models import TWITCH, YOUTUBE, Alert, OAuthResult
from .normalizer import normalize_push_notification, normalize_subscription_event

logger = logging.getLogger(__name__)

CALLBACK_PAGE = Path(__file__).parent / "static" / "oauth_callback.html"

# Twitch EventSub delivery headers
MESSAGE_TYPE_HEADER = "Twitch-Eventsub-Message-Type"
MESSAGE_ID_HEADER = "Twitch-Eventsub-Message-Id"
MESSAGE_TIMESTAMP_HEADER = "Twitch-Eventsub-Message-Timestamp"
MESSAGE_SIGNATURE_HEADER = "Twitch-Eventsub-Message-Signature"


def publish(topic: Topic[Any], message: Any) -> bool:
    """Fire-and-forget publish used by the request handlers.

    Returns False only when the topic is closed. Having no subscriber is
    logged and otherwise ignored.
    """
    try:
        delivered = topic.publish(message)
    except TopicClosed:
        logger.error("cannot publish to %s: topic closed", topic.name)
        return False
    if delivered == 0:
        logger.warning("no active subscriber on %s; message dropped", topic.name)
    return True


def exchange_error_response(exc: ExchangeError) -> JSONResponse:
    """Translate a failed token exchange into an HTTP error for the UI."""
    content: dict[str, Any] = {"error": exc.kind, "detail": str(exc)}
    if isinstance(exc, UpstreamStatusError):
        # provider rejections (bad code, revoked refresh token) pass through;
        # provider outages become a gateway error
        status = exc.status if 400 <= exc.status < 500 else 502
        content["upstream_status"] = exc.status
        content["upstream_body"] = exc.body
    elif isinstance(exc, TransportError):
        status = 504 if exc.timeout else 502
    elif isinstance(exc, DecodeError):
        status = 502
    else:
        status = 500
    return JSONResponse(status_code=status, content=content)


def create_app(
    config: Config | None = None,
    oauth_topic: Topic[OAuthResult] | None = None,
    alert_topic: Topic[Alert] | None = None,
    identity: IdentityClient | None = None,
    sink: NotificationSink | None = None,
) -> FastAPI:
    """Create the FastAPI app for the bridge.

    Topics, the identity client and the host sink may be injected; anything
    not supplied is built from `config` (or Config.from_env()). The app
    lifespan runs one forwarder per topic into the sink.
    """

    cfg = config or Config.from_env()
    oauth_topic = oauth_topic or Topic(OAUTH_TOPIC, cfg.topic_capacity)
    alert_topic = alert_topic or Topic(ALERT_TOPIC, cfg.topic_capacity)
    identity = identity or IdentityClient.from_config(cfg)
    bm = sink if sink is not None else BroadcastManager()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        tasks = start_forwarders(oauth_topic, alert_topic, bm)
        logger.info("bridge ready on http://%s:%s", cfg.host, cfg.port)
        try:
            yield
        finally:
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)

    app = FastAPI(lifespan=lifespan)
    app.state.config = cfg
    app.state.oauth_topic = oauth_topic
    app.state.alert_topic = alert_topic
    app.state.identity = identity
    app.state.sink = bm

    callback_html = CALLBACK_PAGE.read_text(encoding="utf-8")

    # --- OAuth ---------------------------------------------------------------
    @app.get("/callback")
    async def oauth_callback():
        """Redirect landing page; its script reports the token to /auth-complete."""
        return HTMLResponse(callback_html)

    @app.get("/auth-complete")
    async def auth_complete(request: Request):
        params = request.query_params
        token = params.get("token")
        service = params.get("service") or TWITCH
        logger.info("auth complete received for service: %s", service)
        logger.debug("token present: %s", bool(token))

        if not token:
            logger.error("missing token in auth complete")
            return PlainTextResponse("Missing token", status_code=400)

        expires_in: Optional[int] = None
        raw_expires = params.get("expires_in")
        if raw_expires:
            try:
                expires_in = int(raw_expires)
            except ValueError:
                return PlainTextResponse(
                    "expires_in must be an integer", status_code=400
                )

        result = OAuthResult(
            token=token,
            service=service,
            refresh_token=params.get("refresh_token") or None,
            expires_in=expires_in,
        )
        if not publish(oauth_topic, result):
            return PlainTextResponse("OAuth event channel closed", status_code=500)
        return PlainTextResponse("OK")

    @app.post("/oauth/youtube/exchange")
    async def exchange_code(payload: Dict[str, Any]):
        """Exchange an authorization code for a YouTube grant.

        Expected JSON: {"code": str}. Returns the grant on success and
        announces the sign-in on the OAuth topic.
        """
        code = payload.get("code")
        if not isinstance(code, str) or not code:
            return JSONResponse(status_code=400, content={"error": "code is required"})

        try:
            grant = await identity.exchange_code(code)
        except ExchangeError as exc:
            return exchange_error_response(exc)

        publish(
            oauth_topic,
            OAuthResult(
                token=grant.access_token,
                service=YOUTUBE,
                refresh_token=grant.refresh_token,
                expires_in=grant.expires_in,
            ),
        )
        return JSONResponse(grant.to_dict())

    @app.post("/oauth/youtube/refresh")
    async def refresh_token(payload: Dict[str, Any]):
        """Renew a YouTube grant. Expected JSON: {"refresh_token": str}.

        Refreshing is silent maintenance, so nothing is published.
        """
        token = payload.get("refresh_token")
        if not isinstance(token, str) or not token:
            return JSONResponse(
                status_code=400, content={"error": "refresh_token is required"}
            )

        try:
            grant = await identity.refresh(token)
        except ExchangeError as exc:
            return exchange_error_response(exc)
        return JSONResponse(grant.to_dict())

    # --- Twitch EventSub -----------------------------------------------------
    @app.post("/webhooks/twitch")
    async def twitch_webhook(request: Request):
        """Receive EventSub verification challenges and notifications.

        Payload problems are logged and acknowledged with 200: Twitch disables
        subscriptions whose deliveries keep failing.
        """
        body = await request.body()
        headers = request.headers
        msg_type = headers.get(MESSAGE_TYPE_HEADER, "")

        if msg_type == eventsub.VERIFICATION:
            try:
                payload = json.loads(body or b"{}")
            except ValueError:
                payload = None
            challenge = payload.get("challenge") if isinstance(payload, dict) else None
            if not isinstance(challenge, str):
                return PlainTextResponse("Missing challenge", status_code=400)
            logger.info("answering eventsub verification challenge")
            return PlainTextResponse(challenge)

        if msg_type not in (eventsub.NOTIFICATION, eventsub.REVOCATION):
            logger.debug("ignoring eventsub message type %r", msg_type)
            return {"status": "ignored"}

        if cfg.eventsub_secret and not eventsub.verify_signature(
            cfg.eventsub_secret,
            headers.get(MESSAGE_ID_HEADER, ""),
            headers.get(MESSAGE_TIMESTAMP_HEADER, ""),
            body,
            headers.get(MESSAGE_SIGNATURE_HEADER, ""),
        ):
            logger.warning("rejecting eventsub %s with bad signature", msg_type)
            return JSONResponse(status_code=403, content={"error": "invalid signature"})

        try:
            payload = json.loads(body)
            subscription = payload["subscription"]
            sub_type = subscription["type"]
            event = payload.get("event")
        except (ValueError, KeyError, TypeError) as exc:
            logger.warning("undecodable eventsub %s: %r", msg_type, exc)
            return {"status": "ok"}

        if msg_type == eventsub.REVOCATION:
            logger.warning(
                "eventsub subscription %s revoked (status=%s)",
                sub_type,
                subscription.get("status"),
            )
            return {"status": "ok"}

        alert = normalize_subscription_event(sub_type, event)
        if alert is not None:
            logger.info("%s alert for %s", alert.alert_type, alert.user_name)
            publish(alert_topic, alert)
        return {"status": "ok"}

    # --- YouTube PubSubHubbub ------------------------------------------------
    @app.get("/webhooks/youtube")
    async def youtube_challenge(request: Request):
        challenge = request.query_params.get("hub.challenge")
        if challenge is None:
            return PlainTextResponse("Missing hub.challenge", status_code=400)
        logger.info(
            "answering hub %s challenge for %s",
            request.query_params.get("hub.mode"),
            request.query_params.get("hub.topic"),
        )
        return PlainTextResponse(challenge)

    @app.post("/webhooks/youtube")
    async def youtube_notification(request: Request):
        body = (await request.body()).decode("utf-8", errors="replace")
        alert = normalize_push_notification(body)
        if alert is not None:
            logger.info("youtube live alert")
            publish(alert_topic, alert)
        else:
            logger.debug("push notification without video entry ignored")
        return {"status": "ok"}

    # --- host application ----------------------------------------------------
    if isinstance(bm, BroadcastManager):

        @app.websocket("/ws/events")
        async def ws_events(ws: WebSocket):
            await bm.connect(ws)
            try:
                while True:
                    # keep connection open; clients may send ping messages
                    await ws.receive_text()
            except WebSocketDisconnect:
                await bm.disconnect(ws)

    @app.get("/healthz")
    async def healthz():
        out: dict[str, Any] = {
            "status": "ok",
            "subscribers": {
                oauth_topic.name: oauth_topic.subscriber_count,
                alert_topic.name: alert_topic.subscriber_count,
            },
        }
        if isinstance(bm, BroadcastManager):
            out["host_clients"] = len(bm.active)
        return out

    return app
