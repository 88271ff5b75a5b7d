"""
HTTP routes — OAuth callback, Slack event webhook, reactor → Slack posting.
"""

from __future__ import annotations

import logging
from typing import List
from urllib.parse import urlencode

from fastapi import APIRouter, Depends, Query, Request, status
from fastapi.responses import PlainTextResponse, RedirectResponse, Response
from starlette.datastructures import UploadFile

from api.dependencies import get_cipher, get_relay, get_settings, get_slack
from api.errors import BridgeError, ErrorKind
from config.settings import Settings
from connectors.encryption import InvalidStateError, StateEncryptionError, TokenCipher
from connectors.slack import SlackAuthError, SlackConnector, SlackError
from core.relay import EventRelay
from utils.schemas import EventEnvelope, InboundEvent, PostBody

logger = logging.getLogger(__name__)

router = APIRouter()


# ── OAuth ──────────────────────────────────────────────────────────────


@router.get("/auth")
async def auth(
    code: str = Query(""),
    settings: Settings = Depends(get_settings),
    slack: SlackConnector = Depends(get_slack),
    cipher: TokenCipher = Depends(get_cipher),
) -> RedirectResponse:
    """
    Slack redirects here after the user installs the app.

    Exchanges the code, looks up the user's name, encrypts the app token and
    sends the browser on to the reactor with everything it needs to store.
    """
    if not code:
        raise BridgeError(ErrorKind.BAD_REQUEST, "No code")

    try:
        account = await slack.handle_callback(code)
    except SlackAuthError:
        raise BridgeError(ErrorKind.BAD_REQUEST, "Invalid code")
    except SlackError as exc:
        logger.warning("Slack OAuth callback failed: %s", exc)
        raise BridgeError(ErrorKind.UPSTREAM_FAILURE, str(exc))

    user_id = account["account_id"]

    try:
        state = cipher.encrypt(account["access_token"])
    except StateEncryptionError:
        logger.error("Could not encrypt access token for %s", user_id)
        raise BridgeError(ErrorKind.INTERNAL_FAILURE, "Failed to secure access token")

    query = urlencode(
        {"authorId": user_id, "authorName": account["account_label"], "authorState": state}
    )
    logger.info("Slack user %s connected", user_id)
    return RedirectResponse(
        f"{settings.reactor_api_prefix}/api/connected?{query}",
        status_code=status.HTTP_302_FOUND,
    )


# ── Slack → reactor ────────────────────────────────────────────────────


@router.post("/event")
async def capture_event(
    envelope: EventEnvelope,
    relay: EventRelay = Depends(get_relay),
) -> PlainTextResponse:
    """Events API webhook.  Always answers right away."""
    if envelope.challenge is not None:
        return PlainTextResponse(envelope.challenge)

    event = envelope.event
    # only messages written by people; the app's own posts carry a bot_id
    if event is not None and not event.is_from_bot:
        relay.dispatch(InboundEvent.from_slack(event))

    return PlainTextResponse("")


# ── reactor → Slack ────────────────────────────────────────────────────


def _decrypt_state(cipher: TokenCipher, state: str) -> str:
    try:
        return cipher.decrypt(state)
    except InvalidStateError:
        raise BridgeError(ErrorKind.BAD_REQUEST, "Invalid state")


@router.post("/post")
async def post_msg(
    body: PostBody,
    slack: SlackConnector = Depends(get_slack),
    cipher: TokenCipher = Depends(get_cipher),
) -> Response:
    """Send a text message into the app's DM with a Slack user."""
    access_token = _decrypt_state(cipher, body.state)
    try:
        ok = await slack.post_message(access_token, body.user, body.text)
    except SlackError:
        raise BridgeError(ErrorKind.UPSTREAM_FAILURE, "Failed to post message to slack")
    if not ok:
        # Slack was reached; its refusal is logged by the connector
        logger.info("post to %s not accepted by slack", body.user)
    return Response(status_code=status.HTTP_200_OK)


@router.put("/post")
async def upload_msg(
    request: Request,
    slack: SlackConnector = Depends(get_slack),
    cipher: TokenCipher = Depends(get_cipher),
) -> Response:
    """
    Multipart variant of ``POST /post``: every ``file`` part is uploaded on
    its own, then the text (if any) is posted.  Individual delivery
    failures are logged, not returned.
    """
    async with request.form() as form:
        user = _text_field(form.get("user"))
        text = _text_field(form.get("text"))
        state = _text_field(form.get("state"))
        uploads: List[UploadFile] = [
            part for part in form.getlist("file") if isinstance(part, UploadFile)
        ]

        if not user or not state:
            raise BridgeError(ErrorKind.BAD_REQUEST)

        access_token = _decrypt_state(cipher, state)

        for upload in uploads:
            data = await upload.read()
            await slack.upload_file(
                access_token,
                user,
                data,
                upload.filename or "file",
                upload.content_type or "application/octet-stream",
            )

    if text:
        try:
            if not await slack.post_message(access_token, user, text):
                logger.warning("Text after upload was not delivered to %s", user)
        except SlackError as exc:
            logger.warning("Text after upload was not delivered to %s: %s", user, exc)

    return Response(status_code=status.HTTP_200_OK)


def _text_field(value) -> str:
    return value if isinstance(value, str) else ""
