"""Third-party OAuth providers bridged to a backend session.

Flow: ``begin_login`` gives the provider authorize URL and a per-attempt
nonce; the provider redirects to a callback that runs ``complete_callback``
(provider token exchanged for a backend token via ``POST auth/login``) and
posts the resulting message on a ``MessageChannel``; the initiator awaits
``wait_for_social_auth``, a single-shot subscription with a timeout.
"""
from __future__ import annotations

import asyncio
import base64
import json
import logging
import secrets
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import Any
from urllib.parse import parse_qsl, quote, unquote, urlencode, urlsplit

from .encoding import json_request
from .errors import DynrestClientError

logger = logging.getLogger(__name__)

PROVIDERS = ("google", "kakao", "facebook", "naver", "apple")

_AUTHORIZE = {
    "google": ("https://accounts.google.com/o/oauth2/v2/auth", {"response_type": "token", "scope": "profile email"}),
    "kakao": ("https://kauth.kakao.com/oauth/authorize", {"response_type": "code"}),
    "facebook": (
        "https://www.facebook.com/v13.0/dialog/oauth",
        {"response_type": "token", "scope": "email,public_profile"},
    ),
    "naver": ("https://nid.naver.com/oauth2.0/authorize", {"response_type": "token"}),
    "apple": (
        "https://appleid.apple.com/auth/authorize",
        {"response_type": "token id_token", "scope": "name email", "response_mode": "fragment"},
    ),
}


class SocialAuthTimeout(DynrestClientError):
    """No matching callback message arrived in time."""


@dataclass
class SocialAuthConfig:
    client_ids: dict[str, str]
    redirect_uri: str
    kakao_secret: str | None = None


@dataclass
class CallbackParams:
    provider: str | None = None
    redirect_uri: str | None = None
    nonce: str | None = None
    access_token: str | None = None
    id_token: str | None = None
    code: str | None = None
    raw: dict[str, str] = field(default_factory=dict)

    @property
    def provider_token(self) -> str | None:
        return self.access_token or self.id_token or self.code


def authorize_url(provider: str, client_id: str, redirect_uri: str, state: str) -> str:
    try:
        endpoint, extra = _AUTHORIZE[provider]
    except KeyError:
        raise ValueError(f"Unknown provider: {provider}") from None
    params = {"client_id": client_id, "redirect_uri": redirect_uri, **extra, "state": state}
    return f"{endpoint}?{urlencode(params, quote_via=quote)}"


def encode_state(provider: str, *, nonce: str, cfg: SocialAuthConfig | None = None) -> str:
    state: dict[str, Any] = {"provider": provider, "nonce": nonce}
    # kakao answers with a code; the callback needs the client credentials to exchange it
    if provider == "kakao" and cfg is not None:
        state.update(
            redirectUri=cfg.redirect_uri,
            clientId=cfg.client_ids.get("kakao"),
            kakaoSecret=cfg.kakao_secret,
        )
    return json.dumps(state, separators=(",", ":"))


def begin_login(cfg: SocialAuthConfig, provider: str) -> tuple[str, str]:
    """Return ``(authorize_url, nonce)`` for one login attempt."""
    if provider not in PROVIDERS:
        raise ValueError(f"Unknown provider: {provider}")
    client_id = cfg.client_ids.get(provider)
    if not client_id:
        raise ValueError(f"No client id configured for {provider}")
    nonce = secrets.token_urlsafe(16)
    state = encode_state(provider, nonce=nonce, cfg=cfg)
    return authorize_url(provider, client_id, cfg.redirect_uri, state), nonce


def _decode_state(raw: str) -> dict[str, Any]:
    for candidate in (raw, unquote(raw)):
        try:
            value = json.loads(candidate)
        except ValueError:
            continue
        if isinstance(value, dict):
            return value
    logger.warning("could not decode OAuth state")
    return {}


def parse_callback(query: str = "", fragment: str = "") -> CallbackParams:
    """Merge query and fragment parameters (fragment wins) of a callback URL."""
    params = dict(parse_qsl(query.lstrip("?")))
    params.update(parse_qsl(fragment.lstrip("#")))

    provider = params.get("provider")
    redirect_uri = None
    nonce = None
    if params.get("state"):
        state = _decode_state(params["state"])
        provider = provider or state.get("provider")
        redirect_uri = state.get("redirectUri")
        nonce = state.get("nonce")
    return CallbackParams(
        provider=provider,
        redirect_uri=redirect_uri,
        nonce=nonce,
        access_token=params.get("access_token"),
        id_token=params.get("id_token"),
        code=params.get("code"),
        raw=params,
    )


def parse_callback_url(url: str) -> CallbackParams:
    parts = urlsplit(url)
    return parse_callback(parts.query, parts.fragment)


def decode_apple_id_token(id_token: str) -> dict[str, Any] | None:
    """Read sub/email/name from the JWT payload. The signature is not checked."""
    try:
        payload = id_token.split(".")[1]
        payload += "=" * (-len(payload) % 4)
        decoded = json.loads(base64.urlsafe_b64decode(payload))
    except (IndexError, ValueError):
        return None
    if not isinstance(decoded, dict):
        return None
    return {
        "sub": decoded.get("sub"),
        "email": decoded.get("email"),
        "name": decoded.get("name") or decoded.get("given_name"),
    }


def _failure(error: str, params: CallbackParams) -> dict[str, Any]:
    return {
        "__socialAuth": True,
        "provider": params.provider,
        "ok": False,
        "error": error,
        "nonce": params.nonce,
    }


async def complete_callback(params: CallbackParams, client) -> dict[str, Any]:
    """Exchange the provider token for a backend session.

    Returns the message to relay to the initiator. Failures are reported in the
    message (``ok: False``), never raised.
    """
    if not params.provider:
        return _failure("provider could not be determined", params)
    token = params.provider_token
    if not token:
        return _failure("no token or code in callback", params)

    user_info = None
    if params.provider == "apple" and params.id_token:
        user_info = decode_apple_id_token(params.id_token)

    payload: dict[str, Any] = {"provider_type": params.provider, "provider_token": token}
    if params.redirect_uri and params.provider == "kakao":
        payload["redirect_uri"] = params.redirect_uri

    try:
        result = await client.transport.send(json_request("POST", "auth/login", payload))
    except DynrestClientError as e:
        logger.warning("social login exchange failed for %s: %s", params.provider, e)
        return _failure(str(e), params)

    backend_token = result.get("access_token") if isinstance(result, dict) else None
    if not backend_token:
        return _failure("backend returned no access_token", params)

    client.set_token(backend_token)
    return {
        "__socialAuth": True,
        "provider": params.provider,
        "ok": True,
        "backendToken": backend_token,
        "user": (result.get("user") if isinstance(result, dict) else None) or user_info,
        "nonce": params.nonce,
    }


Listener = Callable[[Any, str], None]


class MessageChannel:
    """In-process stand-in for cross-window messaging."""

    def __init__(self) -> None:
        self._listeners: list[Listener] = []

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            try:
                self._listeners.remove(listener)
            except ValueError:
                pass

        return unsubscribe

    def post(self, message: Any, origin: str) -> None:
        for listener in list(self._listeners):
            listener(message, origin)

    def __len__(self) -> int:
        return len(self._listeners)


def _matches(message: Any, *, provider: str, nonce: str | None) -> bool:
    if not isinstance(message, Mapping) or not message.get("__socialAuth"):
        return False
    if message.get("provider") != provider:
        return False
    return nonce is None or message.get("nonce") == nonce


async def wait_for_social_auth(
        channel: MessageChannel,
        *,
        provider: str,
        origin: str,
        nonce: str | None = None,
        timeout_s: float = 300.0,
) -> dict[str, Any]:
    """Resolve on the first matching message; the listener is removed exactly once."""
    loop = asyncio.get_running_loop()
    fut: asyncio.Future[dict[str, Any]] = loop.create_future()
    removed = False

    def remove() -> None:
        nonlocal removed
        if not removed:
            removed = True
            unsubscribe()

    def on_message(message: Any, msg_origin: str) -> None:
        if fut.done() or msg_origin != origin:
            return
        if not _matches(message, provider=provider, nonce=nonce):
            return
        fut.set_result(dict(message))
        remove()

    unsubscribe = channel.subscribe(on_message)
    try:
        return await asyncio.wait_for(fut, timeout_s)
    except asyncio.TimeoutError as e:
        raise SocialAuthTimeout(f"{provider} login timed out after {timeout_s:g}s", original_error=e) from e
    finally:
        remove()
