from __future__ import annotations

import logging
import re
from typing import Any

from .encoding import RequestDescriptor, json_request
from .errors import DynrestClientError
from .namespaces import Handler, check_dynamic_name
from .transport import Transport
from .urls import quote_segment

logger = logging.getLogger(__name__)

LOGIN_PATH_RE = re.compile(r"(login|sign[-_]?in)", re.IGNORECASE)
KNOWN_LOGIN_PATHS = ("/signin", "/sign-in", "/SignIn", "/signIn", "/login", "/Login")
DEFAULT_LOGIN_PATH = "/signin"


def extract_token(res: Any) -> str | None:
    if not isinstance(res, dict):
        return None
    token = res.get("access_token") or res.get("token")
    if not token and isinstance(res.get("data"), dict):
        token = res["data"].get("token")
    return token if isinstance(token, str) and token else None


class AuthModule:
    """Auth verbs over the transport.

    Side effects:
    - ``login``, ``redirect_to_login``, ``redirect_to_home`` navigate only;
    - ``login_via_email_password`` persists the returned token;
    - ``logout`` clears the persisted token and may navigate.
    Unknown names fall back to ``POST auth/<name>`` with the first argument as
    JSON body. Nothing here retries.
    """

    _DISPATCH = {
        "me": "me",
        "login": "login",
        "update_me": "update_me",
        "updateMe": "update_me",
        "redirect_to_home": "redirect_to_home",
        "redirectToHome": "redirect_to_home",
        "redirect_to_login": "redirect_to_login",
        "redirectToLogin": "redirect_to_login",
        "logout": "logout",
        "set_token": "set_token",
        "setToken": "set_token",
        "is_authenticated": "is_authenticated",
        "isAuthenticated": "is_authenticated",
        "login_via_email_password": "login_via_email_password",
        "loginViaEmailPassword": "login_via_email_password",
        "invite_user": "invite_user",
        "inviteUser": "invite_user",
        "register": "register",
        "verify_otp": "verify_otp",
        "verifyOtp": "verify_otp",
        "resend_otp": "resend_otp",
        "resendOtp": "resend_otp",
        "reset_password_request": "reset_password_request",
        "resetPasswordRequest": "reset_password_request",
        "reset_password": "reset_password",
        "resetPassword": "reset_password",
        "change_password": "change_password",
        "changePassword": "change_password",
    }

    def __init__(self, transport: Transport):
        self._t = transport
        self._fallbacks: dict[str, Handler] = {}

    def _navigate(self, url: str) -> None:
        if self._t.navigator is not None:
            self._t.navigator.navigate(url)

    async def _post(self, path: str, payload: Any) -> Any:
        return await self._t.send(json_request("POST", path, {} if payload is None else payload))

    async def me(self) -> Any:
        return await self._t.send(RequestDescriptor(path="auth/me", method="GET"))

    def login(self, next_url: str | None = None) -> None:
        self._navigate(self._t.build_url("auth/login", {"next": next_url or None}))

    async def update_me(self, patch: dict[str, Any]) -> Any:
        return await self._t.send(json_request("PATCH", "auth/me", patch))

    def redirect_to_home(self) -> None:
        self._navigate("/")

    def redirect_to_login(self, current_url: str | None = None) -> None:
        nav = self._t.navigator
        if nav is None:
            return
        current_path = nav.current_path
        if LOGIN_PATH_RE.search(current_path):
            return

        detected = next((p for p in KNOWN_LOGIN_PATHS if p.split("/")[1] in current_path), None)
        if detected is None:
            content = nav.page_content or ""
            detected = next((p for p in KNOWN_LOGIN_PATHS if p in content), None)
        login_path = detected or DEFAULT_LOGIN_PATH

        if current_url:
            back = current_url.lstrip("/").rstrip("/")
            nav.navigate(f"{login_path}?redirect=/{quote_segment(back)}")
        else:
            nav.navigate(login_path)

    async def logout(self, redirect_url: str | None = None) -> None:
        await self._t.send(RequestDescriptor(path="auth/logout", method="POST"))
        self._t.credential.set(None, persist=True)
        if redirect_url:
            self._navigate(redirect_url)

    def set_token(self, token: str | None, persist: bool = False) -> None:
        self._t.credential.set(token, persist=persist)

    async def is_authenticated(self) -> bool:
        try:
            await self.me()
        except DynrestClientError as e:
            logger.debug("not authenticated: %s", e)
            return False
        return True

    async def login_via_email_password(
            self,
            email: str | dict[str, Any],
            password: str | None = None,
            verification_token: str | None = None,
    ) -> Any:
        if isinstance(email, str) and isinstance(password, str):
            payload: Any = {"email": email, "password": password}
            if verification_token is not None:
                payload["turnstile_token"] = verification_token
        else:
            payload = email

        res = await self._t.send(json_request("POST", "auth/login", payload))
        token = extract_token(res)
        if token:
            self._t.credential.set(token, persist=True)
        return res

    async def invite_user(self, email: str, role: str | None = None) -> Any:
        payload: dict[str, Any] = {"email": email}
        if role is not None:
            payload["role"] = role
        return await self._post("auth/invite", payload)

    async def register(self, payload: dict[str, Any]) -> Any:
        return await self._post("auth/register", payload)

    async def verify_otp(self, payload: dict[str, Any]) -> Any:
        return await self._post("auth/verify-otp", payload)

    async def resend_otp(self, email: str) -> Any:
        return await self._post("auth/resend-otp", {"email": email})

    async def reset_password_request(self, email: str) -> Any:
        return await self._post("auth/reset-password-request", {"email": email})

    async def reset_password(self, payload: dict[str, Any]) -> Any:
        return await self._post("auth/reset-password", payload)

    async def change_password(self, payload: dict[str, Any]) -> Any:
        return await self._post("auth/change-password", payload)

    def method(self, name: str) -> Any:
        attr = self._DISPATCH.get(name)
        if attr is not None:
            return getattr(self, attr)
        handler = self._fallbacks.get(name)
        if handler is None:
            path = f"auth/{quote_segment(name)}"

            async def call(*args: Any) -> Any:
                return await self._post(path, args[0] if args else None)

            call.__name__ = name
            handler = self._fallbacks[name] = call
        return handler

    def __getattr__(self, name: str) -> Any:
        check_dynamic_name(self, name)
        return self.method(name)
