from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Mapping
from typing import Any

from .encoding import json_request
from .errors import DynrestClientError, NetworkError

logger = logging.getLogger(__name__)

REGISTER_PATH = "devices/register"


async def register_device(
        client,
        fcm_token: str | None = None,
        *,
        device_type: str = "web",
        device_id: str | None = None,
        max_attempts: int = 3,
        base_delay_s: float = 1.0,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
) -> Any | None:
    """Register this device for push notifications.

    Only network failures are retried, waiting ``base_delay_s`` then doubling.
    Returns the backend response, or None once registration has given up.
    """
    body: dict[str, Any] = {"device_type": device_type}
    if fcm_token is not None:
        body = {"fcm_token": fcm_token, **body}
    req = json_request("POST", REGISTER_PATH, body)
    if device_id:
        req.headers["x-uuid"] = device_id

    attempts = max(1, int(max_attempts))
    for attempt in range(attempts):
        try:
            res = await client.transport.send(req)
        except NetworkError as e:
            logger.warning("device registration failed (attempt %d/%d): %s", attempt + 1, attempts, e)
            if attempt + 1 >= attempts:
                return None
            await sleep(base_delay_s * (2 ** attempt))
            continue
        except DynrestClientError as e:
            logger.warning("device registration rejected: HTTP %s %s", e.status, e)
            return None
        logger.debug("device registered")
        return res
    return None


def resolve_target_url(data: Mapping[str, Any] | None) -> str:
    if not data:
        return "/"
    for key in ("url", "click_url", "click_action"):
        if data.get(key):
            return str(data[key])
    return "/"
