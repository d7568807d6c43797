from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable, Mapping
from typing import Final

from evomanager.session import LoginResult

logger = logging.getLogger(__name__)

SERVER_URL_PARAM: Final[str] = "serverUrl"
API_KEY_PARAM: Final[str] = "apiKey"


class AutoLoginTrigger:
    """Submit credentials found in the entry URL, at most once per login page.

    The latch is set before `submit` is awaited, so re-entrant calls made while
    the first login is still in flight do not fire a second one.
    """

    def __init__(self, submit: Callable[[str, str], Awaitable[LoginResult]]) -> None:
        self._submit = submit
        self._fired = False

    @property
    def fired(self) -> bool:
        return self._fired

    async def maybe_fire(self, params: Mapping[str, str]) -> LoginResult | None:
        if self._fired:
            return None

        server_url = params.get(SERVER_URL_PARAM)
        api_key = params.get(API_KEY_PARAM)
        if not server_url or not api_key:
            return None

        self._fired = True
        logger.info("Auto-login requested for %s", server_url)
        return await self._submit(server_url, api_key)
