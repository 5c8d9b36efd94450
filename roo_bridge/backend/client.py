from __future__ import annotations

import logging
import time
from typing import Optional

import httpx

from roo_bridge.backend.stream import aggregate

logger = logging.getLogger("roo_bridge.backend")


class BackendError(RuntimeError):
    def __init__(self, message: str, *, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class BackendClient:
    """
    Streaming client for the RooLLM chat endpoint.

    Sends only the latest user message and the session id; the backend keeps
    its own context per session.
    """

    def __init__(
        self,
        *,
        url: str,
        connect_timeout_s: float = 10.0,
        read_timeout_s: float = 120.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.url = url
        timeout = httpx.Timeout(read_timeout_s, connect=connect_timeout_s)
        self._client = client or httpx.AsyncClient(timeout=timeout)

    async def close(self) -> None:
        await self._client.aclose()

    async def chat(self, *, message: str, session_id: str) -> str:
        started = time.monotonic()
        body = {"message": message, "session_id": session_id}
        async with self._client.stream("POST", self.url, json=body) as resp:
            if resp.status_code >= 400:
                detail = (await resp.aread()).decode("utf-8", errors="replace")
                raise BackendError(f"HTTP {resp.status_code}: {detail[:300]}", status_code=resp.status_code)
            reply = await aggregate(resp.aiter_lines())
        logger.info(
            "backend reply: session=%s chars=%d elapsed_ms=%d",
            session_id,
            len(reply),
            int((time.monotonic() - started) * 1000),
        )
        return reply
