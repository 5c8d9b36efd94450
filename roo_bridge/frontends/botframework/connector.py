from __future__ import annotations

import logging
from typing import Any, Dict, Optional
from urllib.parse import quote

import httpx

logger = logging.getLogger("roo_bridge.connector")


class ConnectorClient:
    """
    Posts reply activities back to a channel's `serviceUrl` (Bot Connector v3).

    Requests are unauthenticated, which is what the Bot Framework Emulator and
    local channels accept.
    """

    def __init__(self, *, timeout_s: float = 30.0, client: Optional[httpx.AsyncClient] = None):
        self._client = client or httpx.AsyncClient(timeout=timeout_s)

    async def close(self) -> None:
        await self._client.aclose()

    async def send_activity(
        self,
        *,
        service_url: str,
        conversation_id: str,
        activity: Dict[str, Any],
        reply_to_id: Optional[str] = None,
    ) -> Dict[str, Any]:
        url = f"{service_url.rstrip('/')}/v3/conversations/{quote(conversation_id, safe='')}/activities"
        if reply_to_id:
            url = f"{url}/{quote(reply_to_id, safe='')}"
        r = await self._client.post(url, json=activity)
        r.raise_for_status()
        logger.debug("delivered %s activity to %s", activity.get("type"), url)
        if not r.content:
            return {}
        try:
            data = r.json()
        except ValueError:
            return {}
        return data if isinstance(data, dict) else {}
