from __future__ import annotations

import logging
from typing import Awaitable, Callable, Optional

from roo_bridge.backend.client import BackendClient
from roo_bridge.config import DEFAULT_APOLOGY
from roo_bridge.protocol import Activity
from roo_bridge.session import ConversationLog, Role, SessionRegistry

logger = logging.getLogger("roo_bridge.turns")


SendText = Callable[[str], Awaitable[None]]


class TurnHandler:
    """
    One user message in, one assistant message out.

    Backend and stream failures are answered with the apology text instead of
    raising; the user turn already written to the log stays there.
    """

    def __init__(
        self,
        *,
        backend: BackendClient,
        sessions: Optional[SessionRegistry] = None,
        history: Optional[ConversationLog] = None,
        apology: str = DEFAULT_APOLOGY,
    ):
        self.backend = backend
        self.sessions = sessions if sessions is not None else SessionRegistry()
        self.history = history if history is not None else ConversationLog()
        self.apology = apology

    async def handle_activity(self, activity: Activity, send: SendText) -> Optional[str]:
        if not activity.is_user_message:
            return None
        return await self.handle_turn(activity.from_id, activity.text, send)

    async def handle_turn(self, user_id: str, text: str, send: SendText) -> Optional[str]:
        if not user_id or not text:
            return None

        session_id = self.sessions.resolve(user_id)
        self.history.append(session_id, Role.USER, text)

        try:
            reply = await self.backend.chat(message=text, session_id=session_id)
        except Exception:
            logger.exception("Error communicating with RooLLM (session=%s)", session_id)
            reply = self.apology
        else:
            self.history.append(session_id, Role.ASSISTANT, reply)

        try:
            await send(reply)
        except Exception:
            logger.exception("failed to deliver reply (session=%s)", session_id)
            if reply != self.apology:
                await self._send_apology(send, session_id)
        return reply

    async def _send_apology(self, send: SendText, session_id: str) -> None:
        try:
            await send(self.apology)
        except Exception:
            logger.exception("failed to deliver apology (session=%s)", session_id)
