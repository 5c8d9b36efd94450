from __future__ import annotations

import logging
from collections import OrderedDict
from typing import Optional
from uuid import uuid4

logger = logging.getLogger("roo_bridge.sessions")


class SessionRegistry:
    """
    Maps a channel user id to the session id sent to the backend.

    Ids are created lazily on first contact and stay stable while the user is
    held. With `max_users > 0` the least recently resolved user is evicted once
    the capacity is exceeded; `0` keeps every user for the process lifetime.

    `resolve()` never awaits, so under a single event loop the
    check-then-insert cannot interleave with another turn.
    """

    def __init__(self, *, max_users: int = 0):
        self.max_users = max(0, int(max_users))
        self._sessions: "OrderedDict[str, str]" = OrderedDict()

    def resolve(self, user_id: str) -> str:
        session_id = self._sessions.get(user_id)
        if session_id is not None:
            self._sessions.move_to_end(user_id)
            return session_id
        session_id = str(uuid4())
        self._sessions[user_id] = session_id
        logger.debug("new session %s for user %s", session_id, user_id)
        self._evict()
        return session_id

    def get(self, user_id: str) -> Optional[str]:
        return self._sessions.get(user_id)

    def _evict(self) -> None:
        if not self.max_users:
            return
        while len(self._sessions) > self.max_users:
            user_id, session_id = self._sessions.popitem(last=False)
            logger.debug("evicted session %s for user %s", session_id, user_id)

    def __contains__(self, user_id: object) -> bool:
        return user_id in self._sessions

    def __len__(self) -> int:
        return len(self._sessions)
