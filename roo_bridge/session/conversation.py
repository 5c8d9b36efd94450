from __future__ import annotations

import logging
from collections import OrderedDict, deque
from dataclasses import dataclass
from typing import Deque, List

logger = logging.getLogger("roo_bridge.sessions")


class Role:
    USER = "user"
    ASSISTANT = "assistant"


@dataclass(frozen=True)
class Turn:
    role: str
    content: str


class ConversationLog:
    """
    Append-only record of turns per session, in the order they were appended.

    Both bounds are optional (`0` = unbounded): `max_sessions` drops the least
    recently written session, `max_turns` drops a session's oldest turns.
    """

    def __init__(self, *, max_sessions: int = 0, max_turns: int = 0):
        self.max_sessions = max(0, int(max_sessions))
        self.max_turns = max(0, int(max_turns))
        self._log: "OrderedDict[str, Deque[Turn]]" = OrderedDict()

    def append(self, session_id: str, role: str, content: str) -> Turn:
        turn = Turn(role=role, content=content)
        turns = self._log.get(session_id)
        if turns is None:
            turns = deque(maxlen=self.max_turns or None)
            self._log[session_id] = turns
        else:
            self._log.move_to_end(session_id)
        turns.append(turn)
        self._evict()
        return turn

    def turns(self, session_id: str) -> List[Turn]:
        return list(self._log.get(session_id) or ())

    def _evict(self) -> None:
        if not self.max_sessions:
            return
        while len(self._log) > self.max_sessions:
            session_id, dropped = self._log.popitem(last=False)
            logger.debug("dropped history for session %s (%d turns)", session_id, len(dropped))

    def __contains__(self, session_id: object) -> bool:
        return session_id in self._log

    def __len__(self) -> int:
        return len(self._log)
