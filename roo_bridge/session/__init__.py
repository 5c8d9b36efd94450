from .conversation import ConversationLog, Role, Turn
from .registry import SessionRegistry

__all__ = ["ConversationLog", "Role", "SessionRegistry", "Turn"]
