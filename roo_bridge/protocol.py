from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Optional
from uuid import uuid4


class ActivityType:
    MESSAGE = "message"
    TYPING = "typing"
    CONVERSATION_UPDATE = "conversationUpdate"
    TRACE = "trace"


class DeliveryMode:
    NORMAL = "normal"
    EXPECT_REPLIES = "expectReplies"


ERROR_SCHEMA = "https://www.botframework.com/schemas/error"


@dataclass
class Activity:
    """
    Inbound channel activity. Only the fields the bridge reads are lifted out;
    the original payload is kept in `raw` so replies can echo the rest.
    """

    type: str = ""
    id: str = ""
    text: str = ""
    from_id: str = ""
    service_url: str = ""
    channel_id: str = ""
    conversation_id: str = ""
    delivery_mode: str = DeliveryMode.NORMAL
    raw: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Activity":
        sender = data.get("from") if isinstance(data.get("from"), dict) else {}
        conversation = data.get("conversation") if isinstance(data.get("conversation"), dict) else {}
        text = data.get("text")
        return cls(
            type=str(data.get("type", "") or ""),
            id=str(data.get("id", "") or ""),
            text=text if isinstance(text, str) else "",
            from_id=str(sender.get("id", "") or ""),
            service_url=str(data.get("serviceUrl", "") or ""),
            channel_id=str(data.get("channelId", "") or ""),
            conversation_id=str(conversation.get("id", "") or ""),
            delivery_mode=str(data.get("deliveryMode", "") or DeliveryMode.NORMAL),
            raw=dict(data),
        )

    @property
    def is_user_message(self) -> bool:
        return self.type == ActivityType.MESSAGE and bool(self.text) and bool(self.from_id)

    @property
    def expects_replies(self) -> bool:
        return self.delivery_mode == DeliveryMode.EXPECT_REPLIES


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _reply_skeleton(activity: Activity, activity_type: str) -> Dict[str, Any]:
    raw = activity.raw
    out: Dict[str, Any] = {
        "type": activity_type,
        "id": uuid4().hex,
        "timestamp": _now_iso(),
        "channelId": activity.channel_id,
        "serviceUrl": activity.service_url,
        "from": raw.get("recipient") or {},
        "recipient": raw.get("from") or {},
        "conversation": raw.get("conversation") or {},
    }
    if activity.id:
        out["replyToId"] = activity.id
    return out


def reply_activity(activity: Activity, text: str) -> Dict[str, Any]:
    out = _reply_skeleton(activity, ActivityType.MESSAGE)
    out["text"] = text
    out["inputHint"] = "acceptingInput"
    return out


def trace_activity(
    activity: Activity,
    *,
    name: str,
    value: Any,
    value_type: str,
    label: Optional[str] = None,
) -> Dict[str, Any]:
    out = _reply_skeleton(activity, ActivityType.TRACE)
    out["name"] = name
    out["value"] = value
    out["valueType"] = value_type
    if label:
        out["label"] = label
    return out
