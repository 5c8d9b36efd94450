from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import AsyncIterable, Optional, Union

logger = logging.getLogger("roo_bridge.stream")

FRAME_PREFIX = "data:"


class EventKind:
    REPLY = "reply"


class MalformedFrame(ValueError):
    pass


@dataclass(frozen=True)
class StreamEvent:
    type: str
    content: str = ""


def parse_frame(raw: Union[str, bytes]) -> Optional[StreamEvent]:
    """
    Parse one streamed line, e.g. `data: {"type": "reply", "content": "Hi"}`.

    Blank lines (event separators) give None. Anything that is not a JSON
    object with a string `type` raises MalformedFrame; a `reply` must also
    carry string `content`.
    """
    text = raw.decode("utf-8", errors="replace") if isinstance(raw, bytes) else str(raw)
    text = text.strip()
    if not text:
        return None
    if text.startswith(FRAME_PREFIX):
        text = text[len(FRAME_PREFIX):].strip()
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise MalformedFrame(f"invalid JSON: {e}") from e
    if not isinstance(data, dict):
        raise MalformedFrame("frame is not an object")
    kind = data.get("type")
    if not isinstance(kind, str):
        raise MalformedFrame("frame has no string 'type'")
    content = data.get("content")
    if kind == EventKind.REPLY and not isinstance(content, str):
        raise MalformedFrame("reply frame has no string 'content'")
    return StreamEvent(type=kind, content=content if isinstance(content, str) else "")


async def aggregate(frames: AsyncIterable[Union[str, bytes]]) -> str:
    """
    Concatenate the content of reply frames in arrival order.

    Bad frames are logged and skipped; errors raised by the iterable itself
    (transport failures) propagate to the caller.
    """
    parts: list[str] = []
    async for raw in frames:
        try:
            event = parse_frame(raw)
        except MalformedFrame as e:
            logger.warning("skipping malformed frame (%s): %r", e, str(raw)[:200])
            continue
        if event is None:
            continue
        if event.type == EventKind.REPLY:
            parts.append(event.content)
        else:
            logger.debug("ignoring %s frame", event.type)
    return "".join(parts)
