from __future__ import annotations

import argparse
import asyncio
import json
import sys
import uuid
from typing import Any, Dict, Optional

import websockets
from dotenv import load_dotenv

from roo_bridge import config


def _new_id(prefix: str) -> str:
    return f"{prefix}_{uuid.uuid4().hex[:12]}"


def build_message_activity(*, text: str, user_id: str, conversation_id: str) -> Dict[str, Any]:
    return {
        "type": "message",
        "id": _new_id("act"),
        "channelId": "cli",
        "text": text,
        "from": {"id": user_id, "name": user_id},
        "recipient": {"id": "roo_bridge", "name": "RooLLM"},
        "conversation": {"id": conversation_id},
    }


def render_activity(msg: Dict[str, Any]) -> Optional[str]:
    kind = msg.get("type")
    if kind == "message":
        return f"roo> {msg.get('text', '')}"
    if kind == "trace":
        return f"[trace] {msg.get('name', '')}: {msg.get('value', '')}"
    if kind == "error":
        return f"[error] {msg.get('error', '')}"
    return None


async def _stdin_lines(queue: asyncio.Queue[str]):
    loop = asyncio.get_running_loop()
    while True:
        line = await loop.run_in_executor(None, sys.stdin.readline)
        if not line:
            await queue.put("__EOF__")
            return
        await queue.put(line.rstrip("\n"))


async def chat(url: str, user_id: str) -> None:
    conversation_id = _new_id("conv")
    stdin_q: asyncio.Queue[str] = asyncio.Queue()
    reader = asyncio.create_task(_stdin_lines(stdin_q))

    async with websockets.connect(url) as ws:
        print(f"connected to {url} as {user_id} (Ctrl-D to quit)")

        async def receiver():
            async for raw in ws:
                try:
                    msg = json.loads(raw)
                except json.JSONDecodeError:
                    continue
                line = render_activity(msg) if isinstance(msg, dict) else None
                if line:
                    print(line, flush=True)

        async def sender():
            while True:
                line = await stdin_q.get()
                if line == "__EOF__":
                    return
                line = (line or "").strip()
                if not line:
                    continue
                activity = build_message_activity(text=line, user_id=user_id, conversation_id=conversation_id)
                await ws.send(json.dumps(activity))

        recv_task = asyncio.create_task(receiver())
        try:
            await sender()
        finally:
            recv_task.cancel()
            reader.cancel()


def main() -> None:
    load_dotenv()
    parser = argparse.ArgumentParser(description="Chat with the RooLLM bridge over its WebSocket endpoint.")
    parser.add_argument("--url", default=None, help="WebSocket URL (default: ws://127.0.0.1:<port>/api/messages)")
    parser.add_argument("--user", default=None, help="user id to send as activity.from.id")
    args = parser.parse_args()

    url = args.url or f"ws://127.0.0.1:{config.gateway_port()}/api/messages"
    user_id = args.user or _new_id("cli_user")
    try:
        asyncio.run(chat(url, user_id))
    except KeyboardInterrupt:
        pass


if __name__ == "__main__":
    main()
