import asyncio
import json
import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Awaitable, Callable, Dict, List, Optional, Set

from dotenv import load_dotenv
from fastapi import FastAPI, Request, WebSocket, WebSocketDisconnect
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from roo_bridge import __version__, config
from roo_bridge.backend import BackendClient, BackendProcess, wait_until_ready
from roo_bridge.frontends.botframework import ConnectorClient
from roo_bridge.gateway.turns import TurnHandler
from roo_bridge.protocol import ERROR_SCHEMA, Activity, reply_activity, trace_activity
from roo_bridge.session import ConversationLog, SessionRegistry

load_dotenv()

logger = logging.getLogger("roo_bridge.gateway")
logging.basicConfig(level=config.log_level(), format="[%(asctime)s] %(levelname)s %(name)s - %(message)s")


SendActivity = Callable[[Dict[str, Any]], Awaitable[None]]


class Gateway:
    def __init__(
        self,
        *,
        backend: Optional[BackendClient] = None,
        connector: Optional[ConnectorClient] = None,
        process: Optional[BackendProcess] = None,
    ):
        self.sessions = SessionRegistry(max_users=config.sessions_max_users())
        self.history = ConversationLog(
            max_sessions=config.history_max_sessions(),
            max_turns=config.history_max_turns(),
        )
        self.backend = backend or BackendClient(
            url=config.backend_url(),
            connect_timeout_s=config.backend_connect_timeout_s(),
            read_timeout_s=config.backend_read_timeout_s(),
        )
        self.connector = connector or ConnectorClient()
        if process is None and config.backend_process_enabled():
            process = BackendProcess(command=config.backend_process_command(), cwd=config.backend_process_cwd())
        self.process = process
        self.turns = TurnHandler(
            backend=self.backend,
            sessions=self.sessions,
            history=self.history,
            apology=config.apology_text(),
        )

    async def startup(self) -> None:
        if self.process is not None:
            await self.process.start()
        if config.backend_ready_enabled():
            await wait_until_ready(
                config.backend_ready_url(),
                attempts=config.backend_ready_attempts(),
                interval_s=config.backend_ready_interval_s(),
            )
        creds = config.microsoft_app_credentials()
        if creds["app_id"] or creds["app_password"]:
            logger.warning("MicrosoftAppId is set but replies are sent without Bot Framework authentication")
        logger.info("relaying turns to %s", self.backend.url)
        logger.info("Get Bot Framework Emulator: https://aka.ms/botframework-emulator")

    async def shutdown(self) -> None:
        await self.backend.close()
        await self.connector.close()
        if self.process is not None:
            await self.process.stop()

    def connector_sender(self, activity: Activity) -> SendActivity:
        async def _send(ev: Dict[str, Any]) -> None:
            await self.connector.send_activity(
                service_url=activity.service_url,
                conversation_id=activity.conversation_id,
                reply_to_id=activity.id or None,
                activity=ev,
            )
        return _send

    async def process_activity(self, activity: Activity, send_activity: SendActivity) -> None:
        async def send_text(text: str) -> None:
            await send_activity(reply_activity(activity, text))

        try:
            await self.turns.handle_activity(activity, send_text)
        except Exception as e:
            await self.on_turn_error(activity, send_activity, e)

    async def on_turn_error(self, activity: Activity, send_activity: SendActivity, error: Exception) -> None:
        logger.error("[onTurnError] unhandled error: %s", error, exc_info=error)
        try:
            await send_activity(
                trace_activity(
                    activity,
                    name="OnTurnError Trace",
                    value=str(error),
                    value_type=ERROR_SCHEMA,
                    label="TurnError",
                )
            )
            await send_activity(reply_activity(activity, "The bot encountered an error or bug."))
            await send_activity(reply_activity(activity, "To continue to run this bot, please fix the bot source code."))
        except Exception:
            logger.exception("failed to report turn error to the channel")


def create_app(gateway: Optional[Gateway] = None) -> FastAPI:
    gateway = gateway or Gateway()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        await gateway.startup()
        yield
        await gateway.shutdown()

    app = FastAPI(title="RooLLM Bot Bridge", version=__version__, lifespan=lifespan)
    app.state.gateway = gateway

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/health")
    async def health():
        return {
            "ok": True,
            "version": __version__,
            "backend": {
                "url": gateway.backend.url,
                "process_running": bool(gateway.process and gateway.process.running),
            },
        }

    @app.post("/api/messages")
    async def messages(request: Request):
        try:
            body = await request.json()
        except Exception:
            return JSONResponse({"error": "Invalid JSON body"}, status_code=400)
        if not isinstance(body, dict):
            return JSONResponse({"error": "Activity must be a JSON object"}, status_code=400)

        activity = Activity.from_dict(body)
        if activity.expects_replies or not activity.service_url:
            replies: List[Dict[str, Any]] = []

            async def _collect(ev: Dict[str, Any]) -> None:
                replies.append(ev)

            await gateway.process_activity(activity, _collect)
            return {"activities": replies}

        await gateway.process_activity(activity, gateway.connector_sender(activity))
        return {}

    @app.websocket("/api/messages")
    async def messages_ws(websocket: WebSocket):
        await websocket.accept()
        pending: Set[asyncio.Task] = set()

        async def _send(ev: Dict[str, Any]) -> None:
            await websocket.send_json(ev)

        try:
            while True:
                msg = await websocket.receive()
                if msg.get("type") == "websocket.disconnect":
                    break
                # binary frames carry the same JSON as text frames
                raw = msg.get("text")
                if raw is None:
                    raw = (msg.get("bytes") or b"").decode("utf-8", errors="replace")
                try:
                    data = json.loads(raw)
                except ValueError:
                    data = None
                if not isinstance(data, dict):
                    await websocket.send_json({"type": "error", "error": "Invalid activity"})
                    continue
                task = asyncio.create_task(gateway.process_activity(Activity.from_dict(data), _send))
                pending.add(task)
                task.add_done_callback(pending.discard)
        except WebSocketDisconnect:
            pass
        finally:
            for task in list(pending):
                task.cancel()

    return app
