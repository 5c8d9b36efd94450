from __future__ import annotations

import json
import os
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, Optional
from urllib.parse import urlsplit


DEFAULT_CONFIG_PATH = "roo_bridge.json"
DEFAULT_APOLOGY = "Sorry, there was an error processing your request."


def config_path() -> str:
    return os.getenv("ROO_BRIDGE_CONFIG", DEFAULT_CONFIG_PATH)


@lru_cache(maxsize=1)
def load_config(path: Optional[str] = None) -> Dict[str, Any]:
    p = Path(path or config_path())
    if not p.exists():
        return {}
    try:
        data = json.loads(p.read_text(encoding="utf-8"))
    except Exception:
        return {}
    return data if isinstance(data, dict) else {}


def _get(cfg: Dict[str, Any], *path: str, default: Any = None) -> Any:
    cur: Any = cfg
    for k in path:
        if not isinstance(cur, dict) or k not in cur:
            return default
        cur = cur[k]
    return cur


def _env_flag(name: str) -> Optional[bool]:
    v = os.getenv(name)
    if v is None or not v.strip():
        return None
    return v.strip().lower() in {"1", "true", "yes", "on"}


def gateway_host() -> str:
    env = os.getenv("HOST")
    if env:
        return env
    cfg = load_config()
    return str(_get(cfg, "gateway", "host", default="0.0.0.0"))


def gateway_port() -> int:
    env = os.getenv("port") or os.getenv("PORT")
    if env:
        try:
            return int(env)
        except ValueError:
            pass
    cfg = load_config()
    try:
        return int(_get(cfg, "gateway", "port", default=3978))
    except Exception:
        return 3978


def backend_url() -> str:
    env = os.getenv("ROOLLM_URL")
    if env:
        return env
    cfg = load_config()
    return str(_get(cfg, "backend", "url", default="http://127.0.0.1:8000/chat"))


def backend_connect_timeout_s() -> float:
    cfg = load_config()
    try:
        return float(_get(cfg, "backend", "connect_timeout_s", default=10))
    except Exception:
        return 10.0


def backend_read_timeout_s() -> float:
    cfg = load_config()
    try:
        return float(_get(cfg, "backend", "read_timeout_s", default=120))
    except Exception:
        return 120.0


def backend_process_enabled() -> bool:
    env = _env_flag("ROOLLM_SPAWN")
    if env is not None:
        return env
    cfg = load_config()
    return bool(_get(cfg, "backend", "process", "enabled", default=False))


def backend_process_command() -> str:
    cfg = load_config()
    return str(_get(cfg, "backend", "process", "command", default="npm run RooLLM") or "npm run RooLLM")


def backend_process_cwd() -> str:
    cfg = load_config()
    return str(_get(cfg, "backend", "process", "cwd", default="./roollm") or "./roollm")


def backend_ready_enabled() -> bool:
    cfg = load_config()
    return bool(_get(cfg, "backend", "readiness", "enabled", default=False))


def backend_ready_url() -> str:
    cfg = load_config()
    v = _get(cfg, "backend", "readiness", "url", default=None)
    if v:
        return str(v)
    parts = urlsplit(backend_url())
    return f"{parts.scheme}://{parts.netloc}/"


def backend_ready_attempts() -> int:
    cfg = load_config()
    try:
        return int(_get(cfg, "backend", "readiness", "attempts", default=30))
    except Exception:
        return 30


def backend_ready_interval_s() -> float:
    cfg = load_config()
    try:
        return float(_get(cfg, "backend", "readiness", "interval_s", default=1.0))
    except Exception:
        return 1.0


def sessions_max_users() -> int:
    cfg = load_config()
    try:
        return int(_get(cfg, "sessions", "max_users", default=10000))
    except Exception:
        return 10000


def history_max_sessions() -> int:
    cfg = load_config()
    try:
        return int(_get(cfg, "history", "max_sessions", default=10000))
    except Exception:
        return 10000


def history_max_turns() -> int:
    cfg = load_config()
    try:
        return int(_get(cfg, "history", "max_turns", default=200))
    except Exception:
        return 200


def apology_text() -> str:
    cfg = load_config()
    v = _get(cfg, "messages", "apology", default=None)
    s = str(v or "").strip()
    return s or DEFAULT_APOLOGY


_LOG_LEVELS = {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"}


def log_level() -> str:
    v = os.getenv("LOG_LEVEL")
    if not v:
        cfg = load_config()
        v = str(_get(cfg, "logs", "level", default="INFO") or "INFO")
    v = v.strip().upper()
    return v if v in _LOG_LEVELS else "INFO"


def microsoft_app_credentials() -> Dict[str, str]:
    """
    Bot registration values from the environment (.env). Read for reporting only;
    token exchange with the Bot Framework is not performed by this service.
    """
    return {
        "app_id": os.getenv("MicrosoftAppId", "") or "",
        "app_password": os.getenv("MicrosoftAppPassword", "") or "",
        "app_type": os.getenv("MicrosoftAppType", "") or "",
        "tenant_id": os.getenv("MicrosoftAppTenantId", "") or "",
    }
