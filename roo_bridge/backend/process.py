"""
Supervision of the RooLLM backend process: spawn it, mirror its output into
the log, and report its exit.
"""
from __future__ import annotations

import asyncio
import logging
import os
import signal
from pathlib import Path
from typing import Optional

import httpx

logger = logging.getLogger("roo_bridge.process")

PIPE_CHUNK_BYTES = 64 * 1024


class BackendProcess:
    def __init__(self, *, command: str, cwd: str, name: str = "RooLLM"):
        self.command = command
        self.cwd = cwd
        self.name = name
        self.returncode: Optional[int] = None
        self._proc: Optional[asyncio.subprocess.Process] = None
        self._tasks: list[asyncio.Task] = []

    @property
    def running(self) -> bool:
        return self._proc is not None and self._proc.returncode is None

    async def start(self) -> None:
        if self.running:
            return
        cwd = Path(self.cwd)
        logger.info("starting %s: %s (cwd=%s)", self.name, self.command, cwd)
        self.returncode = None
        self._proc = await asyncio.create_subprocess_shell(
            self.command,
            cwd=str(cwd),
            env=dict(os.environ),
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
            start_new_session=(os.name == "posix"),
            limit=4 * PIPE_CHUNK_BYTES,
        )
        self._tasks = [
            asyncio.create_task(self._pump(self._proc.stdout, logging.INFO, f"[{self.name}]")),
            asyncio.create_task(self._pump(self._proc.stderr, logging.ERROR, f"[{self.name} Error]")),
            asyncio.create_task(self._watch()),
        ]

    async def _pump(self, stream: Optional[asyncio.StreamReader], level: int, prefix: str) -> None:
        if stream is None:
            return
        buf = b""
        while True:
            chunk = await stream.read(PIPE_CHUNK_BYTES)
            if not chunk:
                break
            buf += chunk
            *lines, buf = buf.split(b"\n")
            # an unterminated line is flushed once it outgrows the chunk size
            if len(buf) >= PIPE_CHUNK_BYTES:
                lines.append(buf)
                buf = b""
            for line in lines:
                self._log_line(line, level, prefix)
        self._log_line(buf, level, prefix)

    def _log_line(self, line: bytes, level: int, prefix: str) -> None:
        text = line.decode("utf-8", errors="replace").rstrip()
        if text:
            logger.log(level, "%s: %s", prefix, text)

    async def _watch(self) -> None:
        proc = self._proc
        if proc is None:
            return
        code = await proc.wait()
        self.returncode = code
        logger.info("%s process exited with code %s", self.name, code)

    async def wait(self) -> Optional[int]:
        if self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)
        return self.returncode

    async def stop(self, *, grace_s: float = 5.0) -> None:
        proc = self._proc
        if proc is None:
            return
        if proc.returncode is None:
            self._signal(signal.SIGTERM)
            try:
                await asyncio.wait_for(proc.wait(), timeout=grace_s)
            except asyncio.TimeoutError:
                logger.warning("%s did not exit after %.1fs; killing", self.name, grace_s)
                self._signal(getattr(signal, "SIGKILL", signal.SIGTERM))
                await proc.wait()
        try:
            await asyncio.wait_for(self.wait(), timeout=grace_s)
        except asyncio.TimeoutError:
            # a grandchild still holds the output pipes
            for task in self._tasks:
                task.cancel()

    def _signal(self, sig: int) -> None:
        proc = self._proc
        if proc is None:
            return
        try:
            if os.name == "posix":
                # the shell runs in its own session, so this reaches npm's children too
                os.killpg(proc.pid, sig)
            elif sig == signal.SIGTERM:
                proc.terminate()
            else:
                proc.kill()
        except ProcessLookupError:
            pass


async def wait_until_ready(
    url: str,
    *,
    attempts: int = 30,
    interval_s: float = 1.0,
    client: Optional[httpx.AsyncClient] = None,
) -> bool:
    """
    Poll `url` until the backend answers with a status below 500.
    Returns False once the attempts are used up.
    """
    own_client = client is None
    http = client or httpx.AsyncClient(timeout=max(1.0, interval_s))
    try:
        for attempt in range(1, max(1, attempts) + 1):
            try:
                resp = await http.get(url)
                if resp.status_code < 500:
                    logger.info("backend ready at %s (attempt %d)", url, attempt)
                    return True
                logger.debug("backend not ready: HTTP %s", resp.status_code)
            except httpx.HTTPError as e:
                logger.debug("backend not ready: %s", e)
            if attempt < attempts:
                await asyncio.sleep(interval_s)
    finally:
        if own_client:
            await http.aclose()
    logger.warning("backend at %s not ready after %d attempts", url, attempts)
    return False
