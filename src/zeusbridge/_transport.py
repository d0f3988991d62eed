"""WebSocket transport for the rosbridge bus."""

from __future__ import annotations

import asyncio
import logging
from typing import Protocol

import aiohttp

from zeusbridge.config import BridgeConfig
from zeusbridge.exceptions import BridgeTransportError

_logger = logging.getLogger(__name__)


class Socket(Protocol):
    """One open bus socket.

    ``receive_text`` returns ``None`` once the peer closed the socket and
    raises :class:`BridgeTransportError` on a socket-level failure.
    """

    async def send_text(self, data: str) -> None:
        ...

    async def receive_text(self) -> str | None:
        ...

    async def close(self) -> None:
        ...


class Transport(Protocol):
    """Structural transport interface used by the connection.

    Having a protocol here makes it easy to pass test doubles while keeping
    the production implementation (`WebSocketTransport`) concrete.
    """

    async def open(self, url: str) -> Socket:
        ...

    async def close(self) -> None:
        ...


class _AiohttpSocket:
    def __init__(self, ws: aiohttp.ClientWebSocketResponse, url: str) -> None:
        self._ws = ws
        self._url = url

    async def send_text(self, data: str) -> None:
        try:
            await self._ws.send_str(data)
        except (aiohttp.ClientError, ConnectionError) as exc:
            raise BridgeTransportError(f"Send to {self._url} failed: {exc}", url=self._url) from exc

    async def receive_text(self) -> str | None:
        while True:
            msg = await self._ws.receive()
            if msg.type == aiohttp.WSMsgType.TEXT:
                return str(msg.data)
            if msg.type == aiohttp.WSMsgType.BINARY:
                return bytes(msg.data).decode("utf-8", errors="replace")
            if msg.type in (aiohttp.WSMsgType.CLOSE, aiohttp.WSMsgType.CLOSING, aiohttp.WSMsgType.CLOSED):
                _logger.debug("WebSocket closed by peer url=%s code=%s", self._url, self._ws.close_code)
                return None
            if msg.type == aiohttp.WSMsgType.ERROR:
                raise BridgeTransportError(
                    f"WebSocket error on {self._url}: {self._ws.exception()}",
                    url=self._url,
                )

    async def close(self) -> None:
        if not self._ws.closed:
            await self._ws.close()


class WebSocketTransport:
    """aiohttp WebSocket transport.

    Owns its ``aiohttp.ClientSession`` unless one is passed in, in which
    case the caller keeps ownership.
    """

    def __init__(
        self,
        *,
        session: aiohttp.ClientSession | None = None,
        connect_timeout: float = 10.0,
        heartbeat: float | None = None,
    ) -> None:
        self._external_session = session is not None
        self._http_session = session
        self._connect_timeout = connect_timeout
        self._heartbeat = heartbeat

    @classmethod
    def from_config(cls, config: BridgeConfig, *, session: aiohttp.ClientSession | None = None) -> WebSocketTransport:
        return cls(session=session, connect_timeout=config.connect_timeout, heartbeat=config.heartbeat)

    async def open(self, url: str) -> _AiohttpSocket:
        if self._http_session is None or self._http_session.closed:
            self._http_session = aiohttp.ClientSession()
        _logger.debug("WebSocket connect %s", url)
        try:
            ws = await asyncio.wait_for(
                self._http_session.ws_connect(url, heartbeat=self._heartbeat, autoping=True),
                self._connect_timeout,
            )
        except TimeoutError as exc:
            raise BridgeTransportError(
                f"Connecting to {url} timed out after {self._connect_timeout}s",
                url=url,
            ) from exc
        except (aiohttp.ClientError, OSError) as exc:
            raise BridgeTransportError(f"Connecting to {url} failed: {exc}", url=url) from exc
        return _AiohttpSocket(ws, url)

    async def close(self) -> None:
        if not self._external_session and self._http_session is not None:
            await self._http_session.close()
            self._http_session = None
