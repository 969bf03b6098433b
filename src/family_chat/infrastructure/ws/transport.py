"""``websockets``-backed implementation of the RealtimeTransport port."""
from __future__ import annotations

from urllib.parse import urlencode

from websockets.asyncio.client import ClientConnection, connect
from websockets.exceptions import ConnectionClosed

from family_chat.application.ports.transport import TransportClosedError


class WebSocketTransport:
    def __init__(self, connection: ClientConnection) -> None:
        self._connection = connection

    async def send(self, raw: str) -> None:
        try:
            await self._connection.send(raw)
        except ConnectionClosed as exc:
            raise TransportClosedError(str(exc)) from exc

    async def recv(self) -> str:
        try:
            frame = await self._connection.recv()
        except ConnectionClosed as exc:
            raise TransportClosedError(str(exc)) from exc
        return frame.decode() if isinstance(frame, bytes) else frame

    async def close(self) -> None:
        await self._connection.close()


async def open_websocket(url: str, token: str) -> WebSocketTransport:
    """Implements application.ports.transport.TransportFactory."""
    separator = "&" if "?" in url else "?"
    connection = await connect(f"{url}{separator}{urlencode({'token': token})}")
    return WebSocketTransport(connection)
