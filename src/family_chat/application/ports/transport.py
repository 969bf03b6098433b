from __future__ import annotations

from typing import Awaitable, Callable, Protocol


class TransportClosedError(Exception):
    """Raised by ``recv`` once the peer or the network closed the connection."""


class RealtimeTransport(Protocol):
    async def send(self, raw: str) -> None: ...
    async def recv(self) -> str: ...
    async def close(self) -> None: ...


# (url, bearer token) -> opened transport; raises on network failure.
TransportFactory = Callable[[str, str], Awaitable[RealtimeTransport]]
