from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Protocol
from uuid import uuid4

logger = logging.getLogger(__name__)

DEFAULT_SEND_TIMEOUT = 5.0


class Channel(Protocol):
    async def send_json(self, data: Any) -> None:
        """Write one JSON message to the peer."""


class ConnectionState(str, Enum):
    CONNECTING = "connecting"
    OPEN = "open"
    CLOSED = "closed"


@dataclass(eq=False)
class Connection:
    user_id: str
    channel: Channel
    id: str = field(default_factory=lambda: uuid4().hex)
    state: ConnectionState = ConnectionState.CONNECTING
    _pending: set[asyncio.Task[None]] = field(default_factory=set, repr=False)

    @property
    def is_open(self) -> bool:
        return self.state is ConnectionState.OPEN

    def dispatch(self, message: dict[str, Any], timeout: float) -> asyncio.Task[None]:
        """
        Start sending ``message`` and track the send so ``close`` can cancel it.

        A send still pending after ``timeout`` seconds fails with ``TimeoutError``.
        """
        task = asyncio.create_task(self._send(message, timeout))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return task

    async def _send(self, message: dict[str, Any], timeout: float) -> None:
        async with asyncio.timeout(timeout):
            await self.channel.send_json(message)

    def close(self) -> None:
        self.state = ConnectionState.CLOSED
        for task in list(self._pending):
            task.cancel()


class ConnectionRegistry:
    """
    Live set of authenticated realtime connections.

    Only ``open`` and ``close`` mutate the set. ``broadcast`` works on a snapshot
    taken under the lock and sends outside it, so slow peers never block
    handshakes or disconnects. A peer that does not take a message within
    ``send_timeout`` seconds is dropped, so one stalled socket cannot hold up
    the mutation that triggered the broadcast.
    """

    def __init__(self, send_timeout: float = DEFAULT_SEND_TIMEOUT) -> None:
        self._connections: dict[str, Connection] = {}
        self._lock = asyncio.Lock()
        self._send_timeout = send_timeout

    def __len__(self) -> int:
        return len(self._connections)

    def __contains__(self, connection_id: object) -> bool:
        return connection_id in self._connections

    def connections(self) -> list[Connection]:
        return list(self._connections.values())

    async def open(
        self,
        user_id: str,
        channel: Channel,
        handshake: Callable[[], Awaitable[None]] | None = None,
    ) -> Connection:
        """
        Register a channel whose credential has already been validated.

        The connection joins the set as ``connecting`` and becomes ``open`` once
        ``handshake`` (e.g. the websocket accept) completes. Broadcasts skip it
        until then.
        """
        connection = Connection(user_id=user_id, channel=channel)
        async with self._lock:
            self._connections[connection.id] = connection
        if handshake is not None:
            try:
                await handshake()
            except BaseException:
                await self.close(connection.id)
                raise
        if connection.state is ConnectionState.CONNECTING:
            connection.state = ConnectionState.OPEN
        live = len(self._connections)
        logger.info(
            "Realtime connection opened",
            extra={"connection_id": connection.id, "user_id": user_id, "live": live},
        )
        return connection

    async def close(self, connection_id: str) -> None:
        async with self._lock:
            connection = self._connections.pop(connection_id, None)
            live = len(self._connections)
        if connection is None:
            return
        connection.close()
        logger.info(
            "Realtime connection closed",
            extra={"connection_id": connection_id, "user_id": connection.user_id, "live": live},
        )

    async def broadcast(self, message: dict[str, Any]) -> int:
        """
        Send ``message`` to every open connection and return how many accepted it.

        Failures are isolated per connection: a failed peer is dropped from the
        live set, a peer closed mid-send is skipped, and neither affects the rest.
        """
        async with self._lock:
            targets = [c for c in self._connections.values() if c.is_open]
        if not targets:
            return 0

        sends = [
            (connection, connection.dispatch(message, self._send_timeout)) for connection in targets
        ]
        results = await asyncio.gather(*(task for _, task in sends), return_exceptions=True)

        delivered = 0
        dead: list[str] = []
        for (connection, _), result in zip(sends, results):
            if isinstance(result, asyncio.CancelledError):
                continue
            if isinstance(result, Exception):
                logger.warning(
                    "Dropping realtime connection after failed send",
                    extra={"connection_id": connection.id, "error": repr(result)},
                )
                dead.append(connection.id)
                continue
            delivered += 1

        for connection_id in dead:
            await self.close(connection_id)
        return delivered
