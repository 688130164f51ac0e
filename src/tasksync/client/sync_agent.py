from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Sequence
from enum import Enum
from typing import Protocol

import httpx

from src.tasksync.client.channel import ChannelFactory, RealtimeChannel
from src.tasksync.client.credentials import SessionCredential
from src.tasksync.client.exceptions import (
    ApiError,
    CredentialRejectedError,
    RealtimeDisconnectedError,
)
from src.tasksync.domain.models import Task, TaskNotification

logger = logging.getLogger(__name__)

DEFAULT_RECONNECT_DELAYS: tuple[float, ...] = (0.0, 2.0, 10.0, 30.0)


class TaskReader(Protocol):
    async def list_tasks(self) -> list[Task]: ...


class SyncState(str, Enum):
    IDLE = "idle"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    RECONNECTING = "reconnecting"
    EXPIRED = "expired"
    STOPPED = "stopped"


class TaskSyncAgent:
    """
    Keeps a local copy of the task list in step with the server for one credential.

    Notifications are treated as "something changed": the agent never applies a
    pushed task, it re-reads the whole list and replaces its view. Lost or
    reordered notifications therefore cannot leave the view inconsistent.
    """

    def __init__(
        self,
        api: TaskReader,
        channel_factory: ChannelFactory,
        *,
        reconnect_delays: Sequence[float] = DEFAULT_RECONNECT_DELAYS,
        on_change: Callable[[list[Task]], None] | None = None,
        on_expired: Callable[[], None] | None = None,
    ) -> None:
        if not reconnect_delays:
            raise ValueError("reconnect_delays must not be empty")
        self._api = api
        self._channel_factory = channel_factory
        self._reconnect_delays = tuple(reconnect_delays)
        self._on_change = on_change
        self._on_expired = on_expired
        self._tasks: list[Task] = []
        self._loaded = False
        self._runner: asyncio.Task[None] | None = None
        self._connected = asyncio.Event()
        self.state = SyncState.IDLE
        self.last_error: Exception | None = None

    @property
    def tasks(self) -> list[Task]:
        return list(self._tasks)

    @property
    def running(self) -> bool:
        return self._runner is not None and not self._runner.done()

    def start(self, credential: SessionCredential) -> None:
        if self.running:
            raise RuntimeError("Sync agent is already running")
        self._runner = asyncio.create_task(self._run(credential))

    async def stop(self) -> None:
        runner, self._runner = self._runner, None
        if runner is not None and not runner.done():
            runner.cancel()
            try:
                await runner
            except asyncio.CancelledError:
                pass
        self._connected.clear()
        if self.state is not SyncState.EXPIRED:
            self.state = SyncState.STOPPED

    async def wait_connected(self, timeout: float | None = None) -> None:
        await asyncio.wait_for(self._connected.wait(), timeout)

    async def wait_closed(self) -> None:
        if self._runner is not None:
            await asyncio.shield(self._runner)

    async def refresh(self) -> bool:
        """
        Replace the local view with the server's list.

        Returns False and keeps the previous view when the read fails; the next
        notification or a manual refresh will try again.
        """
        try:
            tasks = await self._api.list_tasks()
        except (ApiError, httpx.HTTPError) as exc:
            self.last_error = exc
            logger.warning("Task refresh failed, keeping previous view", extra={"error": repr(exc)})
            return False

        self.last_error = None
        if not self._loaded or tasks != self._tasks:
            self._loaded = True
            self._tasks = tasks
            if self._on_change is not None:
                self._on_change(self.tasks)
        return True

    async def handle_notification(self, notification: TaskNotification | None) -> None:
        if notification is not None:
            logger.debug(
                "Task change received",
                extra={"task_id": notification.task.id, "action": notification.action.value},
            )
        await self.refresh()

    async def _run(self, credential: SessionCredential) -> None:
        failures = 0
        while True:
            if credential.is_expired():
                self._expire("credential expired")
                return

            self.state = SyncState.CONNECTING if failures == 0 else SyncState.RECONNECTING
            try:
                async with asyncio.timeout(credential.seconds_remaining()):
                    await self._session(credential)
            except CredentialRejectedError:
                self._expire("credential rejected")
                return
            except TimeoutError:
                # Only the expiry deadline raises this here; the channel wraps its own timeouts.
                self._expire("credential expired")
                return
            except RealtimeDisconnectedError as exc:
                if self._connected.is_set():
                    failures = 0
                self._connected.clear()
                self.last_error = exc
                delay = self._reconnect_delays[min(failures, len(self._reconnect_delays) - 1)]
                failures += 1
                logger.warning(
                    "Realtime connection lost, reconnecting",
                    extra={"attempt": failures, "delay": delay, "error": str(exc)},
                )
                self.state = SyncState.RECONNECTING
                await asyncio.sleep(delay)

    async def _session(self, credential: SessionCredential) -> None:
        async with self._channel_factory(credential) as channel:
            self.state = SyncState.CONNECTED
            self._connected.set()
            logger.info("Realtime connection established")
            # The initial view comes from the read endpoint; missed pushes are never replayed.
            await self.refresh()
            await self._pump(channel)

    async def _pump(self, channel: RealtimeChannel) -> None:
        while True:
            notification = await channel.receive()
            await self.handle_notification(notification)

    def _expire(self, reason: str) -> None:
        self._connected.clear()
        self.state = SyncState.EXPIRED
        logger.info("Sync session ended", extra={"reason": reason})
        if self._on_expired is not None:
            self._on_expired()
