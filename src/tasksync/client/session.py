from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from datetime import datetime

from src.tasksync.client.api import TaskApiClient
from src.tasksync.client.channel import ChannelFactory
from src.tasksync.client.credentials import SessionCredential
from src.tasksync.client.sync_agent import DEFAULT_RECONNECT_DELAYS, TaskSyncAgent
from src.tasksync.domain.models import Task

logger = logging.getLogger(__name__)


class TaskSyncSession:
    """
    Binds the realtime connection to the lifetime of the session credential.

    Logging in starts a sync agent; logging out or credential expiry tears it
    down. There is never a live connection without a credential.

    Local mutations go straight to the API and do not refresh the view: the
    server broadcasts them back to this session like to any other.
    """

    def __init__(
        self,
        api: TaskApiClient,
        channel_factory: ChannelFactory,
        *,
        reconnect_delays: Sequence[float] = DEFAULT_RECONNECT_DELAYS,
        on_change: Callable[[list[Task]], None] | None = None,
    ) -> None:
        self._api = api
        self._channel_factory = channel_factory
        self._reconnect_delays = reconnect_delays
        self._on_change = on_change
        self._credential: SessionCredential | None = None
        self._agent: TaskSyncAgent | None = None

    @property
    def credential(self) -> SessionCredential | None:
        return self._credential

    @property
    def agent(self) -> TaskSyncAgent | None:
        return self._agent

    @property
    def tasks(self) -> list[Task]:
        return self._agent.tasks if self._agent is not None else []

    async def login(self, email: str, password: str) -> SessionCredential:
        credential = await self._api.login(email, password)
        await self.set_credential(credential)
        return credential

    async def set_credential(self, credential: SessionCredential) -> None:
        await self._teardown()
        self._credential = credential
        self._api.set_token(credential.token)
        self._agent = TaskSyncAgent(
            self._api,
            self._channel_factory,
            reconnect_delays=self._reconnect_delays,
            on_change=self._on_change,
            on_expired=self._clear_credential,
        )
        self._agent.start(credential)

    async def wait_closed(self) -> None:
        """Wait until the sync agent stops; returns at once when signed out."""
        agent = self._agent
        if agent is not None:
            await agent.wait_closed()

    async def logout(self) -> None:
        await self._teardown()
        self._clear_credential()

    async def create_task(
        self, title: str, description: str = "", due_date: datetime | None = None
    ) -> Task:
        return await self._api.create_task(title, description, due_date)

    async def update_task(self, task: Task) -> None:
        await self._api.update_task(task)

    async def toggle_task(self, task: Task) -> None:
        await self._api.toggle_task(task)

    async def delete_task(self, task_id: int) -> None:
        await self._api.delete_task(task_id)

    async def _teardown(self) -> None:
        agent, self._agent = self._agent, None
        if agent is not None:
            await agent.stop()

    def _clear_credential(self) -> None:
        if self._credential is not None:
            logger.info("Session credential cleared")
        self._credential = None
        self._api.set_token(None)
