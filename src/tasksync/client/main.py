from __future__ import annotations

import argparse
import asyncio
import sys

from src.setup.client_config import get_client_settings
from src.setup.logging_config import configure_logging
from src.tasksync.client.api import TaskApiClient
from src.tasksync.client.channel import websocket_channel_factory
from src.tasksync.client.exceptions import ApiError, CredentialRejectedError
from src.tasksync.client.session import TaskSyncSession
from src.tasksync.domain.models import Task


def render(tasks: list[Task]) -> None:
    print(f"\n== Tasks ({len(tasks)}) ==")
    if not tasks:
        print("No tasks found.")
    for task in tasks:
        mark = "x" if task.is_complete else " "
        due = f"  due {task.due_date:%Y-%m-%d}" if task.due_date else ""
        print(f"[{mark}] #{task.id} {task.title}{due}")
        if task.description:
            print(f"      {task.description}")


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="tasksync-watch",
        description="Log in and print the task list every time it changes.",
    )
    parser.add_argument("--email", required=True)
    parser.add_argument("--password", required=True)
    parser.add_argument(
        "--register", action="store_true", help="Create the account before logging in."
    )
    return parser


async def watch(email: str, password: str, register: bool = False) -> int:
    settings = get_client_settings()
    async with TaskApiClient(settings.API_BASE_URL, timeout=settings.REQUEST_TIMEOUT) as api:
        session = TaskSyncSession(
            api,
            websocket_channel_factory(settings.WS_URL),
            reconnect_delays=settings.RECONNECT_DELAYS,
            on_change=render,
        )
        try:
            if register:
                await api.register(email, password)
            await session.login(email, password)
        except CredentialRejectedError:
            print("Login failed: wrong email or password.", file=sys.stderr)
            return 1
        except ApiError as exc:
            print(f"Request failed: {exc.detail or exc.status_code}", file=sys.stderr)
            return 1

        try:
            await session.wait_closed()
        finally:
            await session.logout()

    print("Session expired. Please log in again.", file=sys.stderr)
    return 2


def main(argv: list[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)
    configure_logging()
    try:
        return asyncio.run(watch(args.email, args.password, args.register))
    except KeyboardInterrupt:
        return 130


if __name__ == "__main__":
    sys.exit(main())
