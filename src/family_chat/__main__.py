"""Dev console: python -m family_chat --email you@example.com --password ..."""
from __future__ import annotations

import argparse
import asyncio
import logging
import sys

from family_chat.app import create_client
from family_chat.application.exceptions import AppError
from family_chat.config import settings
from family_chat.domain.entities.message import ConfirmedMessage, Message


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Family group chat console")
    parser.add_argument("--email", required=True)
    parser.add_argument("--password", required=True)
    return parser.parse_args()


def _printer(self_id: str):
    shown: set[str] = set()

    def _print_new(messages: tuple[Message, ...]) -> None:
        for message in messages:
            if not isinstance(message, ConfirmedMessage) or message.id in shown:
                continue
            shown.add(message.id)
            who = "you" if message.author_id == self_id else (message.display_name or message.author_id)
            suffix = " (edited)" if message.edited else ""
            print(f"[{message.created_at:%H:%M}] {who}: {message.body}{suffix}")

    return _print_new


async def run(email: str, password: str) -> int:
    client = create_client()
    try:
        identity = await client.login(email, password)
    except AppError as exc:
        print(f"Login failed: {exc.detail}", file=sys.stderr)
        await client.aclose()
        return 1

    chat = client.group_chat()
    subscription = chat.subscribe(_printer(identity.id))
    try:
        if not await chat.mount():
            print(chat.error, file=sys.stderr)
            return 1
        print(f"Connected as {identity.display_name} ({client.connection.state}). Ctrl-D to quit.")
        loop = asyncio.get_running_loop()
        while True:
            line = await loop.run_in_executor(None, sys.stdin.readline)
            if not line:
                break
            await chat.send(line)
            if chat.error:
                print(chat.error, file=sys.stderr)
    finally:
        subscription.unsubscribe()
        chat.unmount()
        await client.aclose()
    return 0


def main() -> None:
    logging.basicConfig(
        level=settings.LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    args = parse_args()
    sys.exit(asyncio.run(run(args.email, args.password)))


if __name__ == "__main__":
    main()
