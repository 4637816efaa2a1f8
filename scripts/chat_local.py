#!/usr/bin/env python3
"""
Interactive local chat harness (no HTTP, no Twilio).

Usage:
  python3 scripts/chat_local.py

What it does:
- Keeps a stable phone number for the session
- Sends your typed messages through the same HandleIncomingMessageUseCase
- Prints the FSM transition, events recorded, and the reply text
- Uses mock downstream services unless the *_URL settings are configured
"""

from __future__ import annotations

import os
import time

from claimchat.domain.entities.message import Message
from claimchat.wiring.dependencies import (
    get_conversation_store,
    get_drain_outbox_use_case,
    get_handle_incoming_message_use_case,
)


def _print_header(identity: str) -> None:
    print("\nLocal Chat Harness")
    print("-" * 60)
    print(f"identity: {identity}")
    print("Type your message and press Enter.")
    print("Commands: /new (new number), /state, /photo, /drain, /quit, /help")
    print("-" * 60)


def main() -> None:
    identity = os.getenv("CHAT_IDENTITY", "+447700900123")
    use_case = get_handle_incoming_message_use_case()
    store = get_conversation_store()
    _print_header(identity)

    while True:
        try:
            user_text = input("\n> ").strip()
        except (EOFError, KeyboardInterrupt):
            print("\nBye!")
            return

        if not user_text:
            continue

        media_url = None
        cmd = user_text.lower()
        if cmd in ("/quit", "/exit"):
            print("Bye!")
            return
        if cmd == "/help":
            print("Commands:")
            print("  /new   -> start over with a new phone number")
            print("  /state -> show the stored FSM state and state data")
            print("  /photo -> send a fake ticket photo")
            print("  /drain -> publish pending outbox events to the log")
            print("  /quit  -> exit")
            continue
        if cmd == "/new":
            identity = f"+4477009{int(time.time()) % 100000:05d}"
            print(f"New identity: {identity}")
            continue
        if cmd == "/state":
            conversation = store.get(identity)
            print(f"state: {conversation.state.value}")
            for key, value in conversation.state_data.items():
                print(f"  {key}: {value}")
            continue
        if cmd == "/drain":
            result = get_drain_outbox_use_case().execute()
            print(f"published={result.published} failed={result.failed}")
            continue
        if cmd == "/photo":
            media_url = "https://example.com/ticket.jpg"
            user_text = ""

        message = Message(
            id=f"local_{int(time.time() * 1000)}",
            identity=identity,
            text=user_text,
            media_url=media_url,
            platform="local",
        )
        outcome = use_case.handle(message)

        print("\n--- Transition ---")
        print(f"state: {outcome.state.value if outcome.state else '(cleared)'}")
        print(f"events: {outcome.event_count}")
        print("\n--- Reply ---")
        print((outcome.reply or "").strip() or "(no reply)")
        print("-" * 60)


if __name__ == "__main__":
    main()
