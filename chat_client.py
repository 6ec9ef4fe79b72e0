"""Send one message to the chat server and print the reply as it seals.

Each reply is reassembled from its chunks as they arrive; the final HTML is
printed once the completing chunk lands, then the client disconnects.

Run: start the server (`python main.py`), then
      `python chat_client.py --name Ada "Hello there"`.
"""
import argparse
import asyncio
import logging

from models.session_models import AssistantMessage, SystemNotice, TranscriptEntry
from services.client.ws_client import ChatClient
from utils.logging_config import setup_logging


def _parse_args() -> argparse.Namespace:
    """Return the command-line arguments."""
    parser = argparse.ArgumentParser(description="Chunk stream chat client")
    parser.add_argument("message", help="Message to send")
    parser.add_argument("--url", default="ws://localhost:5000/ws/chat", help="Chat websocket URL")
    parser.add_argument("--name", default=None, help="Display name to join with")
    parser.add_argument("--timeout", type=float, default=60.0, help="Seconds to wait for the reply")
    parser.add_argument("--log-level", default="WARNING")
    return parser.parse_args()


async def main() -> int:
    """Join, send the message and wait for its reply to seal."""
    args = _parse_args()
    setup_logging(args.log_level)
    sealed = asyncio.Event()

    def _on_update(entry: TranscriptEntry) -> None:
        if isinstance(entry, SystemNotice):
            print(f"* {entry.text}")
        elif isinstance(entry, AssistantMessage) and entry.is_complete:
            print(entry.html)
            sealed.set()

    client = ChatClient(args.url, on_update=_on_update)
    await client.connect(name=args.name)
    listener = asyncio.create_task(client.listen())
    try:
        await client.send_message(args.message)
        await asyncio.wait_for(sealed.wait(), timeout=args.timeout)
    except asyncio.TimeoutError:
        logging.getLogger(__name__).error("No complete reply within %.0fs", args.timeout)
        return 1
    finally:
        await client.close()
        await listener
    return 0


if __name__ == "__main__":
    raise SystemExit(asyncio.run(main()))
