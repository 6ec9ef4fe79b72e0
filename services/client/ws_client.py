"""Websocket transport adapter feeding a ChatSession."""

from __future__ import annotations

import json
import logging
from typing import Any, Callable, Dict, Optional

import websockets
from websockets.exceptions import ConnectionClosed

from models.session_models import TranscriptEntry
from services.client.chat_session import ChatSession

LOGGER = logging.getLogger(__name__)


class ChatClient:
	"""Connect to the chat server and pump its frames into a session."""

	def __init__(
		self,
		url: str,
		session: Optional[ChatSession] = None,
		on_update: Optional[Callable[[TranscriptEntry], None]] = None,
	) -> None:
		self.url = url
		self.session = session or ChatSession()
		self.on_update = on_update
		self._ws = None

	async def __aenter__(self) -> "ChatClient":
		await self.connect()
		return self

	async def __aexit__(self, exc_type, exc, tb) -> None:
		await self.close()

	async def connect(self, name: Optional[str] = None) -> None:
		"""Open the connection, then join with `name` when one is given."""
		self._ws = await websockets.connect(self.url)
		self.session.on_connect()
		if name:
			await self._send(self.session.join_payload(name))

	async def send_message(self, text: str) -> None:
		"""Submit one user message; the reply arrives through `listen`."""
		await self._send(self.session.submit_user_message(text))

	async def listen(self) -> None:
		"""Feed inbound frames to the session until the connection closes."""
		if self._ws is None:
			raise RuntimeError("Client is not connected.")
		try:
			async for frame in self._ws:
				entry = self.session.receive(frame)
				if entry is not None and self.on_update is not None:
					self.on_update(entry)
		except ConnectionClosed as exc:
			LOGGER.info("Connection closed: %s", exc)
		finally:
			self.session.on_disconnect()

	async def close(self) -> None:
		if self._ws is not None:
			await self._ws.close()
			self._ws = None
		self.session.on_disconnect()

	async def _send(self, payload: Dict[str, Any]) -> None:
		if self._ws is None:
			raise RuntimeError("Client is not connected.")
		await self._ws.send(json.dumps(payload))
