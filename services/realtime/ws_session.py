"""Dispatch chat websocket events to the appropriate handlers."""
from __future__ import annotations

import json
import logging
from typing import Any, Dict

from fastapi import WebSocket
from starlette.websockets import WebSocketDisconnect

from models.session_models import Participant, new_message_id
from services.realtime.session_store import ParticipantStore, system_notice
from utils.chunk_codec import encode_chunk

LOGGER = logging.getLogger(__name__)


def _normalize_event(payload: Dict[str, Any]) -> Dict[str, Any]:
	"""Map the legacy `{"message": ...}` submission onto `user.message`."""
	if "type" in payload or "message" not in payload:
		return payload
	message = payload["message"]
	if isinstance(message, dict):
		return {**message, "type": "user.message", "request_id": payload.get("request_id")}
	return {"type": "user.message", "text": message, "request_id": payload.get("request_id")}


class ChatConnectionHandler:
	"""Route websocket events for a single chat connection."""

	def __init__(self, store: ParticipantStore, generator, participant: Participant) -> None:
		self.store = store
		self.generator = generator
		self.participant = participant

	async def handle(self, websocket: WebSocket, payload: Dict[str, Any]) -> None:
		"""Process a single inbound websocket payload."""
		payload = _normalize_event(payload)
		request_id = payload.get("request_id")
		message_type = payload.get("type")
		try:
			if message_type == "user.join":
				await self._join(payload)
			elif message_type == "user.message":
				await self._reply(websocket, payload)
			else:
				raise ValueError("Unsupported message type.")
		except WebSocketDisconnect:
			raise
		except (ValueError, RuntimeError) as exc:
			await self._send_error(websocket, request_id, str(exc))
		except Exception as exc:
			LOGGER.exception("Reply failed on connection %s", self.participant.connection_id)
			await self._send_error(websocket, request_id, f"Reply failed: {exc}")

	async def _join(self, payload: Dict[str, Any]) -> None:
		"""Name the participant and tell everyone they arrived."""
		name = (payload.get("name") or "").strip()
		if not name:
			raise ValueError("Name is required.")
		self.store.set_name(self.participant.connection_id, name)
		LOGGER.info("%s connected (connection %s)", name, self.participant.connection_id)
		await self.store.broadcast(system_notice(f"{name} has joined the chat"))

	async def _reply(self, websocket: WebSocket, payload: Dict[str, Any]) -> None:
		"""Stream one reply to the message, chunk by chunk."""
		text = str(payload.get("text") or "").strip()
		if not text:
			raise ValueError("Message text is required.")
		sender = self.participant.name or str(payload.get("sender") or "").strip() or None
		message_id = new_message_id()
		LOGGER.info("Message from %s: %s", sender or self.participant.display_name, text)

		count = 0
		async for chunk in self.generator.generate(text, message_id=message_id, sender=sender):
			await self._send(websocket, {"event": "message_chunk", "chunk": encode_chunk(chunk)})
			count += 1
		LOGGER.debug("Reply %s sent in %d chunks", message_id, count)

	async def _send_error(self, websocket: WebSocket, request_id: Any, detail: str) -> None:
		await self._send(websocket, {"event": "error", "request_id": request_id, "detail": detail})

	async def _send(self, websocket: WebSocket, payload: Dict[str, Any]) -> None:
		await websocket.send_text(json.dumps(payload))
