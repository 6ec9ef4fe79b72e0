"""WebSocket endpoint streaming chunked chat replies."""

from __future__ import annotations

import json
import logging

from fastapi import APIRouter, Depends, WebSocket, WebSocketException, status
from starlette.websockets import WebSocketDisconnect

from services.realtime.session_store import ParticipantStore, system_notice
from services.realtime.ws_session import ChatConnectionHandler
from utils.chunk_codec import ChunkParseError, decode_frame

LOGGER = logging.getLogger(__name__)

router = APIRouter()


def _require_participant_store(websocket: WebSocket) -> ParticipantStore:
	store = getattr(websocket.app.state, "participant_store", None)
	if store is None:
		raise WebSocketException(code=status.WS_1011_INTERNAL_ERROR, reason="Participant store unavailable")
	return store


@router.websocket("/ws/chat")
async def chat_socket(websocket: WebSocket, store: ParticipantStore = Depends(_require_participant_store)):
	"""Receive chat events and stream replies over one websocket."""
	await websocket.accept()
	participant = store.register(websocket)
	handler = ChatConnectionHandler(store, websocket.app.state.reply_generator, participant)
	LOGGER.info("Connection opened: %s", participant.connection_id)
	try:
		while True:
			try:
				raw = await websocket.receive_text()
			except WebSocketDisconnect:
				break
			except KeyError:
				await websocket.send_text(json.dumps({"event": "error", "detail": "Only text frames are supported"}))
				continue
			try:
				payload = decode_frame(raw)
			except ChunkParseError:
				await websocket.send_text(json.dumps({"event": "error", "detail": "Payload must be a JSON object"}))
				continue
			try:
				await handler.handle(websocket, payload)
			except WebSocketDisconnect:
				break
			except Exception:
				LOGGER.exception("Connection %s failed", participant.connection_id)
				break
	finally:
		left = store.remove(participant.connection_id)
		LOGGER.info("Connection closed: %s", left.connection_id)
		if left.name:
			await store.broadcast(system_notice(f"{left.name} has left the chat"))
