"""Client-side state for one chat connection."""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional, Tuple, Union

from models.chunk_models import Chunk
from models.session_models import AssistantMessage, TranscriptEntry
from services.client.message_store import MessageStore
from services.client.reassembler import StreamReassembler
from utils.chunk_codec import ChunkParseError, decode_frame, parse_chunk

LOGGER = logging.getLogger(__name__)

DISCONNECTED_NOTICE = "Disconnected from server"


class ChatSession:
	"""Tie a reassembler and a transcript to a single connection.

	The transport adapter owns one session per connection and feeds it every
	inbound frame plus the connect/disconnect signals.
	"""

	def __init__(
		self,
		sender: Optional[str] = None,
		reassembler: Optional[StreamReassembler] = None,
		store: Optional[MessageStore] = None,
	) -> None:
		self.sender = sender
		self.reassembler = reassembler or StreamReassembler()
		self.store = store or MessageStore()
		self.connected = False

	@property
	def entries(self) -> Tuple[TranscriptEntry, ...]:
		return self.store.entries

	def on_connect(self) -> None:
		self.connected = True
		LOGGER.info("Connected to server")

	def on_disconnect(self) -> None:
		"""Stop merging into the open reply and note the disconnect."""
		if not self.connected:
			return
		self.connected = False
		self.reassembler.disconnect()
		self.store.append_notice(DISCONNECTED_NOTICE)
		LOGGER.info("Disconnected from server")

	def receive(self, frame: Union[str, bytes, Dict[str, Any]]) -> Optional[TranscriptEntry]:
		"""Handle one inbound frame and return the transcript entry it touched.

		Frames are either event envelopes (`{"event": ..., ...}`) or bare chunk
		objects. Anything unusable is logged and dropped.
		"""
		try:
			payload = frame if isinstance(frame, dict) else decode_frame(frame)
		except ChunkParseError as exc:
			LOGGER.warning("Dropping frame: %s", exc)
			return None

		event = payload.get("event")
		if event is None:
			chunk_payload: Any = payload
		elif event == "message_chunk":
			chunk_payload = payload.get("chunk")
		elif event == "system_message":
			return self.store.append_notice(str(payload.get("text") or ""))
		elif event == "error":
			LOGGER.warning("Server error: %s", payload.get("detail"))
			return None
		else:
			LOGGER.warning("Ignoring unknown event %r", event)
			return None

		try:
			chunk = parse_chunk(chunk_payload)
		except ChunkParseError as exc:
			LOGGER.warning("Dropping unparseable chunk: %s", exc)
			return None
		return self.receive_chunk(chunk)

	def receive_chunk(self, chunk: Chunk) -> Optional[AssistantMessage]:
		"""Feed one chunk to the reassembler; a dropped chunk leaves the transcript alone."""
		rendered = self.reassembler.append(chunk)
		if rendered is None:
			return None
		return self.store.upsert_reply(rendered)

	def join_payload(self, name: str) -> Dict[str, Any]:
		"""Remember the display name and return the join event to send."""
		name = (name or "").strip()
		if not name:
			raise ValueError("Name is required.")
		self.sender = name
		return {"type": "user.join", "name": name}

	def submit_user_message(self, text: str) -> Dict[str, Any]:
		"""Record an outgoing message and return the event to send."""
		text = (text or "").strip()
		if not text:
			raise ValueError("Message text is required.")
		self.store.append_user(text, self.sender)
		payload: Dict[str, Any] = {"type": "user.message", "text": text}
		if self.sender:
			payload["sender"] = self.sender
		return payload
