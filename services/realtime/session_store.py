"""Simple in-memory store for open chat connections."""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List
from uuid import uuid4

from fastapi import WebSocket

from models.session_models import Participant

LOGGER = logging.getLogger(__name__)


def system_notice(text: str) -> Dict[str, Any]:
	"""Return the outbound system_message event for `text`."""
	return {"event": "system_message", "text": text, "timestamp": datetime.now(timezone.utc).isoformat()}


class ParticipantStore:
	"""Track connected participants and the sockets used to reach them."""

	def __init__(self) -> None:
		self._participants: Dict[str, Participant] = {}
		self._sockets: Dict[str, WebSocket] = {}

	def __len__(self) -> int:
		return len(self._participants)

	def register(self, websocket: WebSocket) -> Participant:
		"""Register a freshly accepted connection."""
		participant = Participant(connection_id=uuid4().hex)
		self._participants[participant.connection_id] = participant
		self._sockets[participant.connection_id] = websocket
		return participant

	def get(self, connection_id: str) -> Participant:
		"""Return a participant or raise KeyError if missing."""
		participant = self._participants.get(connection_id)
		if participant is None:
			raise KeyError(f"Connection {connection_id} not found")
		return participant

	def set_name(self, connection_id: str, name: str) -> Participant:
		"""Attach a display name to a connection."""
		participant = self.get(connection_id)
		participant.name = name.strip()
		return participant

	def remove(self, connection_id: str) -> Participant:
		"""Forget a connection and return what was known about it."""
		participant = self.get(connection_id)
		del self._participants[connection_id]
		self._sockets.pop(connection_id, None)
		return participant

	def names(self) -> List[str]:
		return [p.name for p in self._participants.values() if p.name]

	async def broadcast(self, payload: Dict[str, Any]) -> int:
		"""Send an event to every open connection; return how many got it."""
		message = json.dumps(payload)
		delivered = 0
		for connection_id, websocket in list(self._sockets.items()):
			try:
				await websocket.send_text(message)
			except Exception as exc:
				LOGGER.warning("Could not deliver %s to %s: %s", payload.get("event"), connection_id, exc)
				continue
			delivered += 1
		return delivered
