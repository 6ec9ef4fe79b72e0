"""Session domain models for streamed chat replies."""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import List, Optional, Tuple, Union
from uuid import uuid4

from models.chunk_models import Chunk


def new_message_id() -> str:
	"""Return a message id made of a millisecond timestamp and a random suffix."""
	return f"{int(time.time() * 1000)}-{uuid4().hex[:8]}"


@dataclass(frozen=True)
class ChunkDiagnostic:
	"""A chunk that rendered as nothing, with the reason."""

	index: int
	tag: str
	reason: str


@dataclass(frozen=True)
class RenderedMessage:
	"""Render of one reply computed from its accumulated chunks."""

	message_id: str
	fragments: Tuple[str, ...]
	is_complete: bool
	diagnostics: Tuple[ChunkDiagnostic, ...] = ()

	@property
	def html(self) -> str:
		return "".join(self.fragments)


@dataclass
class InFlightMessage:
	"""Accumulator for a reply that has not received its terminal chunk."""

	id: str
	source_id: Optional[str] = None
	chunks: List[Chunk] = field(default_factory=list)
	is_complete: bool = False
	created_at: float = field(default_factory=lambda: time.time())


@dataclass(frozen=True)
class UserMessage:
	"""Text submitted by the local participant."""

	text: str
	sender: Optional[str] = None
	created_at: float = field(default_factory=lambda: time.time())


@dataclass(frozen=True)
class AssistantMessage:
	"""Transcript view of a reply, in flight or sealed."""

	message_id: str
	html: str
	is_complete: bool
	sender: str = "AI Assistant"
	created_at: float = field(default_factory=lambda: time.time())

	@classmethod
	def from_render(cls, rendered: RenderedMessage, created_at: Optional[float] = None) -> "AssistantMessage":
		return cls(
			message_id=rendered.message_id,
			html=rendered.html,
			is_complete=rendered.is_complete,
			created_at=created_at if created_at is not None else time.time(),
		)


@dataclass(frozen=True)
class SystemNotice:
	"""Join/leave and connection notices shown between messages."""

	text: str
	created_at: float = field(default_factory=lambda: time.time())


TranscriptEntry = Union[UserMessage, AssistantMessage, SystemNotice]


@dataclass
class Participant:
	"""Server-side view of one websocket connection."""

	connection_id: str
	name: Optional[str] = None
	joined_at: float = field(default_factory=lambda: time.time())

	@property
	def display_name(self) -> str:
		return self.name or "Anonymous"
