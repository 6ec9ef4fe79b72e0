"""Ordered transcript of user messages, replies and notices."""

from __future__ import annotations

import logging
from typing import Iterator, List, Optional, Tuple

from models.session_models import (
	AssistantMessage,
	RenderedMessage,
	SystemNotice,
	TranscriptEntry,
	UserMessage,
)

LOGGER = logging.getLogger(__name__)


class MessageStore:
	"""Append-only transcript whose last entry may be the reply still streaming."""

	def __init__(self) -> None:
		self._entries: List[TranscriptEntry] = []

	def __iter__(self) -> Iterator[TranscriptEntry]:
		return iter(self._entries)

	def __len__(self) -> int:
		return len(self._entries)

	@property
	def entries(self) -> Tuple[TranscriptEntry, ...]:
		return tuple(self._entries)

	@property
	def last(self) -> Optional[TranscriptEntry]:
		return self._entries[-1] if self._entries else None

	def append_user(self, text: str, sender: Optional[str] = None) -> UserMessage:
		"""Record a message the local participant sent."""
		entry = UserMessage(text=text, sender=sender)
		self._entries.append(entry)
		return entry

	def append_notice(self, text: str) -> SystemNotice:
		"""Record a system notice such as a join or a disconnect."""
		entry = SystemNotice(text=text)
		self._entries.append(entry)
		return entry

	def upsert_reply(self, rendered: RenderedMessage) -> AssistantMessage:
		"""Replace the last entry if it is this reply, otherwise append it.

		A sealed entry is never replaced.
		"""
		last = self.last
		if isinstance(last, AssistantMessage) and last.message_id == rendered.message_id:
			if last.is_complete:
				LOGGER.debug("Reply %s already sealed; keeping stored render", last.message_id)
				return last
			entry = AssistantMessage.from_render(rendered, created_at=last.created_at)
			self._entries[-1] = entry
			return entry
		entry = AssistantMessage.from_render(rendered)
		self._entries.append(entry)
		return entry

	def replies(self) -> List[AssistantMessage]:
		"""Return the assistant entries in transcript order."""
		return [entry for entry in self._entries if isinstance(entry, AssistantMessage)]
