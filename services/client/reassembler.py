"""Reassemble streamed chunks into the reply they belong to."""

from __future__ import annotations

import logging
from typing import Callable, Optional, Set

from models.chunk_models import Chunk
from models.session_models import InFlightMessage, RenderedMessage, new_message_id
from services.rendering.chunk_renderer import render_chunks

LOGGER = logging.getLogger(__name__)


class StreamReassembler:
	"""Accumulate the chunks of the reply currently streaming on one connection.

	At most one reply is open at a time. Every append re-renders the open reply
	from all of its chunks, so the render never depends on arrival timing.
	"""

	def __init__(self, id_factory: Callable[[], str] = new_message_id) -> None:
		self._id_factory = id_factory
		self._current: Optional[InFlightMessage] = None
		self._reported: Set[int] = set()
		# Producer ids whose reply is over: sealed, or superseded by a newer reply.
		self._finished: Set[str] = set()
		# Producer ids whose reply was cut off by a disconnect.
		self._abandoned: Set[str] = set()

	@property
	def current(self) -> Optional[InFlightMessage]:
		"""The open reply, or None when nothing is streaming."""
		return self._current

	@property
	def is_open(self) -> bool:
		return self._current is not None

	def append(self, chunk: Chunk) -> Optional[RenderedMessage]:
		"""Add a chunk to the open reply and return the reply's new render.

		Returns None when the chunk is dropped because its reply is already over.
		"""
		if chunk.message_id in self._finished:
			LOGGER.warning("Dropping %s chunk for finished reply %s", chunk.tag, chunk.message_id)
			return None

		message = self._open_for(chunk)
		message.chunks.append(chunk)
		rendered = render_chunks(message.id, message.chunks)
		self._report(rendered)

		if chunk.is_complete:
			message.is_complete = True
			self._finish(message)
			self._current = None
			LOGGER.debug("Reply %s sealed after %d chunks", message.id, len(message.chunks))
		return rendered

	def disconnect(self) -> Optional[InFlightMessage]:
		"""Abandon the open reply; later chunks start a new one."""
		abandoned = self._current
		if abandoned is not None:
			LOGGER.info("Abandoning unsealed reply %s (%d chunks)", abandoned.id, len(abandoned.chunks))
			if abandoned.source_id:
				self._abandoned.add(abandoned.source_id)
		self._current = None
		self._reported = set()
		return abandoned

	def _finish(self, message: InFlightMessage) -> None:
		if message.source_id:
			self._finished.add(message.source_id)
			self._abandoned.discard(message.source_id)

	def _open_for(self, chunk: Chunk) -> InFlightMessage:
		current = self._current
		if current is not None and chunk.message_id and chunk.message_id != current.source_id:
			LOGGER.info("Reply %s abandoned; chunk belongs to reply %s", current.id, chunk.message_id)
			self._finish(current)
			current = None
		if current is None:
			message_id = chunk.message_id
			if not message_id or message_id in self._abandoned:
				message_id = self._id_factory()
			current = InFlightMessage(id=message_id, source_id=chunk.message_id)
			self._current = current
			self._reported = set()
		return current

	def _report(self, rendered: RenderedMessage) -> None:
		for diagnostic in rendered.diagnostics:
			if diagnostic.index in self._reported:
				continue
			self._reported.add(diagnostic.index)
			LOGGER.warning(
				"Reply %s: chunk %d (%s) rendered empty: %s",
				rendered.message_id,
				diagnostic.index,
				diagnostic.tag,
				diagnostic.reason,
			)
