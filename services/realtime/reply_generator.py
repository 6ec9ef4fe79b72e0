"""Produce the chunks of one assistant reply."""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Any, AsyncIterator, Callable, Dict, List, Optional

from openai import AsyncOpenAI

from models.chunk_models import Chunk, ChunkType
from services.realtime.prompts import demo_reply, reply_system_prompt, reply_user_prompt
from services.realtime.response_parser import extract_text, extract_usage
from utils.chunk_codec import parse_chunk

LOGGER = logging.getLogger(__name__)


class ScriptedReplyGenerator:
	"""Replay a fixed reply, pausing between chunks like a slow model would."""

	def __init__(
		self,
		delay: float = 1.0,
		script: Optional[Callable[[Optional[str]], List[Dict[str, Any]]]] = None,
	) -> None:
		if delay < 0:
			raise ValueError("Chunk delay cannot be negative.")
		self.delay = delay
		self.script = script or demo_reply

	async def generate(self, text: str, *, message_id: str, sender: Optional[str] = None) -> AsyncIterator[Chunk]:
		"""Yield the scripted chunks, the last one flagged complete."""
		payloads = self.script(sender)
		if not payloads:
			raise RuntimeError("Scripted reply is empty.")
		last = len(payloads) - 1
		for index, payload in enumerate(payloads):
			if index and self.delay:
				await asyncio.sleep(self.delay)
			yield parse_chunk({**payload, "message_id": message_id, "is_complete": index == last})


class OpenAIReplyGenerator:
	"""Stream a model reply, one text chunk per output delta."""

	def __init__(self, client: AsyncOpenAI, model: str = "gpt-4o-mini", max_tokens: int = 800) -> None:
		if client is None:
			raise ValueError("AsyncOpenAI client is required.")
		self.client = client
		self.model = model
		self.max_tokens = max_tokens

	async def generate(self, text: str, *, message_id: str, sender: Optional[str] = None) -> AsyncIterator[Chunk]:
		"""Yield text chunks as the model produces them.

		One delta is held back until the next arrives (or the stream ends) so
		that the last chunk sent is the one flagged complete.
		"""
		pending: Optional[str] = None
		start = time.time()
		async with self.client.responses.stream(
			model=self.model,
			input=[
				{"type": "message", "role": "system", "content": [{"type": "input_text", "text": reply_system_prompt()}]},
				{
					"type": "message",
					"role": "user",
					"content": [{"type": "input_text", "text": reply_user_prompt(text, sender)}],
				},
			],
			max_output_tokens=self.max_tokens,
		) as stream:
			async for event in stream:
				if getattr(event, "type", None) != "response.output_text.delta":
					continue
				delta = getattr(event, "delta", "") or ""
				if not delta:
					continue
				if pending is not None:
					yield Chunk(type=ChunkType.TEXT, data=pending, message_id=message_id, raw_type="text")
				pending = delta
			response = await stream.get_final_response()

		usage = extract_usage(response)
		LOGGER.info(
			"Reply %s generated in %.3fs (input_tokens=%s, output_tokens=%s)",
			message_id,
			time.time() - start,
			usage["input_tokens"],
			usage["output_tokens"],
		)
		if pending is None:
			pending = extract_text(response)
		yield Chunk(type=ChunkType.TEXT, data=pending or "", message_id=message_id, is_complete=True, raw_type="text")
