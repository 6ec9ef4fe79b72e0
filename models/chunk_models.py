"""Chunk domain models for streamed assistant replies."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional, Tuple


class ChunkType(str, Enum):
	"""Tag of a chunk variant. UNKNOWN covers any tag this client does not know."""

	TEXT = "text"
	IMAGE = "image"
	BUTTON = "button"
	LIST = "list"
	TABLE = "table"
	UNKNOWN = "unknown"

	@classmethod
	def from_tag(cls, tag: str) -> "ChunkType":
		try:
			value = cls(tag)
		except ValueError:
			return cls.UNKNOWN
		return value


AGGREGATE_TYPES = frozenset({ChunkType.LIST, ChunkType.TABLE})

# metadata key that closes an aggregate run of the given type
RUN_COMPLETION_KEYS: Dict[ChunkType, str] = {
	ChunkType.LIST: "is_list_completed",
	ChunkType.TABLE: "is_table_completed",
}


@dataclass(frozen=True)
class TableData:
	"""Normalized table payload: header cells plus rows of cells."""

	headers: Tuple[str, ...] = ()
	rows: Tuple[Tuple[Any, ...], ...] = ()


@dataclass(frozen=True)
class Chunk:
	"""One typed fragment of an assistant reply.

	Attributes:
		type: Variant tag.
		data: Payload; str for text/image/button, tuple of str for list,
			TableData for table. Malformed payloads are kept as received so the
			renderer can report them.
		metadata: Type-specific hints (caption, alt, url, icon, ordering...).
		is_complete: True only on the last chunk of a reply.
		message_id: Producer-supplied reply identity, when present.
		raw_type: Tag as received on the wire, kept for diagnostics.
	"""

	type: ChunkType
	data: Any = None
	metadata: Dict[str, Any] = field(default_factory=dict)
	is_complete: bool = False
	message_id: Optional[str] = None
	raw_type: Optional[str] = None

	@property
	def tag(self) -> str:
		return self.raw_type or self.type.value

	def completes_run(self) -> bool:
		"""Return True when this chunk's metadata closes its aggregate run."""
		key = RUN_COMPLETION_KEYS.get(self.type)
		return bool(key and self.metadata.get(key))
