"""Fold consecutive list/table chunks into one deduplicated structure."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence, Tuple

from models.chunk_models import AGGREGATE_TYPES, Chunk, ChunkType, TableData
from models.session_models import ChunkDiagnostic


@dataclass(frozen=True)
class AggregateRun:
	"""Merged view of one aggregate run.

	Attributes:
		type: LIST or TABLE.
		start: Index of the first chunk of the run.
		end: Index just past the last chunk consumed by the run.
		metadata: Metadata of the first chunk; the run's authoritative hints.
		items: Distinct list items or table rows, in first-seen order.
		headers: Column headers captured from the first chunk (tables only).
		diagnostics: Chunks of the run whose payload contributed nothing.
	"""

	type: ChunkType
	start: int
	end: int
	metadata: Dict[str, Any]
	items: Tuple[Any, ...]
	headers: Tuple[str, ...] = ()
	diagnostics: Tuple[ChunkDiagnostic, ...] = ()


def _captured_headers(chunk: Chunk) -> Tuple[str, ...]:
	if isinstance(chunk.data, TableData) and chunk.data.headers:
		return chunk.data.headers
	headers = chunk.metadata.get("headers")
	if isinstance(headers, (list, tuple)):
		return tuple(str(h) for h in headers)
	return ()


def _run_values(chunk: Chunk) -> Optional[Tuple[Any, ...]]:
	"""Return the items/rows a chunk contributes, or None when malformed."""
	if chunk.type is ChunkType.LIST:
		return chunk.data if isinstance(chunk.data, tuple) else None
	if isinstance(chunk.data, TableData):
		return chunk.data.rows
	return None


def collect_run(chunks: Sequence[Chunk], start: int) -> AggregateRun:
	"""Consume the aggregate run beginning at `start`.

	The run extends over following chunks of the same type. It stops after a
	chunk whose metadata marks the run complete, or before the first chunk of a
	different type.

	Raises:
		ValueError: If the chunk at `start` is not a list or table chunk.
	"""
	first = chunks[start]
	if first.type not in AGGREGATE_TYPES:
		raise ValueError(f"Chunk at {start} is not an aggregate chunk: {first.tag}")

	run_type = first.type
	merged: List[Any] = []
	diagnostics: List[ChunkDiagnostic] = []
	index = start
	while index < len(chunks) and chunks[index].type is run_type:
		chunk = chunks[index]
		values = _run_values(chunk)
		if values is None:
			diagnostics.append(ChunkDiagnostic(index, chunk.tag, f"{chunk.tag} chunk has no usable data"))
		else:
			for value in values:
				# list equality keeps unhashable cells comparable
				if value not in merged:
					merged.append(value)
		index += 1
		if chunk.completes_run():
			break

	return AggregateRun(
		type=run_type,
		start=start,
		end=index,
		metadata=dict(first.metadata),
		items=tuple(merged),
		headers=_captured_headers(first) if run_type is ChunkType.TABLE else (),
		diagnostics=tuple(diagnostics),
	)
