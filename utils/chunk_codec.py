"""Decode and encode chunks at the transport boundary.

Everything that reaches the reassembler has been through `parse_chunk`, so the
rest of the code only ever sees the canonical `Chunk` shape:

- the completion flag is `is_complete` (`isComplete` is accepted inbound);
- legacy top-level hints such as `alt`, `action` or `style` are folded into
  `metadata` without overriding keys the producer already put there;
- list payloads become tuples and well-formed table payloads become
  `TableData`. Anything else is kept as received for the renderer to report.
"""

from __future__ import annotations

import json
from typing import Any, Dict, Optional, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError

from models.chunk_models import Chunk, ChunkType, TableData


class ChunkParseError(ValueError):
    """Raised when an inbound payload is not a chunk at all."""


class ChunkPayload(BaseModel):
    """Wire shape of a chunk. Unknown top-level keys are kept as extras."""

    model_config = ConfigDict(extra="allow")

    type: str
    data: Any = None
    metadata: Optional[Dict[str, Any]] = None
    is_complete: bool = Field(default=False, validation_alias=AliasChoices("is_complete", "isComplete"))
    message_id: Optional[Union[str, int]] = Field(
        default=None, validation_alias=AliasChoices("message_id", "messageId")
    )


def decode_frame(raw: Union[str, bytes]) -> Dict[str, Any]:
    """Return the JSON object carried by a websocket frame."""
    try:
        payload = json.loads(raw)
    except (TypeError, ValueError) as exc:
        raise ChunkParseError("Frame is not valid JSON.") from exc
    if not isinstance(payload, dict):
        raise ChunkParseError("Frame must be a JSON object.")
    return payload


def _fold_metadata(payload: ChunkPayload) -> Dict[str, Any]:
    metadata: Dict[str, Any] = dict(payload.metadata or {})
    for key, value in (payload.model_extra or {}).items():
        metadata.setdefault(key, value)

    style = metadata.get("style")
    if isinstance(style, dict) and "formatting" not in metadata:
        if str(style.get("fontWeight", "")).lower() == "bold":
            metadata["formatting"] = "bold"
        elif str(style.get("fontStyle", "")).lower() == "italic":
            metadata["formatting"] = "italic"
    return metadata


def _normalize_data(chunk_type: ChunkType, data: Any) -> Any:
    if chunk_type is ChunkType.LIST and isinstance(data, (list, tuple)):
        return tuple(data)
    if chunk_type is ChunkType.TABLE and isinstance(data, dict):
        rows = data.get("rows")
        if not isinstance(rows, (list, tuple)):
            return data
        headers = data.get("headers") or ()
        if not isinstance(headers, (list, tuple)):
            headers = ()
        return TableData(
            headers=tuple(str(h) for h in headers),
            rows=tuple(tuple(row) for row in rows if isinstance(row, (list, tuple))),
        )
    return data


def parse_chunk(payload: Any) -> Chunk:
    """Validate an inbound payload and return the canonical chunk.

    Raises:
        ChunkParseError: If the payload has no usable `type` tag.
    """
    if isinstance(payload, (str, bytes)):
        payload = decode_frame(payload)
    if not isinstance(payload, dict):
        raise ChunkParseError("Chunk payload must be a mapping.")
    try:
        parsed = ChunkPayload.model_validate(payload)
    except ValidationError as exc:
        raise ChunkParseError(f"Invalid chunk payload: {exc.errors()[0]['msg']}") from exc

    tag = parsed.type.strip().lower()
    if not tag:
        raise ChunkParseError("Chunk type is required.")
    chunk_type = ChunkType.from_tag(tag)
    return Chunk(
        type=chunk_type,
        data=_normalize_data(chunk_type, parsed.data),
        metadata=_fold_metadata(parsed),
        is_complete=parsed.is_complete,
        message_id=str(parsed.message_id) if parsed.message_id is not None else None,
        raw_type=tag,
    )


def _wire_data(data: Any) -> Any:
    if isinstance(data, TableData):
        return {"headers": list(data.headers), "rows": [list(row) for row in data.rows]}
    if isinstance(data, tuple):
        return list(data)
    return data


def encode_chunk(chunk: Chunk) -> Dict[str, Any]:
    """Return the canonical wire dict for a chunk."""
    payload: Dict[str, Any] = {
        "type": chunk.tag,
        "data": _wire_data(chunk.data),
        "metadata": dict(chunk.metadata),
        "is_complete": chunk.is_complete,
    }
    if chunk.message_id is not None:
        payload["message_id"] = chunk.message_id
    return payload
