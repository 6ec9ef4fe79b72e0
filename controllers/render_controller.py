from typing import Any, Dict, List

from models.chunk_models import Chunk
from models.session_models import new_message_id
from services.rendering.chunk_renderer import render_chunks
from utils.chunk_codec import ChunkParseError, parse_chunk


def render_payloads(payloads: List[Any]) -> Dict[str, Any]:
    """Render a complete chunk sequence in one pass.

    Payloads that are not chunks at all are skipped and reported alongside the
    diagnostics of chunks that rendered empty.

    Args:
        payloads: Wire chunk objects in delivery order.

    Returns:
        A dict with the joined `html`, the individual `fragments`, the
        `is_complete` flag of the last chunk and a list of `diagnostics`.
    """
    chunks: List[Chunk] = []
    positions: List[int] = []
    skipped: List[Dict[str, Any]] = []
    for position, payload in enumerate(payloads):
        try:
            chunks.append(parse_chunk(payload))
            positions.append(position)
        except ChunkParseError as exc:
            skipped.append({"index": position, "type": None, "reason": str(exc)})

    message_id = next((c.message_id for c in chunks if c.message_id), None) or new_message_id()
    rendered = render_chunks(message_id, chunks)
    diagnostics = sorted(
        skipped + [{"index": positions[d.index], "type": d.tag, "reason": d.reason} for d in rendered.diagnostics],
        key=lambda d: d["index"],
    )
    return {
        "message_id": rendered.message_id,
        "html": rendered.html,
        "fragments": list(rendered.fragments),
        "is_complete": rendered.is_complete,
        "diagnostics": diagnostics,
    }
