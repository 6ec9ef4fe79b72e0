"""Render chunk sequences to HTML fragments."""

from __future__ import annotations

from html import escape
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Tuple

from models.chunk_models import AGGREGATE_TYPES, Chunk, ChunkType
from models.session_models import ChunkDiagnostic, RenderedMessage
from services.rendering.aggregate_merger import AggregateRun, collect_run

ORDERED_LIST_STYLES = {"numeric", "number", "decimal", "ordered"}


class MalformedChunkError(ValueError):
	"""Raised by a renderer when a chunk lacks what its type requires."""


def _esc(value: Any) -> str:
	return escape(str(value), quote=True)


def _required_text(chunk: Chunk, what: str) -> str:
	if isinstance(chunk.data, (int, float)) and not isinstance(chunk.data, bool):
		return str(chunk.data)
	if not isinstance(chunk.data, str):
		raise MalformedChunkError(f"{chunk.tag} chunk requires {what}")
	return chunk.data


def render_text(chunk: Chunk) -> str:
	text = _esc(_required_text(chunk, "text data"))
	formatting = str(chunk.metadata.get("formatting") or "").lower()
	if formatting == "bold":
		return f"<strong>{text}</strong>"
	if formatting in ("italic", "emphasis"):
		return f"<em>{text}</em>"
	return f"<span>{text}</span>"


def render_image(chunk: Chunk) -> str:
	src = _required_text(chunk, "an image source").strip()
	if not src:
		raise MalformedChunkError("image chunk requires an image source")
	alt = chunk.metadata.get("alt") or "Image"
	html = f'<figure class="chunk-image"><img src="{_esc(src)}" alt="{_esc(alt)}" />'
	caption = chunk.metadata.get("caption")
	if caption:
		html += f"<figcaption>{_esc(caption)}</figcaption>"
	return html + "</figure>"


def _button_target(metadata: Mapping[str, Any]) -> Optional[str]:
	url = metadata.get("url")
	if isinstance(url, str) and url.strip():
		return url.strip()
	action = metadata.get("action")
	if isinstance(action, dict) and action.get("type", "navigate") == "navigate":
		target = action.get("target")
		if isinstance(target, str) and target.strip():
			return target.strip()
	return None


def _icon_html(icon: Any, position: str) -> str:
	if not isinstance(icon, dict) or not icon.get("url"):
		return ""
	if (icon.get("position") or "left") != position:
		return ""
	return f'<img class="chunk-icon" src="{_esc(icon["url"])}" alt="{_esc(icon.get("alt") or "")}" />'


def render_button(chunk: Chunk) -> str:
	label = _esc(_required_text(chunk, "a label"))
	href = _button_target(chunk.metadata)
	if href is None:
		return ""
	window = chunk.metadata.get("target")
	if not isinstance(window, str) or not window:
		window = "_self"
	icon = chunk.metadata.get("icon")
	return (
		f'<a class="chunk-button" href="{_esc(href)}" target="{_esc(window)}" rel="noopener noreferrer">'
		f"{_icon_html(icon, 'left')}{label}{_icon_html(icon, 'right')}</a>"
	)


def _is_ordered(metadata: Mapping[str, Any]) -> bool:
	if "ordered" in metadata:
		return bool(metadata["ordered"])
	return str(metadata.get("style") or "").lower() in ORDERED_LIST_STYLES


def _caption_html(metadata: Mapping[str, Any]) -> str:
	caption = metadata.get("caption")
	return f'<p class="chunk-caption">{_esc(caption)}</p>' if caption else ""


def render_list_run(run: AggregateRun) -> str:
	if not run.items:
		return ""
	tag = "ol" if _is_ordered(run.metadata) else "ul"
	items = "".join(f"<li>{_esc(item)}</li>" for item in run.items)
	return f'<div class="chunk-list">{_caption_html(run.metadata)}<{tag}>{items}</{tag}></div>'


def render_table_run(run: AggregateRun) -> str:
	if not run.items:
		return ""
	parts = ['<table class="chunk-table">']
	caption = run.metadata.get("caption")
	if caption:
		parts.append(f"<caption>{_esc(caption)}</caption>")
	if run.headers:
		cells = "".join(f"<th>{_esc(h)}</th>" for h in run.headers)
		parts.append(f"<thead><tr>{cells}</tr></thead>")
	parts.append("<tbody>")
	for row in run.items:
		parts.append("<tr>" + "".join(f"<td>{_esc(cell)}</td>" for cell in row) + "</tr>")
	parts.append("</tbody></table>")
	return "".join(parts)


_CHUNK_RENDERERS: Dict[ChunkType, Callable[[Chunk], str]] = {
	ChunkType.TEXT: render_text,
	ChunkType.IMAGE: render_image,
	ChunkType.BUTTON: render_button,
}

_RUN_RENDERERS: Dict[ChunkType, Callable[[AggregateRun], str]] = {
	ChunkType.LIST: render_list_run,
	ChunkType.TABLE: render_table_run,
}


def render_chunk(chunk: Chunk, index: int = 0) -> Tuple[str, Optional[ChunkDiagnostic]]:
	"""Render one non-aggregate chunk.

	Returns the fragment (possibly empty) and a diagnostic when the chunk could
	not be rendered. Never raises for bad payloads.
	"""
	renderer = _CHUNK_RENDERERS.get(chunk.type)
	if renderer is None:
		if chunk.type in AGGREGATE_TYPES:
			raise ValueError("Aggregate chunks are rendered through their run.")
		return "", ChunkDiagnostic(index, chunk.tag, f"unsupported chunk type '{chunk.tag}'")
	try:
		return renderer(chunk), None
	except MalformedChunkError as exc:
		return "", ChunkDiagnostic(index, chunk.tag, str(exc))


def render_chunks(message_id: str, chunks: Sequence[Chunk]) -> RenderedMessage:
	"""Render a whole reply from its accumulated chunks.

	Aggregate chunks are merged run by run before rendering, so the result only
	depends on the chunk sequence, never on how it was delivered.
	"""
	fragments: List[str] = []
	diagnostics: List[ChunkDiagnostic] = []
	index = 0
	while index < len(chunks):
		chunk = chunks[index]
		if chunk.type in AGGREGATE_TYPES:
			run = collect_run(chunks, index)
			diagnostics.extend(run.diagnostics)
			fragment = _RUN_RENDERERS[run.type](run)
			index = run.end
		else:
			fragment, diagnostic = render_chunk(chunk, index)
			if diagnostic is not None:
				diagnostics.append(diagnostic)
			index += 1
		if fragment:
			fragments.append(fragment)

	return RenderedMessage(
		message_id=message_id,
		fragments=tuple(fragments),
		is_complete=bool(chunks) and chunks[-1].is_complete,
		diagnostics=tuple(diagnostics),
	)
