"""Helpers to extract data from OpenAI Responses output."""

from __future__ import annotations

from typing import Any, Dict, Optional


def _field(item: Any, name: str) -> Any:
	if isinstance(item, dict):
		return item.get(name)
	return getattr(item, name, None)


def extract_text(response: Any) -> str:
	"""Extract the concatenated output_text entries from the response."""
	parts = []
	for item in _field(response, "output") or []:
		if _field(item, "type") != "message":
			continue
		for content in _field(item, "content") or []:
			if _field(content, "type") == "output_text":
				parts.append(_field(content, "text") or "")
	if parts:
		return "".join(parts)
	return getattr(response, "output_text", "") or ""


def extract_usage(response: Any) -> Dict[str, Optional[int]]:
	"""Return input and output token counts, None where the response has none."""
	usage = _field(response, "usage")
	if usage is None:
		return {"input_tokens": None, "output_tokens": None}
	return {"input_tokens": _field(usage, "input_tokens"), "output_tokens": _field(usage, "output_tokens")}
