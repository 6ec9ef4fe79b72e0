"""Prompt helpers and the scripted demo reply."""

from __future__ import annotations

from typing import Any, Dict, List, Optional


def reply_system_prompt() -> str:
	"""Return the system prompt for model-generated replies."""
	return (
		"You are a friendly assistant in a live chat window. "
		"Answer in plain prose, keep replies short, and do not use Markdown markup."
	)


def reply_user_prompt(text: str, sender: Optional[str] = None) -> str:
	"""Return the user prompt carrying the participant's message."""
	who = sender or "A participant"
	return f"{who} says:\n{text}"


def demo_reply(sender: Optional[str] = None) -> List[Dict[str, Any]]:
	"""Return the wire chunks of the scripted reply.

	The list and table are each sent twice, the second copy repeating the first
	items, so receivers exercise run merging.
	"""
	greeting = f"Hello {sender}! I'm processing your message..." if sender else "Hello! I'm processing your message..."
	return [
		{"type": "text", "data": greeting, "metadata": {"formatting": "bold"}},
		{"type": "text", "data": "Analyzing your request...", "metadata": {"formatting": "italic"}},
		{
			"type": "image",
			"data": "/api/placeholder/300/200",
			"metadata": {"alt": "Analysis image", "caption": "Request analysis"},
		},
		{"type": "list", "data": ["Read the message", "Check the context"], "metadata": {"style": "numeric"}},
		{
			"type": "list",
			"data": ["Read the message", "Check the context", "Draft a reply"],
			"metadata": {"style": "numeric", "is_list_completed": True},
		},
		{
			"type": "table",
			"data": {"headers": ["Step", "Status"], "rows": [["Parse", "done"], ["Analyze", "done"]]},
			"metadata": {"caption": "Progress"},
		},
		{
			"type": "table",
			"data": {"headers": ["Step", "Status"], "rows": [["Analyze", "done"], ["Reply", "done"]]},
			"metadata": {"is_table_completed": True},
		},
		{"type": "text", "data": "Would you like to learn more about this?"},
		{
			"type": "button",
			"data": "Learn More",
			"metadata": {"url": "/learn", "target": "_self", "icon": {"url": "/icons/arrow.svg", "position": "right"}},
		},
	]
