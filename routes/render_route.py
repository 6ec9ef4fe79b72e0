from typing import Any, List

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel

from controllers.render_controller import render_payloads

router = APIRouter()


class RenderRequest(BaseModel):
	chunks: List[Any] = []


@router.post("/render")
async def post_render(payload: RenderRequest):
	"""Render a chunk sequence to HTML in one shot."""
	try:
		return render_payloads(payload.chunks)
	except HTTPException:
		raise
	except Exception as exc:
		raise HTTPException(status_code=500, detail=str(exc))
