"""Pytest configuration and shared fixtures."""
from typing import Any, Dict, Optional

import pytest
from fastapi.testclient import TestClient

from main import create_app
from models.chunk_models import Chunk
from services.realtime.reply_generator import ScriptedReplyGenerator
from utils.chunk_codec import parse_chunk
from utils.settings import Settings


def make_chunk(
    type_: str,
    data: Any = None,
    metadata: Optional[Dict[str, Any]] = None,
    complete: bool = False,
    message_id: Optional[str] = None,
) -> Chunk:
    """Build a canonical chunk through the wire codec."""
    payload: Dict[str, Any] = {"type": type_, "data": data, "is_complete": complete}
    if metadata is not None:
        payload["metadata"] = metadata
    if message_id is not None:
        payload["message_id"] = message_id
    return parse_chunk(payload)


@pytest.fixture
def chunk():
    """Return the chunk builder."""
    return make_chunk


@pytest.fixture
def settings():
    """Return settings for a fast scripted server."""
    return Settings(reply_mode="scripted", chunk_delay_seconds=0.0, log_level="DEBUG")


@pytest.fixture
def app(settings):
    """Return an app replying with the scripted reply and no pacing."""
    return create_app(settings, reply_generator=ScriptedReplyGenerator(delay=0.0))


@pytest.fixture
def client(app):
    """Return a test client with the lifespan running."""
    with TestClient(app) as test_client:
        yield test_client
