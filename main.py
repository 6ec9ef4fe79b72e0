import inspect
import logging
import os
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from openai import AsyncOpenAI

from routes.realtime_ws import router as realtime_router
from routes.render_route import router as render_router
from services.realtime.reply_generator import OpenAIReplyGenerator, ScriptedReplyGenerator
from services.realtime.session_store import ParticipantStore
from utils.logging_config import setup_logging
from utils.settings import Settings, load_settings

LOGGER = logging.getLogger(__name__)


def build_reply_generator(settings: Settings):
    """
    Return the reply generator for the configured mode.

    `openai` mode requires OPENAI_API_KEY; the client is created here so a
    missing key fails at startup rather than on the first message.
    """
    if settings.reply_mode == "openai":
        if not os.getenv("OPENAI_API_KEY"):
            raise RuntimeError("OPENAI_API_KEY environment variable is not set")
        try:
            client = AsyncOpenAI()
        except Exception as exc:
            raise RuntimeError("Failed to initialize OpenAI Async client") from exc
        return OpenAIReplyGenerator(client, model=settings.openai_model, max_tokens=settings.openai_max_tokens)
    return ScriptedReplyGenerator(delay=settings.chunk_delay_seconds)


async def _close_client(generator) -> None:
    client = getattr(generator, "client", None)
    if client is None:
        return
    aclose = getattr(client, "aclose", None) or getattr(client, "close", None)
    if aclose is None:
        return
    try:
        if inspect.iscoroutinefunction(aclose):
            await aclose()
        else:
            result = aclose()
            if inspect.isawaitable(result):
                await result
    except Exception as exc:
        LOGGER.warning("Error while closing OpenAI client: %s", exc)


def create_app(settings: Optional[Settings] = None, reply_generator=None) -> FastAPI:
    """
    Create and configure the FastAPI application instance.

    The participant store and reply generator live on `app.state`; both are
    created here so routes work with or without the lifespan running.
    """
    settings = settings or load_settings()
    setup_logging(settings.log_level)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        LOGGER.info("Chat server starting (reply_mode=%s)", settings.reply_mode)
        try:
            yield
        finally:
            await _close_client(app.state.reply_generator)

    app = FastAPI(lifespan=lifespan)
    app.state.settings = settings
    app.state.participant_store = ParticipantStore()
    app.state.reply_generator = reply_generator or build_reply_generator(settings)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=settings.cors_origins != ["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/health")
    async def health(request: Request):
        """
        Simple health check reporting the reply mode and open connections.
        """
        return {
            "ok": True,
            "reply_mode": request.app.state.settings.reply_mode,
            "connections": len(request.app.state.participant_store),
        }

    # Register application routers
    app.include_router(realtime_router)
    app.include_router(render_router)

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host=os.getenv("HOST", "0.0.0.0"), port=int(os.getenv("PORT", "5000")))
