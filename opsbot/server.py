"""
FastAPI HTTP transport for opsbot.

Delivers user text to a conversation and returns the bot's replies for
that turn. Each conversation id gets its own state.
"""

import logging
from typing import AsyncContextManager, Callable, Optional

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware

from opsbot.core.bus import Bus
from opsbot.core.conversation import ConversationManager

logger = logging.getLogger("server")


def create_app(
    manager: Optional[ConversationManager] = None,
    lifespan: Optional[Callable[[FastAPI], AsyncContextManager]] = None,
) -> FastAPI:
    """
    Create FastAPI app with optional lifespan.

    Args:
        manager: Conversation manager to serve. If None, one is built from
                 Config on the first request.
        lifespan: Optional lifespan context manager for startup/shutdown

    Returns:
        FastAPI app instance
    """
    app_kwargs = {
        "title": "opsbot API",
        "description": "Conversational cloud operations endpoint",
        "version": "0.1.0",
    }

    if lifespan:
        app_kwargs["lifespan"] = lifespan

    app = FastAPI(**app_kwargs)
    app.state.manager = manager

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],  # In production, restrict this
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    async def get_manager() -> ConversationManager:
        if app.state.manager is None:
            from opsbot.app import build_engine
            app.state.manager = await build_engine(Bus())
        return app.state.manager

    @app.get("/health")
    async def health_check():
        """Health check endpoint."""
        return {"status": "ok", "service": "opsbot"}

    @app.post("/api/conversations/{conversation_id}/messages")
    async def post_message(conversation_id: str, request: dict):
        """
        Deliver one utterance to a conversation.

        Accepts JSON with:
        {
            "text": "list my subscriptions"
        }

        Returns the replies posted during the turn and what the
        conversation is waiting for next ("utterance" or "form").
        """
        text = request.get("text", "")
        if not isinstance(text, str) or not text.strip():
            raise HTTPException(status_code=400, detail="Text cannot be empty")

        mgr = await get_manager()
        logger.info("Message for conversation %s (%d chars)", conversation_id, len(text))
        replies = await mgr.handle_utterance(conversation_id, text.strip())
        return {
            "conversation_id": conversation_id,
            "replies": replies,
            "awaiting": mgr.context(conversation_id).turn_state.value,
        }

    @app.delete("/api/conversations/{conversation_id}")
    async def end_conversation(conversation_id: str):
        """Forget a conversation and its state."""
        mgr = await get_manager()
        if not await mgr.end(conversation_id):
            raise HTTPException(status_code=404, detail="Conversation not found")
        return {"status": "ended", "conversation_id": conversation_id}

    return app
