"""
Chatbot Router

Endpoints:
- POST /chat - Ask the library assistant
- GET /chat/health - Assistant configuration status
"""

import logging
from datetime import UTC, datetime

from fastapi import APIRouter, Request, status
from fastapi.responses import JSONResponse

from catalog.config import get_settings
from catalog.schemas.chat import ChatHealth, ChatReply, ChatRequest
from catalog.services import chatbot
from catalog.services.rate_limiter import limiter

logger = logging.getLogger(__name__)
settings = get_settings()

router = APIRouter(prefix="/chat", tags=["Chatbot"])


@router.post(
    "",
    response_model=ChatReply,
    summary="Chat with the library assistant",
    responses={400: {"description": "Empty or invalid message"}},
)
@limiter.limit(settings.rate_limit_default)
async def chat(request: Request, body: ChatRequest):
    """
    Answer a chat message.

    - Empty or non-string message: 400
    - Too long: 200 with a reminder of the limit
    - Otherwise: intent reply, AI reply or canned fallback
    """
    message = body.message
    if not isinstance(message, str) or not message.strip():
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"reply": chatbot.INVALID_MESSAGE_REPLY},
        )

    if len(message) > settings.chatbot_max_message_length:
        return ChatReply(reply=chatbot.too_long_reply(), source="validation")

    result = await chatbot.get_reply(message)
    return ChatReply(reply=result.reply, source=result.source)


@router.get(
    "/health",
    response_model=ChatHealth,
    summary="Chatbot status",
)
def chat_health() -> ChatHealth:
    return ChatHealth(
        status="ready",
        api_key_configured=bool(settings.huggingface_api_key),
        mode=chatbot.chat_mode(),
        timestamp=datetime.now(UTC),
    )
