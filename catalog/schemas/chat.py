"""
Chatbot Pydantic Schemas
"""

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, Field


class ChatRequest(BaseModel):
    """
    Chat message sent by the library assistant widget.

    Validation of the message itself happens in the router so an empty or
    non-string message gets the assistant's own 400 reply instead of a 422.
    """

    message: Any = Field(default=None, examples=["Can you recommend a mystery?"])


class ChatReply(BaseModel):
    """
    Chatbot answer.

    source:
    - pattern: matched one of the built-in intents
    - ai: produced by the Hugging Face fallback
    - fallback: canned answer when nothing else applied
    - validation: the message was rejected (empty or too long)
    """

    reply: str = Field(..., description="Answer shown to the user")
    source: Literal["pattern", "ai", "fallback", "validation"] = Field(
        ...,
        description="Which strategy produced the reply",
    )


class ChatHealth(BaseModel):
    """Chatbot configuration status."""

    status: str = Field(default="ready")
    api_key_configured: bool
    mode: Literal["smart_matching + ai_fallback", "smart_matching_only"]
    timestamp: datetime
