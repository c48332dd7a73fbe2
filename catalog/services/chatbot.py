"""
Chatbot Service

The library assistant answers in three steps:
1. Intent matching: regular expressions over the lowercased message,
   checked in a fixed priority order, each intent with canned replies
2. AI fallback: when no intent matches and a Hugging Face key is
   configured, ask the inference API for a short completion
3. Canned fallback: when everything else fails

The AI step never raises to the caller; any failure drops to step 3.
"""

import logging
import random
import re
from dataclasses import dataclass

import httpx

from catalog.config import get_settings
from catalog.services.exceptions import ChatbotBackendError

logger = logging.getLogger(__name__)
settings = get_settings()


LIBRARY_RESPONSES: dict[str, list[str]] = {
    "greeting": [
        "Hello! I'm LibBot, your library assistant. How can I help you find books today?",
        "Hi there! Welcome to the library. What kind of books interest you?",
        "Hey! I'm here to help you discover great books. What are you looking for?",
    ],
    "recommendation": [
        "I'd love to help! What genre interests you? We have Fiction, Mystery, Romance, Sci-Fi, Fantasy, Non-Fiction, Biography, and more!",
        "Great question! Tell me what you enjoy reading and I'll point you to our best titles in that genre.",
        "To recommend books, I need to know your preferences. What genres do you like?",
    ],
    "search": [
        "You can search for books using the search bar on the main page. Enter a title, author name, or genre to find what you're looking for!",
        "Finding books is easy! Use the search filters for title, author, or genre on the books page.",
    ],
    "download": [
        "To download a book: 1) Click on the book to view details, 2) Click the Download button. You must be logged in to download.",
        "Downloading is simple! Find a book you like, click on it, then click the Download button on the details page.",
    ],
    "genres": [
        "Our library includes: Fiction, Non-Fiction, Mystery, Romance, Science Fiction, Fantasy, Biography, History, Self-Help, and many more! Which genre would you like to explore?",
        "We have a wide variety! Popular genres include Mystery, Romance, Sci-Fi, Fantasy, Thriller, and Literary Fiction. What's your preference?",
    ],
    "help": [
        "I can help you with: finding books, genre suggestions, search tips, download instructions, and general library navigation. What do you need?",
        "Ask me about book recommendations, how to search, available genres, or how to download books!",
    ],
}

# Checked in order; the first match wins
INTENT_PATTERNS: list[tuple[str, re.Pattern]] = [
    ("greeting", re.compile(r"^(hi|hello|hey|greetings|good\s+(morning|afternoon|evening))")),
    ("recommendation", re.compile(r"(recommend|suggest|good book|what.*read|book.*for|looking for)")),
    ("search", re.compile(r"(how.*search|find.*book|where.*look|search.*for)")),
    ("download", re.compile(r"(download|get.*book|how.*download)")),
    ("genres", re.compile(r"(genre|category|type.*book|what.*available|sections)")),
    ("help", re.compile(r"(help|what.*do|how.*work|guide|assist)")),
]

FALLBACK_RESPONSES = [
    "I'm here to help with book recommendations and library navigation. What would you like to know?",
    "I can help you find books! Try asking about genres, search tips, or recommendations.",
    "As your library assistant, I can guide you to great books. What interests you?",
    "Let me help you explore our collection! What kind of books do you enjoy?",
]

INVALID_MESSAGE_REPLY = "Please send a valid message."


@dataclass
class ChatResult:
    reply: str
    source: str


def too_long_reply() -> str:
    return (
        "Your message is too long. Please keep it under "
        f"{settings.chatbot_max_message_length} characters."
    )


def match_intent(message: str) -> str | None:
    """Return the first intent whose pattern matches, or None."""
    msg = message.lower().strip()
    for intent, pattern in INTENT_PATTERNS:
        if pattern.search(msg):
            return intent
    return None


def fallback_reply() -> str:
    return random.choice(FALLBACK_RESPONSES)


def clean_generated_text(text: str) -> str:
    """Strip a leading speaker label and keep the first line only."""
    reply = text.strip()
    reply = re.sub(r"^(Assistant:|User:)", "", reply, flags=re.IGNORECASE).strip()
    return reply.split("\n")[0]


async def ask_ai(message: str) -> str:
    """
    Ask the Hugging Face inference API for a short reply.

    Raises:
        ChatbotBackendError: On HTTP errors, timeouts or an unusable answer
    """
    prompt = f"Library Assistant helping users find books.\nUser: {message}\nAssistant:"

    try:
        async with httpx.AsyncClient(timeout=settings.chatbot_timeout) as client:
            response = await client.post(
                settings.huggingface_model_url,
                headers={"Authorization": f"Bearer {settings.huggingface_api_key}"},
                json={
                    "inputs": prompt,
                    "parameters": {
                        "max_new_tokens": 50,
                        "temperature": 0.8,
                        "return_full_text": False,
                    },
                },
            )
    except httpx.HTTPError as e:
        raise ChatbotBackendError(f"AI request failed: {e}") from e

    if response.status_code != 200:
        raise ChatbotBackendError(f"AI backend returned {response.status_code}")

    try:
        data = response.json()
    except ValueError as e:
        raise ChatbotBackendError("AI backend returned invalid JSON") from e

    if (
        not isinstance(data, list)
        or not data
        or not isinstance(data[0], dict)
        or not data[0].get("generated_text")
    ):
        raise ChatbotBackendError("AI backend returned no text")

    reply = clean_generated_text(data[0]["generated_text"])
    if len(reply) <= 10:
        raise ChatbotBackendError("AI reply too short")
    return reply


async def get_reply(message: str) -> ChatResult:
    """
    Produce the assistant's answer to a validated message.

    Returns:
        ChatResult with the reply text and which strategy produced it
    """
    intent = match_intent(message)
    if intent is not None:
        logger.debug(f"Chat intent matched: {intent}")
        return ChatResult(random.choice(LIBRARY_RESPONSES[intent]), "pattern")

    if not settings.huggingface_api_key:
        logger.debug("No AI key configured, using fallback reply")
        return ChatResult(fallback_reply(), "fallback")

    try:
        return ChatResult(await ask_ai(message), "ai")
    except ChatbotBackendError as e:
        logger.warning(f"AI fallback unavailable: {e}")
        return ChatResult(fallback_reply(), "fallback")


def chat_mode() -> str:
    if settings.huggingface_api_key:
        return "smart_matching + ai_fallback"
    return "smart_matching_only"
