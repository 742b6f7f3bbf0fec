"""
Input validation utilities
"""
from typing import Any, Optional


class ChatRequestError(ValueError):
    """Raised when a chat relay body is unusable"""


def validate_chat_message(body: Any) -> str:
    """Pull the message string out of a decoded chat request body"""
    message: Optional[Any] = body.get("message") if isinstance(body, dict) else None
    if not message or not isinstance(message, str):
        raise ChatRequestError("Request body must be JSON with a 'message' string.")
    return message


def validate_name(name: str, field: str = "name") -> str:
    """Strip a display name and reject blanks"""
    cleaned = (name or "").strip()
    if not cleaned:
        raise ValueError(f"{field} must not be blank")
    return cleaned


def normalize_tags(tags: Optional[list[str]]) -> list[str]:
    """Strip, drop blanks, and de-duplicate tag names keeping first-seen order"""
    seen: dict[str, None] = {}
    for tag in tags or []:
        cleaned = tag.strip()
        if cleaned and cleaned not in seen:
            seen[cleaned] = None
    return list(seen)
