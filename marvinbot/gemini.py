"""Short question answering through the Gemini text generation API."""

from __future__ import annotations

import string
from typing import Optional

import requests

__all__ = [
    "API_URL",
    "PROMPT_SUFFIX",
    "GeminiError",
    "GeminiClient",
    "build_payload",
    "filter_answer",
]

API_URL = (
    "https://generativelanguage.googleapis.com/v1beta/models/"
    "gemini-1.5-flash:generateContent"
)
PROMPT_SUFFIX = " [tell me about this in shortest token possible with important detail info only]"

_KEEP = frozenset(string.ascii_letters + string.digits + " \t\n\v\f\r")
_ACCEPTED_STATUS = (200, 301)


class GeminiError(Exception):
    """The API could not be reached or gave no usable answer."""


def build_payload(question: str, max_tokens: int = 300) -> dict:
    """Request body asking for a brief answer limited to ``max_tokens``."""
    return {
        "contents": [{"parts": [{"text": question + PROMPT_SUFFIX}]}],
        "generationConfig": {"maxOutputTokens": max_tokens},
    }


def filter_answer(text: str) -> str:
    """Trim ``text`` and replace anything but ASCII letters, digits and spaces with a space."""
    return "".join(c if c in _KEEP else " " for c in text.strip())


class GeminiClient:
    """Asks questions using an API ``token``."""

    def __init__(self, token: str, session: Optional[requests.Session] = None):
        self.token = token
        self.session = session or requests.Session()

    def ask_question(self, question: str, max_tokens: int = 300) -> str:
        """Return the filtered answer text; raise GeminiError on failure."""
        try:
            response = self.session.post(
                API_URL,
                params={"key": self.token},
                json=build_payload(question, max_tokens),
                timeout=30,
            )
        except requests.RequestException as exc:
            raise GeminiError(f"unable to connect: {exc}") from exc
        if response.status_code not in _ACCEPTED_STATUS:
            raise GeminiError(f"request failed with status {response.status_code}")
        try:
            answer = response.json()["candidates"][0]["content"]["parts"][0]["text"]
        except (ValueError, KeyError, IndexError, TypeError) as exc:
            raise GeminiError("malformed response") from exc
        if not isinstance(answer, str):
            raise GeminiError("malformed response")
        return filter_answer(answer)