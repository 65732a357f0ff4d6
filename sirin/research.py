"""Research pipeline helpers: page extraction, question parsing and objective proposals."""

from __future__ import annotations

import json
import threading

import requests
from bs4 import BeautifulSoup

from .search import USER_AGENT

MAX_PAGE_TEXT = 4000
"""Most characters kept from a fetched page."""

FETCH_TIMEOUT = 60
MAX_QUESTIONS = 4

_CONTENT_SELECTOR = "body p, body h1, body h2, body h3, body li, body span, body div"
_MIN_PART_BYTES = 20
_MIN_QUESTION_BYTES = 5

_pending_lock = threading.Lock()
_pending_objectives: list[str] | None = None


def _byte_len(text: str) -> int:
    return len(text.encode("utf-8"))


def extract_page_text(html: str) -> str:
    """Pull readable text blocks from an HTML body.

    Each matching element's text has its whitespace collapsed; blocks of
    20 bytes or fewer are dropped, repeats are removed and the result is cut
    to MAX_PAGE_TEXT characters.
    """
    document = BeautifulSoup(html, "html.parser")
    seen: set[str] = set()
    lines: list[str] = []
    for element in document.select(_CONTENT_SELECTOR):
        text = " ".join(element.get_text(" ").split())
        if _byte_len(text) <= _MIN_PART_BYTES or text in seen:
            continue
        seen.add(text)
        lines.append(text)
    return "\n".join(lines)[:MAX_PAGE_TEXT]


def fetch_page_text(url: str, session: requests.Session | None = None) -> str:
    """Download a page and return its readable text.

    Raises ConnectionError if the request cannot be completed.
    """
    owned = session is None
    active = requests.Session() if session is None else session
    try:
        try:
            response = active.get(
                url, headers={"User-Agent": USER_AGENT}, timeout=FETCH_TIMEOUT
            )
        except requests.RequestException as exc:
            raise ConnectionError(f"Fetch failed: {exc}") from exc
        try:
            html = response.text
        except (requests.RequestException, UnicodeError) as exc:
            raise ConnectionError(f"Read body failed: {exc}") from exc
    finally:
        if owned:
            active.close()
    return extract_page_text(html)


def parse_research_questions(raw: str) -> list[str]:
    """Turn a numbered list from the model into at most four question strings."""
    questions: list[str] = []
    for line in raw.split("\n"):
        trimmed = line.strip()
        if not trimmed:
            continue
        question = trimmed.lstrip("0123456789").lstrip(".) ").strip()
        if _byte_len(question) > _MIN_QUESTION_BYTES:
            questions.append(question)
            if len(questions) == MAX_QUESTIONS:
                break
    return questions


def extract_objectives(raw: str) -> list[str] | None:
    """Find the JSON array of objectives in a model reply.

    Returns None when no array of strings can be found.
    """
    start = raw.find("[")
    end = raw.rfind("]")
    if start < 0 or end < start:
        return None
    try:
        value = json.loads(raw[start : end + 1])
    except ValueError:
        return None
    if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
        return None
    return value


def store_pending_objectives(objectives: list[str]) -> None:
    """Hold a proposed objective update until the user reviews it."""
    global _pending_objectives
    with _pending_lock:
        _pending_objectives = list(objectives)


def take_pending_objectives() -> list[str] | None:
    """Remove and return the pending objective proposal, or None if there is none."""
    global _pending_objectives
    with _pending_lock:
        pending, _pending_objectives = _pending_objectives, None
    return pending