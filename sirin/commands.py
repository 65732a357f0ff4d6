"""Parsing helpers for inbound chat messages: previews, search and research cues."""

from __future__ import annotations

from typing import Callable

_SEARCH_CUES = (
    "什麼",
    "如何",
    "為什麼",
    "怎麼",
    "哪裡",
    "what",
    "how",
    "why",
    "when",
    "where",
    "who",
)

_RESEARCH_PREFIXES = (
    "調研",
    "研究",
    "幫我研究",
    "幫我調研",
    "幫我查一下",
    "幫我查",
    "深入研究",
    "背景調研",
)

# Longer keywords are stripped before the shorter ones they end with.
_TOPIC_STRIP_ORDER = (
    "幫我調研",
    "幫我研究",
    "幫我查一下",
    "幫我查",
    "深入研究",
    "背景調研",
    "調研",
    "研究",
)

_QUERY_PROMPT = (
    "Extract a concise web search query (at most 8 words) from the user message below.\n"
    "Return only the search query text. No explanation, no quotes, no punctuation at the end.\n"
    "\n"
    "User message: {text}\n"
    "\n"
    "Search query:"
)


def _trim_start_matches(text: str, prefix: str) -> str:
    while prefix and text.startswith(prefix):
        text = text[len(prefix):]
    return text


def message_preview(text: str, max_chars: int) -> str:
    """Collapse whitespace and cut to max_chars characters, adding '...' when cut."""
    normalized = " ".join(text.split())
    if len(normalized) > max_chars:
        return normalized[:max_chars] + "..."
    return normalized


def should_search(text: str) -> bool:
    """Return True when the message looks like a question worth a web search."""
    if "?" in text or "？" in text:
        return True
    lower = text.lower()
    return any(cue in lower for cue in _SEARCH_CUES)


def detect_research_intent(text: str) -> tuple[str, str | None] | None:
    """Return (topic, url) when the message starts with a research keyword, else None."""
    normalized = text.strip()
    lower = normalized.lower()
    if not lower.startswith(_RESEARCH_PREFIXES):
        return None

    url = next(
        (
            token
            for token in normalized.split()
            if token.startswith(("http://", "https://"))
        ),
        None,
    )

    topic = normalized
    for keyword in _TOPIC_STRIP_ORDER:
        topic = _trim_start_matches(topic, keyword)
    topic = topic.strip()

    return (topic or normalized, url)


def extract_search_query(text: str, complete: Callable[[str], str]) -> str:
    """Return a short search query for the message, produced by `complete`.

    The first 100 characters of the text are used when `complete` raises
    or yields nothing usable.
    """
    prompt = _QUERY_PROMPT.format(text=text)
    fallback = text[:100]
    try:
        answer = complete(prompt)
    except Exception:
        return fallback
    cleaned = answer.strip().strip('"').strip("'").strip()
    return cleaned or fallback